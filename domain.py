# domain.py
from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import date, datetime


def round_half_up(value: float, places: int = 2) -> float:
    """Rounds halves upward (2.345 -> 2.35), never to even."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class PayPeriodPolicy:
    """Day-of-month boundaries of the two bi-monthly pay periods."""
    first_half_start_day: int = 27     # of the previous month
    first_half_last_day: int = 11
    second_half_start_day: int = 12
    second_half_end_day: int = 26
    first_half_pay_day: int = 16       # current month
    second_half_pay_day: int = 1       # next month
    cutoff_days: int = 5
    range_stride_days: int = 15


@dataclass(frozen=True)
class PayrollPeriod:
    period_start: date
    period_end: date
    payment_date: date
    actual_payment_date: date
    cutoff_date: date
    period_name: str

    @property
    def key(self) -> tuple[date, date]:
        return (self.period_start, self.period_end)

    def contains(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end


@dataclass
class TimeEntry:
    """A single punch-in/punch-out record as stored upstream."""
    user_id: str
    punch_in_time: datetime
    punch_out_time: datetime | None = None
    lunch_break_start: datetime | None = None
    lunch_break_end: datetime | None = None
    total_hours: float | None = 0.0
    standard_hours: float | None = 0.0
    overtime_hours: float | None = 0.0
    notes: str | None = None
    is_edited: bool = False
    pay_period_start: date | None = None
    pay_period_end: date | None = None
    id: int | None = None

    @property
    def is_open(self) -> bool:
        """True while the employee is still clocked in."""
        return self.punch_out_time is None

    @property
    def is_paid(self) -> bool:
        return self.pay_period_start is not None

    @property
    def lunch_hours(self) -> float:
        # the editor may leave one of the two bounds unset
        if self.lunch_break_start is None or self.lunch_break_end is None:
            return 0.0
        return (self.lunch_break_end - self.lunch_break_start).total_seconds() / 3600.0


@dataclass
class DailyTimeEntry:
    date: date
    entries: list[TimeEntry] = field(default_factory=list)
    total_hours: float = 0.0
    standard_hours: float = 0.0
    overtime_hours: float = 0.0


@dataclass(frozen=True)
class PayrollSummary:
    total_standard_hours: float
    total_overtime_hours: float
    total_hours: float
    day_count: int
    average_hours_per_day: float

    @classmethod
    def from_sums(cls, standard: float, overtime: float, day_count: int) -> PayrollSummary:
        """Builds the summary from raw sums; rounding happens only here."""
        total = standard + overtime
        average = total / day_count if day_count > 0 else 0.0
        standard_r = round_half_up(standard)
        overtime_r = round_half_up(overtime)
        return cls(
            total_standard_hours=standard_r,
            total_overtime_hours=overtime_r,
            # total always equals the two displayed parts
            total_hours=round_half_up(standard_r + overtime_r),
            day_count=day_count,
            average_hours_per_day=round_half_up(average),
        )


@dataclass
class Employee:
    user_id: str
    first_name: str
    last_name: str
    employee_type: str = "hourly"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class EmployeeReport:
    employee: Employee
    entries: list[TimeEntry]
    summary: PayrollSummary
