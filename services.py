# services.py
from __future__ import annotations
import calendar
from datetime import datetime, date, time, timedelta
from typing import Iterable, Dict, List
from zoneinfo import ZoneInfo

from domain import (
    DailyTimeEntry,
    Employee,
    EmployeeReport,
    PayPeriodPolicy,
    PayrollPeriod,
    PayrollSummary,
    TimeEntry,
)
from utils import format_date_short, format_duration

SATURDAY = 5
SUNDAY = 6


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _clamped_date(year: int, month: int, day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def _to_local(ts: datetime, tz: ZoneInfo) -> datetime:
    """Aware timestamps move into tz; naive ones are already local."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(tz)


def _as_date(value: date | datetime, tz: ZoneInfo) -> date:
    if isinstance(value, datetime):
        return _to_local(value, tz).date()
    return value


def _parse_clock_time(value: str) -> time:
    """'9:00', '09:00' or '09:00:00'; seconds are ignored."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid clock time: {value!r}")
    return time(int(parts[0]), int(parts[1]))


def is_within_cutoff(entry_date: date, cutoff_date: date) -> bool:
    return entry_date <= cutoff_date


class PayrollPeriodCalculator:
    """Bi-monthly pay periods: 27th-11th paid on the 16th, 12th-26th paid on the 1st."""
    def __init__(self, policy: PayPeriodPolicy | None = None, tz: ZoneInfo | str = "UTC"):
        self.policy = policy or PayPeriodPolicy()
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def adjust_for_weekend(self, day: date) -> date:
        """Saturday pays on Friday, Sunday pays on Monday."""
        weekday = day.weekday()
        if weekday == SATURDAY:
            return day - timedelta(days=1)
        if weekday == SUNDAY:
            return day + timedelta(days=1)
        return day

    def period_for_date(self, value: date | datetime) -> PayrollPeriod:
        p = self.policy
        day = _as_date(value, self.tz)

        if day.day <= p.first_half_last_day:
            prev_year, prev_month = _shift_month(day.year, day.month, -1)
            period_start = _clamped_date(prev_year, prev_month, p.first_half_start_day)
            period_end = _clamped_date(day.year, day.month, p.first_half_last_day)
            payment_date = _clamped_date(day.year, day.month, p.first_half_pay_day)
        else:
            # days after the second-half end still land here
            period_start = _clamped_date(day.year, day.month, p.second_half_start_day)
            period_end = _clamped_date(day.year, day.month, p.second_half_end_day)
            next_year, next_month = _shift_month(day.year, day.month, 1)
            payment_date = _clamped_date(next_year, next_month, p.second_half_pay_day)

        actual_payment_date = self.adjust_for_weekend(payment_date)
        return PayrollPeriod(
            period_start=period_start,
            period_end=period_end,
            payment_date=payment_date,
            actual_payment_date=actual_payment_date,
            cutoff_date=actual_payment_date - timedelta(days=p.cutoff_days),
            period_name=f"{format_date_short(period_start)} - {format_date_short(period_end)}",
        )

    def current_period(self, now: datetime | None = None) -> PayrollPeriod:
        now = now or datetime.now(self.tz)
        return self.period_for_date(now)

    def periods_overlapping(self, start: date | datetime, end: date | datetime) -> List[PayrollPeriod]:
        """
        Distinct periods touching [start, end], in order of first encounter.
        Walks the range in fixed strides; empty when end < start.
        """
        current = _as_date(start, self.tz)
        last = _as_date(end, self.tz)
        stride = timedelta(days=self.policy.range_stride_days)

        periods: List[PayrollPeriod] = []
        seen = set()
        while current <= last:
            period = self.period_for_date(current)
            if period.key not in seen:
                seen.add(period.key)
                periods.append(period)
            current += stride
        return periods

    def is_within_cutoff(self, entry_date: date, cutoff_date: date) -> bool:
        return is_within_cutoff(entry_date, cutoff_date)


class TimeEntryAggregator:
    """Display and payroll totals over raw time entries."""
    def __init__(self, tz: ZoneInfo | str = "UTC", reminder_buffer_minutes: int = 10):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self.reminder_buffer_minutes = reminder_buffer_minutes

    format_duration = staticmethod(format_duration)

    def _now(self, like: datetime | None = None) -> datetime:
        now = datetime.now(self.tz)
        if like is not None and like.tzinfo is None:
            return now.replace(tzinfo=None)
        return now

    def elapsed_time(self, start: datetime, now: datetime | None = None) -> str:
        now = now or self._now(like=start)
        return self.format_duration((now - start).total_seconds() / 3600.0)

    def entry_date(self, entry: TimeEntry) -> date:
        return _to_local(entry.punch_in_time, self.tz).date()

    def group_by_date(self, entries: Iterable[TimeEntry]) -> List[DailyTimeEntry]:
        """
        One DailyTimeEntry per punch-in date, newest first.
        Entries keep their input order inside each day.
        """
        days: Dict[date, DailyTimeEntry] = {}
        for e in entries:
            key = self.entry_date(e)
            day = days.get(key)
            if day is None:
                day = days[key] = DailyTimeEntry(date=key)
            day.entries.append(e)
            day.total_hours += e.total_hours or 0.0
            day.standard_hours += e.standard_hours or 0.0
            day.overtime_hours += e.overtime_hours or 0.0
        return sorted(days.values(), key=lambda d: d.date, reverse=True)

    def summarize(self, entries: Iterable[TimeEntry]) -> PayrollSummary:
        standard = 0.0
        overtime = 0.0
        dates = set()
        for e in entries:
            standard += e.standard_hours or 0.0
            overtime += e.overtime_hours or 0.0
            dates.add(self.entry_date(e))
        return PayrollSummary.from_sums(standard, overtime, len(dates))

    def should_send_punch_reminder(
        self,
        scheduled_start: time | str | None,
        last_punch_in: datetime | str | None,
        now: datetime | None = None,
    ) -> bool:
        """
        True once the buffer after today's scheduled start has passed and the
        employee has not punched in today. An earlier day's punch does not count.
        """
        if not scheduled_start:
            return False
        if isinstance(scheduled_start, str):
            scheduled_start = _parse_clock_time(scheduled_start)

        now_local = _to_local(now or datetime.now(self.tz), self.tz)
        scheduled = datetime.combine(now_local.date(), scheduled_start, tzinfo=now_local.tzinfo)
        reminder_time = scheduled + timedelta(minutes=self.reminder_buffer_minutes)
        if now_local < reminder_time:
            return False

        if not last_punch_in:
            return True
        if isinstance(last_punch_in, str):
            last_punch_in = datetime.fromisoformat(last_punch_in)
        return _to_local(last_punch_in, self.tz).date() != now_local.date()

    def late_entries(self, entries: Iterable[TimeEntry], period: PayrollPeriod) -> List[TimeEntry]:
        """Entries of the period punched in after its cutoff date."""
        late = []
        for e in entries:
            d = self.entry_date(e)
            if period.contains(d) and not is_within_cutoff(d, period.cutoff_date):
                late.append(e)
        return late

    def employee_reports(
        self, employees: Iterable[Employee], entries: Iterable[TimeEntry]
    ) -> List[EmployeeReport]:
        by_user: Dict[str, List[TimeEntry]] = {}
        for e in entries:
            by_user.setdefault(e.user_id, []).append(e)

        reports = []
        for emp in employees:
            user_entries = by_user.get(emp.user_id, [])
            reports.append(EmployeeReport(
                employee=emp,
                entries=user_entries,
                summary=self.summarize(user_entries),
            ))
        reports.sort(key=lambda r: f"{r.employee.last_name} {r.employee.first_name}".lower())
        return reports
