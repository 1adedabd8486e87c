# utils.py
from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

import pandas as pd

from domain import DailyTimeEntry, EmployeeReport, TimeEntry, round_half_up

if TYPE_CHECKING:
    from services import TimeEntryAggregator

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_date_short(d: date) -> str:
    """'Jun 16, 2026'"""
    return f"{MONTH_ABBR[d.month - 1]} {d.day}, {d.year}"


def format_duration(hours: float) -> str:
    """'2h', '2h 30m'. Rounds to whole minutes before splitting so 60m never shows."""
    h, m = divmod(int(round_half_up(float(hours) * 60, 0)), 60)
    if m == 0:
        return f"{h}h"
    return f"{h}h {m}m"


def format_time(ts: datetime) -> str:
    """12-hour clock: '9:05 AM'."""
    hour = ts.hour % 12 or 12
    suffix = "AM" if ts.hour < 12 else "PM"
    return f"{hour}:{ts.minute:02d} {suffix}"


def format_datetime(ts: datetime) -> str:
    return f"{MONTH_ABBR[ts.month - 1]} {ts.day}, {format_time(ts)}"


def daily_entries_to_dataframe(days: Iterable[DailyTimeEntry]) -> pd.DataFrame:
    rows = []
    for d in days:
        rows.append({
            "Date": d.date.isoformat(),
            "Entries": len(d.entries),
            "Standard Hours": round_half_up(d.standard_hours),
            "Overtime Hours": round_half_up(d.overtime_hours),
            "Total Hours": round_half_up(d.total_hours),
            "Total": format_duration(d.total_hours),
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Date"], ascending=False).reset_index(drop=True)
    return df


def employee_reports_to_dataframe(reports: Iterable[EmployeeReport]) -> pd.DataFrame:
    rows = []
    for r in reports:
        s = r.summary
        rows.append({
            "Employee": r.employee.full_name,
            "Type": r.employee.employee_type,
            "Days": s.day_count,
            "Standard Hours": s.total_standard_hours,
            "Overtime Hours": s.total_overtime_hours,
            "Total Hours": s.total_hours,
            "Avg Hours/Day": s.average_hours_per_day,
        })
    return pd.DataFrame(rows)


def entries_to_dataframe(entries: Iterable[TimeEntry], aggregator: TimeEntryAggregator) -> pd.DataFrame:
    rows = []
    for e in entries:
        punch_in = e.punch_in_time
        punch_out = e.punch_out_time
        if punch_in.tzinfo is not None:
            punch_in = punch_in.astimezone(aggregator.tz)
        if punch_out is not None and punch_out.tzinfo is not None:
            punch_out = punch_out.astimezone(aggregator.tz)
        rows.append({
            "Date": aggregator.entry_date(e).isoformat(),
            "Punch In": format_time(punch_in),
            "Punch Out": format_time(punch_out) if punch_out else "",
            "Lunch": format_duration(e.lunch_hours) if e.lunch_hours else "",
            "Standard": e.standard_hours or 0.0,
            "Overtime": e.overtime_hours or 0.0,
            "Total": e.total_hours or 0.0,
            "Notes": e.notes or "",
            "Edited": e.is_edited,
            "Paid": e.is_paid,
        })
    return pd.DataFrame(rows)
