#!/usr/bin/env python3
"""Payroll periods and hour summaries from the time-clock database."""

from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path

import config
from domain import Employee, PayrollPeriod
from repository import TimeEntryRepository
from services import PayrollPeriodCalculator, TimeEntryAggregator
from utils import (
    daily_entries_to_dataframe,
    employee_reports_to_dataframe,
    entries_to_dataframe,
    format_date_short,
)

logger = logging.getLogger(__name__)


def iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {value}") from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bi-monthly payroll periods and time-clock summaries.")
    parser.add_argument("--db", default=None, help="Database URL. Defaults to $DATABASE_URL or a local SQLite file.")
    parser.add_argument("--tz", default=config.TZ_NAME, help="IANA time zone used for local dates.")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_period = sub.add_parser("period", help="Show the pay period containing a date.")
    p_period.add_argument("--date", type=iso_date, help="Date in YYYY-MM-DD (default: today).")

    p_periods = sub.add_parser("periods", help="List pay periods overlapping a date range.")
    p_periods.add_argument("start", type=iso_date)
    p_periods.add_argument("end", type=iso_date)

    p_summary = sub.add_parser("summary", help="Summarize hours per employee for a date range.")
    p_summary.add_argument("--start", type=iso_date, required=True)
    p_summary.add_argument("--end", type=iso_date, required=True)
    p_summary.add_argument("--user", action="append", dest="users", help="User id (repeatable).")
    p_summary.add_argument("--csv", help="Write the summary table to this CSV path.")

    for name, help_text in (("days", "Daily hour totals for a date range, newest first."),
                            ("entries", "Individual time entries for a date range.")):
        p_list = sub.add_parser(name, help=help_text)
        p_list.add_argument("--start", type=iso_date, required=True)
        p_list.add_argument("--end", type=iso_date, required=True)
        p_list.add_argument("--user", action="append", dest="users", help="User id (repeatable).")
        p_list.add_argument("--csv", help="Write the table to this CSV path.")

    p_paid = sub.add_parser("mark-paid", help="Assign a user's entries to the pay period of a date.")
    p_paid.add_argument("--user", required=True)
    p_paid.add_argument("--date", type=iso_date, help="Any date inside the period (default: today).")

    return parser.parse_args(argv)


def describe_period(period: PayrollPeriod) -> str:
    lines = [
        f"Period:       {period.period_name}",
        f"Cutoff:       {format_date_short(period.cutoff_date)}",
        f"Payment date: {format_date_short(period.actual_payment_date)}",
    ]
    if period.actual_payment_date != period.payment_date:
        lines.append(f"  (moved from {format_date_short(period.payment_date)}, weekend)")
    return "\n".join(lines)


def selected_period(args: argparse.Namespace, calculator: PayrollPeriodCalculator) -> PayrollPeriod:
    if args.date:
        return calculator.period_for_date(args.date)
    return calculator.current_period()


def open_repo(args: argparse.Namespace) -> TimeEntryRepository:
    url = args.db or config.DB_URL or config.default_database_url()
    return TimeEntryRepository(url, tz=args.tz)


def run_summary(args: argparse.Namespace, aggregator: TimeEntryAggregator) -> None:
    repo = open_repo(args)
    entries = repo.list_for_range(args.start, args.end, user_ids=args.users)
    user_ids = args.users or sorted({e.user_id for e in entries})
    # only ids are known to the time clock; names live in the profile store
    employees = [Employee(user_id=u, first_name="", last_name=u) for u in user_ids]
    reports = aggregator.employee_reports(employees, entries)

    emit_table(employee_reports_to_dataframe(reports), args.csv)


def run_days(args: argparse.Namespace, aggregator: TimeEntryAggregator) -> None:
    entries = open_repo(args).list_for_range(args.start, args.end, user_ids=args.users)
    emit_table(daily_entries_to_dataframe(aggregator.group_by_date(entries)), args.csv)


def run_entries(args: argparse.Namespace, aggregator: TimeEntryAggregator) -> None:
    # open entries are listed too; they show without a punch-out
    entries = open_repo(args).list_for_range(args.start, args.end, user_ids=args.users, closed_only=False)
    emit_table(entries_to_dataframe(entries, aggregator), args.csv)


def emit_table(df, csv_path: str | None) -> None:
    if df.empty:
        print("No time entries in range.")
    else:
        print(df.to_string(index=False))
    if csv_path:
        out_path = Path(csv_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False)
        print(str(out_path))


def run_mark_paid(args: argparse.Namespace, calculator: PayrollPeriodCalculator,
                  aggregator: TimeEntryAggregator) -> None:
    period = selected_period(args, calculator)
    repo = open_repo(args)

    late = aggregator.late_entries(repo.list_for_period(period, user_ids=[args.user]), period)
    if late:
        logger.warning(f"{len(late)} entries of user {args.user} fall after the cutoff "
                       f"{format_date_short(period.cutoff_date)}.")

    changed = repo.mark_paid(args.user, period)
    print(f"{changed} entries marked paid for {period.period_name}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config.setup_logging(level=args.log_level.upper())

    calculator = PayrollPeriodCalculator(config.DEFAULT_POLICY, tz=args.tz)
    aggregator = TimeEntryAggregator(tz=args.tz, reminder_buffer_minutes=config.PUNCH_REMINDER_BUFFER_MIN)

    if args.command == "period":
        print(describe_period(selected_period(args, calculator)))
    elif args.command == "periods":
        for period in calculator.periods_overlapping(args.start, args.end):
            print(describe_period(period))
            print()
    elif args.command in ("summary", "days", "entries"):
        if args.end < args.start:
            raise SystemExit("Error: --end is before --start")
        runner = {"summary": run_summary, "days": run_days, "entries": run_entries}[args.command]
        runner(args, aggregator)
    elif args.command == "mark-paid":
        run_mark_paid(args, calculator, aggregator)


if __name__ == "__main__":
    main()
