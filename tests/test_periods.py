"""Tests for bi-monthly pay period derivation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from domain import PayPeriodPolicy
from services import PayrollPeriodCalculator


def all_days(start, end):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


class TestPeriodForDate:

    def test_first_half(self, calculator):
        p = calculator.period_for_date(date(2026, 6, 10))
        assert p.period_start == date(2026, 5, 27)
        assert p.period_end == date(2026, 6, 11)
        assert p.payment_date == date(2026, 6, 16)
        # Tuesday, no weekend shift
        assert p.actual_payment_date == date(2026, 6, 16)
        assert p.cutoff_date == date(2026, 6, 11)
        assert p.period_name == "May 27, 2026 - Jun 11, 2026"

    def test_eleventh_is_still_first_half(self, calculator):
        p = calculator.period_for_date(date(2026, 6, 11))
        assert p.period_start == date(2026, 5, 27)
        assert p.period_end == date(2026, 6, 11)

    def test_twelfth_starts_second_half(self, calculator):
        p = calculator.period_for_date(date(2026, 6, 12))
        assert p.period_start == date(2026, 6, 12)
        assert p.period_end == date(2026, 6, 26)
        assert p.payment_date == date(2026, 7, 1)
        assert p.actual_payment_date == date(2026, 7, 1)
        assert p.cutoff_date == date(2026, 6, 26)
        assert p.period_name == "Jun 12, 2026 - Jun 26, 2026"

    def test_late_month_days_use_second_half_of_same_month(self, calculator):
        p = calculator.period_for_date(date(2026, 6, 28))
        assert p.period_start == date(2026, 6, 12)
        assert p.period_end == date(2026, 6, 26)

    def test_january_start_wraps_to_previous_december(self, calculator):
        p = calculator.period_for_date(date(2026, 1, 5))
        assert p.period_start == date(2025, 12, 27)
        assert p.period_end == date(2026, 1, 11)
        assert p.payment_date == date(2026, 1, 16)

    def test_december_pay_date_wraps_to_next_january(self, calculator):
        p = calculator.period_for_date(date(2025, 12, 15))
        assert p.period_start == date(2025, 12, 12)
        assert p.period_end == date(2025, 12, 26)
        assert p.payment_date == date(2026, 1, 1)

    def test_saturday_pay_date_moves_to_friday(self, calculator):
        # 2026-05-16 is a Saturday
        p = calculator.period_for_date(date(2026, 5, 5))
        assert p.payment_date == date(2026, 5, 16)
        assert p.actual_payment_date == date(2026, 5, 15)
        assert p.cutoff_date == date(2026, 5, 10)

    def test_sunday_pay_date_moves_to_monday(self, calculator):
        # 2026-02-01 is a Sunday
        p = calculator.period_for_date(date(2026, 1, 20))
        assert p.payment_date == date(2026, 2, 1)
        assert p.actual_payment_date == date(2026, 2, 2)
        assert p.cutoff_date == date(2026, 1, 28)

    def test_aware_datetime_uses_calculator_timezone(self):
        calc = PayrollPeriodCalculator(tz="America/New_York")
        # 02:00 UTC on the 12th is still the evening of the 11th in New York
        p = calc.period_for_date(datetime(2026, 6, 12, 2, 0, tzinfo=timezone.utc))
        assert p.period_end == date(2026, 6, 11)

    def test_naive_datetime_is_taken_as_local(self, calculator):
        p = calculator.period_for_date(datetime(2026, 6, 12, 0, 30))
        assert p.period_start == date(2026, 6, 12)

    def test_current_period_reads_injected_clock(self, calculator):
        now = datetime(2026, 6, 20, 8, 0, tzinfo=timezone.utc)
        assert calculator.current_period(now) == calculator.period_for_date(date(2026, 6, 20))

    def test_current_period_defaults_to_wall_clock(self, calculator):
        today = datetime.now(timezone.utc).date()
        assert calculator.current_period() == calculator.period_for_date(today)


class TestPeriodInvariants:

    @pytest.mark.parametrize("year", [2025, 2026, 2027, 2028])
    def test_boundaries_for_every_day(self, calculator, year):
        for d in all_days(date(year, 1, 1), date(year, 12, 31)):
            p = calculator.period_for_date(d)
            if d.day <= 11:
                prev_month = 12 if d.month == 1 else d.month - 1
                prev_year = d.year - 1 if d.month == 1 else d.year
                assert p.period_start == date(prev_year, prev_month, 27)
            else:
                assert p.period_start == date(d.year, d.month, 12)
            assert p.period_start <= p.period_end < p.payment_date
            assert p.cutoff_date <= p.actual_payment_date
            assert p.cutoff_date == p.actual_payment_date - timedelta(days=5)

    def test_adjust_for_weekend_is_idempotent_and_never_weekend(self, calculator):
        for d in all_days(date(2026, 1, 1), date(2026, 3, 31)):
            once = calculator.adjust_for_weekend(d)
            assert calculator.adjust_for_weekend(once) == once
            assert once.weekday() < 5

    def test_period_is_immutable(self, calculator):
        p = calculator.period_for_date(date(2026, 6, 10))
        with pytest.raises(AttributeError):
            p.period_start = date(2026, 1, 1)


class TestCustomPolicy:

    def test_cutoff_days(self):
        calc = PayrollPeriodCalculator(PayPeriodPolicy(cutoff_days=3), tz="UTC")
        p = calc.period_for_date(date(2026, 6, 10))
        assert p.cutoff_date == date(2026, 6, 13)

    def test_start_day_clamps_to_short_month(self):
        calc = PayrollPeriodCalculator(PayPeriodPolicy(first_half_start_day=30), tz="UTC")
        p = calc.period_for_date(date(2026, 3, 5))
        assert p.period_start == date(2026, 2, 28)


class TestPeriodsOverlapping:

    def test_month_range(self, calculator):
        periods = calculator.periods_overlapping(date(2026, 6, 1), date(2026, 6, 30))
        assert [p.key for p in periods] == [
            (date(2026, 5, 27), date(2026, 6, 11)),
            (date(2026, 6, 12), date(2026, 6, 26)),
        ]

    def test_single_day(self, calculator):
        periods = calculator.periods_overlapping(date(2026, 6, 12), date(2026, 6, 12))
        assert len(periods) == 1
        assert periods[0].period_start == date(2026, 6, 12)

    def test_reversed_range_is_empty(self, calculator):
        assert calculator.periods_overlapping(date(2026, 6, 30), date(2026, 6, 1)) == []

    def test_no_duplicates_and_chronological(self, calculator):
        periods = calculator.periods_overlapping(date(2025, 11, 3), date(2026, 8, 19))
        keys = [p.key for p in periods]
        assert len(keys) == len(set(keys))
        assert keys == sorted(keys)

    def test_accepts_datetimes(self, calculator):
        periods = calculator.periods_overlapping(datetime(2026, 6, 1, 9), datetime(2026, 6, 30, 17))
        assert len(periods) == 2


class TestCutoff:

    def test_inclusive(self, calculator):
        assert calculator.is_within_cutoff(date(2026, 6, 11), date(2026, 6, 11))
        assert calculator.is_within_cutoff(date(2026, 6, 10), date(2026, 6, 11))
        assert not calculator.is_within_cutoff(date(2026, 6, 12), date(2026, 6, 11))
