from datetime import datetime, timedelta

import pytest

from domain import TimeEntry
from repository import TimeEntryRepository
from services import PayrollPeriodCalculator, TimeEntryAggregator


@pytest.fixture
def calculator():
    return PayrollPeriodCalculator(tz="UTC")


@pytest.fixture
def aggregator():
    return TimeEntryAggregator(tz="UTC")


@pytest.fixture
def repo():
    return TimeEntryRepository("sqlite://", tz="America/New_York")


@pytest.fixture
def make_entry():
    """Closed entry factory: punch in at `start`, out `hours` later."""
    def _make(start, hours=8.0, standard=None, overtime=0.0, user_id="u1", closed=True, **kwargs):
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        standard = hours - overtime if standard is None else standard
        return TimeEntry(
            user_id=user_id,
            punch_in_time=start,
            punch_out_time=start + timedelta(hours=hours) if closed else None,
            total_hours=hours,
            standard_hours=standard,
            overtime_hours=overtime,
            **kwargs,
        )
    return _make
