import random
from datetime import date, datetime, timedelta, timezone

import pytest

from drill.algorithms import ReviewContext
from drill.config import DrillConfig
from drill.item_record import ItemRecord
from drill.store import InMemoryItemStore


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def now():
    return datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def today(now):
    return now.date()


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def config():
    return DrillConfig()


@pytest.fixture
def context(rng):
    return ReviewContext(rng=rng)


@pytest.fixture
def store():
    return InMemoryItemStore()


@pytest.fixture
def make_record(today):
    """Build a reviewed record due today (override any field)."""
    def _make(**fields):
        defaults = dict(
            last_interval=4.0,
            repeats_since_fail=2,
            total_repeats=2,
            failure_count=0,
            average_quality=4.0,
            ease=2.5,
            last_quality=4,
            last_reviewed=datetime(2024, 3, 6, 9, 0, tzinfo=timezone.utc),
            scheduled_date=today,
        )
        defaults.update(fields)
        return ItemRecord(**defaults)
    return _make


@pytest.fixture
def day():
    """Shift a date by a number of days."""
    def _day(base: date, offset: int) -> date:
        return base + timedelta(days=offset)
    return _day
