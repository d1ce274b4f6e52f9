from datetime import date, datetime, timezone

import pytest

from drill.errors import InvalidInput
from drill.item_record import (
    PROP_AVERAGE_QUALITY,
    PROP_EASE,
    PROP_LAST_INTERVAL,
    ItemRecord,
    new_item_record,
)


def test_new_item_record_is_virgin():
    record = new_item_record()
    assert record.is_new
    assert record.last_interval == 0.0
    assert record.repeats_since_fail == 0
    assert record.ease is None
    assert record.average_quality is None


def test_properties_precision():
    record = ItemRecord(last_interval=15.123456, average_quality=3.66666, ease=2.4999)
    props = record.to_properties()
    assert props[PROP_LAST_INTERVAL] == "15.1235"
    assert props[PROP_AVERAGE_QUALITY] == "3.667"
    assert props[PROP_EASE] == "2.500"


def test_properties_round_trip():
    record = ItemRecord(
        last_interval=6.0,
        repeats_since_fail=2,
        total_repeats=5,
        failure_count=1,
        average_quality=3.8,
        ease=2.36,
        last_quality=4,
        last_reviewed=datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc),
    )
    restored = ItemRecord.from_properties(
        record.to_properties(), scheduled_date=date(2024, 3, 7), is_leech=True
    )
    assert restored == record.copy(scheduled_date=date(2024, 3, 7), is_leech=True)


def test_from_empty_properties_is_virgin():
    assert ItemRecord.from_properties({}) == new_item_record()


def test_from_properties_rejects_negative_counter():
    with pytest.raises(InvalidInput):
        ItemRecord.from_properties({"DRILL_FAILURE_COUNT": "-1"})


def test_hours_since_review():
    record = ItemRecord(last_reviewed=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc))
    assert record.hours_since_review(datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)) == 12.0
    assert new_item_record().hours_since_review(datetime(2024, 3, 1, tzinfo=timezone.utc)) is None
