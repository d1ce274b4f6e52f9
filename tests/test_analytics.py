from datetime import datetime, timezone

import pandas as pd
import pytest

from drill.analytics import build_dashboard
from drill.analytics.queries import load_review_events_df
from drill.item_record import ItemRecord
from drill.store import InMemoryItemStore
from drill.store.ports import ReviewLogEntry


def review(item_ref, when, quality, session_id):
    return ReviewLogEntry(
        item_ref=item_ref,
        timestamp=when,
        quality=quality,
        algorithm="sm5",
        failed=quality <= 2,
        interval_before=0.0,
        interval_after=-1.0 if quality <= 2 else 2.5,
        ease_before=None,
        ease_after=2.5,
        session_id=session_id,
    )


@pytest.fixture
def history_store():
    store = InMemoryItemStore()
    store.add_item("a", "q", record=ItemRecord(ease=2.5, total_repeats=3))
    store.add_item("b", "q", record=ItemRecord(ease=2.0, failure_count=20, is_leech=True))
    store.add_item("c", "q")
    store.review_log = [
        review("a", datetime(2024, 3, 8, 9, 0, tzinfo=timezone.utc), 4, "s1"),
        review("b", datetime(2024, 3, 8, 9, 10, tzinfo=timezone.utc), 1, "s1"),
        review("a", datetime(2024, 3, 10, 10, 0, tzinfo=timezone.utc), 5, "s2"),
        review("b", datetime(2024, 3, 10, 10, 30, tzinfo=timezone.utc), 3, "s2"),
    ]
    return store


def test_load_review_events_df(history_store):
    df = load_review_events_df(history_store)
    assert list(df["item_id"]) == ["a", "b", "a", "b"]
    assert df["day_utc"].nunique() == 2


def test_dashboard_totals(history_store):
    dashboard = build_dashboard(history_store)

    assert dashboard.total_reviews == 4
    assert dashboard.studied_unique == 2
    assert dashboard.pass_rate == 75.0
    assert dashboard.leech_count == 1
    assert dashboard.mean_ease == pytest.approx(2.25)


def test_dashboard_daily_series(history_store):
    dashboard = build_dashboard(history_store)

    assert dashboard.daily_reviews.tolist() == [2, 0, 2]
    assert dashboard.daily_pass_rate.iloc[0] == 50.0
    assert pd.isna(dashboard.daily_pass_rate.iloc[1])
    assert dashboard.daily_pass_rate.iloc[2] == 100.0
    assert dashboard.studied_cumulative_daily.tolist() == [2, 2, 2]
    assert dashboard.study_span_daily_hours.tolist() == pytest.approx([10 / 60, 0.0, 0.5])


def test_quality_distribution(history_store):
    distribution = build_dashboard(history_store).quality_distribution
    assert distribution.to_dict() == {0: 0, 1: 1, 2: 0, 3: 1, 4: 1, 5: 1}


def test_empty_dashboard():
    dashboard = build_dashboard(InMemoryItemStore())
    assert dashboard.total_reviews == 0
    assert dashboard.pass_rate is None
    assert dashboard.mean_ease is None
    assert dashboard.daily_reviews.empty
    assert dashboard.quality_distribution.sum() == 0
