"""
Service layer to assemble the analytics dashboard.
"""

from __future__ import annotations

from drill.analytics.metrics import (
    build_day_index,
    compute_daily_pass_rate,
    compute_daily_reviews,
    compute_leech_count,
    compute_mean_ease,
    compute_pass_rate,
    compute_quality_distribution,
    compute_session_span_daily_hours,
    compute_studied_cumulative,
    compute_studied_unique,
)
from drill.analytics.queries import (
    load_item_snapshots_df,
    load_review_events_df,
)
from drill.analytics.types import DashboardData
from drill.store.ports import ItemStore


def build_dashboard(store: ItemStore) -> DashboardData:
    """
    Build all KPI values and series needed by the analytics page.
    """
    events_df = load_review_events_df(store)
    snapshots_df = load_item_snapshots_df(store)
    day_index = build_day_index(events_df)

    return DashboardData(
        total_reviews=len(events_df),
        studied_unique=compute_studied_unique(events_df),
        pass_rate=compute_pass_rate(events_df),
        leech_count=compute_leech_count(snapshots_df),
        mean_ease=compute_mean_ease(snapshots_df),
        daily_reviews=compute_daily_reviews(events_df, day_index),
        daily_pass_rate=compute_daily_pass_rate(events_df, day_index),
        studied_cumulative_daily=compute_studied_cumulative(events_df, day_index),
        study_span_daily_hours=compute_session_span_daily_hours(events_df, day_index),
        quality_distribution=compute_quality_distribution(events_df),
    )
