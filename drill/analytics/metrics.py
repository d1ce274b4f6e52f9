"""
Metric computations for the analytics dashboard.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from drill.constants import MAX_QUALITY, MIN_QUALITY


def build_day_index(events_df: pd.DataFrame) -> pd.DatetimeIndex:
    """
    Build a dense UTC day index spanning the event range.
    """
    if events_df.empty:
        return pd.DatetimeIndex([], tz="UTC")
    start = events_df["day_utc"].min()
    end = events_df["day_utc"].max()
    return pd.date_range(start=start, end=end, freq="D")


def compute_daily_reviews(events_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Number of ratings given per day, zero on days without reviews.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")
    daily = events_df.groupby("day_utc").size()
    return daily.reindex(day_index, fill_value=0).astype("int64")


def compute_daily_pass_rate(events_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Percentage of passing ratings per day; NaN on days without reviews.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="float64")
    passed = ~events_df["failed"]
    daily = passed.groupby(events_df["day_utc"]).mean() * 100.0
    return daily.reindex(day_index).astype("float64")


def compute_pass_rate(events_df: pd.DataFrame) -> Optional[float]:
    """Overall pass percentage, None without reviews."""
    if events_df.empty:
        return None
    return float((~events_df["failed"]).mean() * 100.0)


def compute_quality_distribution(events_df: pd.DataFrame) -> pd.Series:
    """
    Count of each rating 0-5 (every rating present, zero if unused).
    """
    qualities = range(MIN_QUALITY, MAX_QUALITY + 1)
    if events_df.empty:
        return pd.Series(0, index=list(qualities), dtype="int64")
    counts = events_df["quality"].value_counts()
    return counts.reindex(qualities, fill_value=0).astype("int64")


def compute_studied_unique(events_df: pd.DataFrame) -> int:
    """
    Count unique reviewed item_ids.
    """
    if events_df.empty:
        return 0
    return int(events_df["item_id"].nunique())


def compute_studied_cumulative(
    events_df: pd.DataFrame,
    day_index: pd.DatetimeIndex
) -> pd.Series:
    """
    Cumulative unique reviewed items by first-seen day.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")

    first_seen = events_df.groupby("item_id")["timestamp"].min().dt.floor("D")
    counts = first_seen.value_counts().sort_index()
    return counts.reindex(day_index, fill_value=0).cumsum().astype("int64")


def compute_session_span_daily_hours(
    events_df: pd.DataFrame,
    day_index: pd.DatetimeIndex
) -> pd.Series:
    """
    Daily study time as sum of per-session span (last - first timestamp).
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="float64")

    scoped = events_df[events_df["session_id"].notna()]
    if scoped.empty:
        return pd.Series(0.0, index=day_index, dtype="float64")

    spans = scoped.groupby("session_id").agg(
        session_start=("timestamp", "min"),
        session_end=("timestamp", "max"),
    )
    spans["span_hours"] = (
        spans["session_end"] - spans["session_start"]
    ).dt.total_seconds() / 3600.0
    spans["day_utc"] = spans["session_start"].dt.floor("D")

    daily = spans.groupby("day_utc")["span_hours"].sum()
    return daily.reindex(day_index, fill_value=0.0).astype("float64")


def compute_leech_count(snapshots_df: pd.DataFrame) -> int:
    if snapshots_df.empty:
        return 0
    return int(snapshots_df["is_leech"].astype(bool).sum())


def compute_mean_ease(snapshots_df: pd.DataFrame) -> Optional[float]:
    """Mean ease over items that have one, None if none do."""
    if snapshots_df.empty:
        return None
    eases = pd.to_numeric(snapshots_df["ease"], errors="coerce").dropna()
    if eases.empty:
        return None
    return float(eases.mean())
