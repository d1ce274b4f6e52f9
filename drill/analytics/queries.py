"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

import pandas as pd

from drill.errors import ItemStoreError
from drill.store.ports import ItemStore

EVENT_COLUMNS = ["item_id", "timestamp", "quality", "failed", "session_id", "day_utc"]
SNAPSHOT_COLUMNS = ["item_id", "last_interval", "ease", "failure_count", "is_leech"]


def load_review_events_df(store: ItemStore) -> pd.DataFrame:
    """
    Load the store's review log into a dataframe, one row per rating.
    """
    rows = store.get_review_events()
    if not rows:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame(rows)
    df = df[["item_id", "timestamp", "quality", "failed", "session_id"]].copy()
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
    df = df.dropna(subset=["item_id", "timestamp"])
    df["quality"] = df["quality"].astype("int64")
    df["failed"] = df["failed"].astype(bool)
    df["day_utc"] = df["timestamp"].dt.floor("D")
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df


def load_item_snapshots_df(store: ItemStore) -> pd.DataFrame:
    """
    Load the current statistics of every reviewable item.

    Items the store fails to read are left out.
    """
    rows = []
    for item_ref in store.item_refs():
        try:
            if not store.is_reviewable(item_ref):
                continue
            record = store.read_stats(item_ref)
        except ItemStoreError:
            continue
        rows.append({
            "item_id": item_ref,
            "last_interval": record.last_interval,
            "ease": record.ease,
            "failure_count": record.failure_count,
            "is_leech": record.is_leech,
        })
    if not rows:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)
    return pd.DataFrame(rows)
