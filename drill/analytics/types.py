"""
Types for the analytics dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd


@dataclass(frozen=True)
class DashboardData:
    """
    Precomputed metrics and series for the analytics page.
    """
    total_reviews: int
    studied_unique: int
    pass_rate: Optional[float]
    leech_count: int
    mean_ease: Optional[float]
    daily_reviews: pd.Series
    daily_pass_rate: pd.Series
    studied_cumulative_daily: pd.Series
    study_span_daily_hours: pd.Series
    quality_distribution: pd.Series
