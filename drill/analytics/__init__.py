"""
Analytics package exports.
"""

from drill.analytics.service import build_dashboard
from drill.analytics.types import DashboardData

__all__ = [
    "build_dashboard",
    "DashboardData",
]
