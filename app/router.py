"""
Tab router: maps page titles to their render functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.pages.analytics import render_analytics_page
from app.pages.study import render_study_page


@dataclass(frozen=True)
class AppPage:
    title: str
    render: Callable[[], None]


PAGES = [
    AppPage(title="Study", render=render_study_page),
    AppPage(title="Analytics", render=render_analytics_page),
]
