"""UI Components for Drill"""

from app.ui.flashcard import render_card_back, render_card_front, render_flashcard
from app.ui.session_stats import render_session_report, render_session_stats
from app.ui.feedback_buttons import render_feedback_buttons

__all__ = [
    "render_flashcard",
    "render_card_front",
    "render_card_back",
    "render_session_stats",
    "render_session_report",
    "render_feedback_buttons",
]
