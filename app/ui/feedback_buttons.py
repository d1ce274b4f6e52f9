"""
Feedback Button UI

Renders rating buttons (0-5) and the skip / edit / quit actions.
"""

from typing import Optional, Union

import streamlit as st

from drill.constants import Quality
from drill.session_controller import Action


QUALITY_LABELS = {
    Quality.BLACKOUT: "0 · Blackout",
    Quality.WRONG: "1 · Wrong",
    Quality.WRONG_EASY: "2 · Almost",
    Quality.HARD: "3 · Hard",
    Quality.GOOD: "4 · Good",
    Quality.PERFECT: "5 · Perfect",
}


def render_feedback_buttons(key_suffix: str = "") -> Optional[Union[int, Action]]:
    """
    Render rating and action buttons.

    Returns:
        Quality or Action selected by user, or None if no button clicked
    """
    st.markdown("**How well did you remember this item?**")

    columns = st.columns(len(QUALITY_LABELS))
    for column, (quality, label) in zip(columns, QUALITY_LABELS.items()):
        with column:
            if st.button(
                label,
                key=f"quality_{int(quality)}_{key_suffix}",
                type="primary" if quality > Quality.WRONG_EASY else "secondary",
                use_container_width=True,
            ):
                return int(quality)

    col_skip, col_edit, col_quit = st.columns(3)
    with col_skip:
        if st.button("Skip", key=f"skip_{key_suffix}", use_container_width=True):
            return Action.SKIP
    with col_edit:
        if st.button("Edit", key=f"edit_{key_suffix}", use_container_width=True, help="Suspend and edit this item"):
            return Action.EDIT
    with col_quit:
        if st.button("Quit", key=f"quit_{key_suffix}", use_container_width=True):
            return Action.QUIT
    return None
