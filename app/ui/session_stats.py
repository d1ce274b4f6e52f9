"""
Session Statistics UI

Renders progress metrics, controls and the end-of-session report.
"""

import streamlit as st

from drill.report import SessionReport
from drill.session_controller import SessionStatus


def render_session_stats() -> bool:
    """
    Render session progress metrics and exit button.

    Returns:
        True if quit button was clicked, False otherwise
    """
    controller = st.session_state.controller
    if controller.status != SessionStatus.REVIEWING:
        return False

    counters = controller.counters
    col1, col2, col3, col4 = st.columns([2, 2, 2, 1])

    with col1:
        st.metric("Done", counters.done)

    with col2:
        st.metric("Remaining", counters.remaining)

    with col3:
        minutes, seconds = divmod(int(counters.elapsed_seconds), 60)
        st.metric("Time", f"{minutes}:{seconds:02d}")

    with col4:
        st.markdown("<br>", unsafe_allow_html=True)  # Align with metrics
        if st.button("❌", help="Quit session", use_container_width=True):
            return True

    if counters.limits_reached:
        st.caption("Session limit reached - finishing failed items.")
    st.divider()
    return False


def render_session_report(report: SessionReport) -> None:
    """Render the report of the last session."""
    lines = report.summary_lines()
    if report.status == SessionStatus.FINISHED.value and report.reviewed:
        st.success(f"🎉 {lines[0]}")
    else:
        st.info(lines[0])
    for line in lines[1:]:
        if line.startswith("Warning:"):
            st.warning(line)
        elif line.startswith("Error:"):
            st.error(line)
        else:
            st.markdown(line)
