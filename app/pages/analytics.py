"""
Analytics page rendering.
"""

from __future__ import annotations

import streamlit as st

from app.state import get_store
from drill.analytics import build_dashboard


@st.cache_data(show_spinner=False)
def _cached_dashboard():
    return build_dashboard(get_store())


def render_analytics_page() -> None:
    st.subheader("Review Analytics")

    if st.button("Refresh Analytics", use_container_width=False):
        _cached_dashboard.clear()
        st.rerun()

    dashboard = _cached_dashboard()

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Reviews", f"{dashboard.total_reviews:,}")
    with col2:
        st.metric("Studied Items (Unique)", f"{dashboard.studied_unique:,}")
    with col3:
        pass_rate = "-" if dashboard.pass_rate is None else f"{dashboard.pass_rate:.0f}%"
        st.metric("Recall", pass_rate, help="Share of ratings above the failure threshold")
    with col4:
        st.metric("Leeches", f"{dashboard.leech_count:,}")

    if dashboard.mean_ease is not None:
        st.caption(f"Mean ease: {dashboard.mean_ease:.2f}")

    st.markdown("### Reviews Per Day")
    if dashboard.daily_reviews.empty:
        st.info("No reviews yet.")
        return

    st.bar_chart(dashboard.daily_reviews.rename("reviews").to_frame())

    st.markdown("### Daily Recall (%)")
    st.line_chart(dashboard.daily_pass_rate.rename("recall").to_frame())

    col_left, col_right = st.columns(2)
    with col_left:
        st.caption("Studied items (cumulative)")
        st.line_chart(dashboard.studied_cumulative_daily.rename("studied_cumulative").to_frame())
    with col_right:
        st.caption("Rating distribution")
        st.bar_chart(dashboard.quality_distribution.rename("count").to_frame())

    st.markdown("### Study Time")
    st.caption("Daily session span (hours)")
    st.bar_chart(dashboard.study_span_daily_hours.rename("daily_hours").to_frame())
