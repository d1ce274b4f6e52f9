"""
Study page rendering.
"""

from __future__ import annotations

import streamlit as st

from app.session_controller import (
    discard_suspended_session,
    process_response,
    resume_session,
    start_new_session,
)
from app.state import get_store
from app.ui import (
    render_card_back,
    render_card_front,
    render_feedback_buttons,
    render_session_report,
)
from drill.config import is_test_mode
from drill.session_controller import SessionStatus


def render_study_page() -> None:
    """
    Render the study flow (intro, suspended item editor or active session).
    """
    controller = st.session_state.controller
    if controller.status == SessionStatus.REVIEWING and st.session_state.current_view is not None:
        _render_active_session()
    elif controller.suspended_checkpoint() is not None:
        _render_suspended_screen()
    else:
        _render_intro_screen()


def _render_intro_screen() -> None:
    st.markdown("<style>.stApp h1 { font-size: 1.6rem; }</style>", unsafe_allow_html=True)
    st.title("🗂️ Drill")
    if is_test_mode():
        st.warning("⚠️ **TEST MODE** - Using the test database (set TEST_MODE=false in .env for production)")

    if st.session_state.last_report is not None:
        render_session_report(st.session_state.last_report)

    config = st.session_state.config
    st.markdown(
        f"Algorithm: **{config.algorithm.value.upper()}**, "
        f"up to {config.max_items_per_session or 'unlimited'} items "
        f"or {config.max_duration_minutes or 'unlimited'} minutes."
    )

    col1, col2 = st.columns(2)

    with col1:
        if st.button("Start Drill", type="primary", use_container_width=True, help="Review items due today"):
            start_new_session(cram=False)
            st.rerun()

    with col2:
        if st.button(
            "Cram",
            type="secondary",
            use_container_width=True,
            help=f"Review everything not seen in the last {config.cram_hours:g} hours"
        ):
            start_new_session(cram=True)
            st.rerun()


def _render_suspended_screen() -> None:
    checkpoint = st.session_state.controller.suspended_checkpoint()
    st.subheader("Session suspended")

    if checkpoint.in_flight is not None:
        store = get_store()
        content = store.get_content(checkpoint.in_flight)
        with st.form("edit_item"):
            question = st.text_area("Question", content.question)
            answer = st.text_area("Answer", content.answer)
            if st.form_submit_button("Save item"):
                store.upsert_item(
                    checkpoint.in_flight,
                    question=question,
                    answer=answer,
                    tags=content.tags,
                )
                st.success("Item saved.")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Resume", type="primary", use_container_width=True):
            resume_session()
            st.rerun()
    with col2:
        if st.button("Discard", type="secondary", use_container_width=True):
            discard_suspended_session()
            st.rerun()


def _render_active_session() -> None:
    view = st.session_state.current_view

    st.markdown("<br>", unsafe_allow_html=True)
    if view.leech_warning:
        st.warning("This item is a leech: it has been failed many times.")

    if not st.session_state.show_answer:
        render_card_front(view)
        st.markdown("<br>", unsafe_allow_html=True)
        if st.button("Reveal Answer", use_container_width=True, type="primary"):
            st.session_state.show_answer = True
            st.rerun()
    else:
        render_card_back(view)
        st.markdown("<br>", unsafe_allow_html=True)

        response = render_feedback_buttons(key_suffix=f"{view.item_ref}_{view.counters.reviewed}")
        if response is not None:
            process_response(response)
            st.rerun()

    if is_test_mode():
        st.caption("TEST MODE - Using the test database")
