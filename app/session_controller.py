"""
Session lifecycle helpers for Streamlit app.

Thin glue between button clicks and drill.session_controller: every
handler calls one step of the controller and refreshes the cached view.
"""

from __future__ import annotations

import logging

import streamlit as st

from drill.errors import DrillError
from drill.session_controller import Action, SessionController, SessionStatus

logger = logging.getLogger(__name__)


def _controller() -> SessionController:
    return st.session_state.controller


def _load_next_item() -> None:
    """
    Fetch the next item, or store the report once the session is over.
    """
    controller = _controller()
    st.session_state.show_answer = False
    if controller.status == SessionStatus.REVIEWING:
        st.session_state.current_view = controller.next_item()
    else:
        st.session_state.current_view = None
    if st.session_state.current_view is None:
        st.session_state.last_report = controller.report


def start_new_session(cram: bool = False) -> None:
    """
    Start a new drill session (normal or cram).
    """
    try:
        _controller().start(cram=cram)
    except DrillError as exc:
        logger.error("Could not start session: %s", exc)
        st.error(f"Could not start session: {exc}")
        return
    _load_next_item()


def resume_session() -> None:
    try:
        _controller().resume()
    except DrillError as exc:
        st.error(f"Could not resume session: {exc}")
        return
    _load_next_item()


def discard_suspended_session() -> None:
    _controller().discard_suspended()


def process_response(response) -> None:
    """
    Submit a quality (0-5) or an Action for the current item.
    """
    _controller().submit(response)
    _load_next_item()


def quit_session() -> None:
    if _controller().status == SessionStatus.REVIEWING and st.session_state.current_view is not None:
        process_response(Action.QUIT)
