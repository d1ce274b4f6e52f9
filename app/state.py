"""
Streamlit session state and database initialization helpers.
"""

from __future__ import annotations

import streamlit as st

from drill.config import configure_logging, load_config
from drill.session_controller import SessionController
from drill.store.database import SqlItemStore


@st.cache_resource
def get_store() -> SqlItemStore:
    """
    Open the SQL store and create missing tables (cached per server process).
    """
    configure_logging()
    store = SqlItemStore()
    store.init_db()
    return store


def ensure_session_state() -> None:
    """
    Populate Streamlit session_state with defaults.
    """
    if "config" not in st.session_state:
        st.session_state.config = load_config()
    if "controller" not in st.session_state:
        st.session_state.controller = SessionController(get_store(), st.session_state.config)
    if "current_view" not in st.session_state:
        st.session_state.current_view = None
    if "show_answer" not in st.session_state:
        st.session_state.show_answer = False
    if "last_report" not in st.session_state:
        st.session_state.last_report = None
