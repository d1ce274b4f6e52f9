"""
Drill - Main App

Streamlit front end for the spaced-repetition drill engine.

Run with:
    streamlit run app/streamlit_app.py
"""

import streamlit as st

from app.router import PAGES
from app.state import ensure_session_state, get_store
from app.ui import render_session_stats
from app.session_controller import quit_session


# ---- Page Setup ----

st.set_page_config(
    page_title="Drill",
    page_icon="🗂️",
    layout="centered"
)

get_store()
ensure_session_state()


# ---- Main App ----

def main():
    """Main app entry point."""
    quit_clicked = render_session_stats()
    if quit_clicked:
        quit_session()
        st.rerun()

    tabs = st.tabs([page.title for page in PAGES])
    for tab, page in zip(tabs, PAGES):
        with tab:
            page.render()


if __name__ == "__main__":
    main()
