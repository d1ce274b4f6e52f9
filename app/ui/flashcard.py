"""
Flashcard UI Component

Renders an item's question and answer as cards.
"""

from __future__ import annotations

import html

import streamlit as st

from app.ui.flashcard_style import (
    BACK_STYLE,
    CARD_MIN_HEIGHT,
    CARD_PADDING,
    FRONT_STYLE,
    LEECH_FRONT_STYLE,
    FlashcardStyle,
)
from drill.session_controller import ItemView


def render_flashcard(
    main_text: str,
    subtitle: str = "",
    corner_text: str = "",
    style: FlashcardStyle = FRONT_STYLE,
) -> None:
    """
    Render a flashcard.

    Args:
        main_text: Primary text (center, large)
        subtitle: Optional secondary text (below main, smaller)
        corner_text: Optional text in top-right corner
        style: Style preset
    """
    corner_html = ""
    if corner_text:
        corner_html = (
            f'<div style="position: absolute; top: 15px; right: 20px; '
            f'font-size: {style.corner_font_size}; color: {style.corner_color}; '
            f'font-style: italic;">{html.escape(corner_text)}</div>'
        )

    main_html = (
        f'<h1 style="font-size: {style.main_font_size}; color: {style.main_color}; '
        'font-weight: normal; margin: 0; white-space: pre-wrap; text-align: center; '
        'line-height: 1.4; max-width: 100%; overflow-wrap: anywhere;">'
        f"{html.escape(main_text)}</h1>"
    )

    subtitle_html = ""
    if subtitle:
        subtitle_html = (
            f'<p style="font-size: {style.subtitle_font_size}; color: {style.subtitle_color}; '
            'font-style: italic; margin: 15px 0 0 0; text-align: center; '
            f'line-height: 1.4; white-space: pre-wrap;">{html.escape(subtitle)}</p>'
        )

    card_html = (
        f'<div style="background-color: {style.bg_color}; padding: {CARD_PADDING}; '
        'border-radius: 15px; text-align: center; box-shadow: 0 4px 6px '
        f'rgba(0, 0, 0, 0.1); min-height: {CARD_MIN_HEIGHT}; display: flex; '
        'flex-direction: column; align-items: center; justify-content: center; '
        f'position: relative;">{corner_html}{main_html}{subtitle_html}</div>'
    )

    st.markdown(card_html, unsafe_allow_html=True)


def _corner_text(view: ItemView) -> str:
    return " ".join(f":{tag}:" for tag in view.content.tags)


def render_card_front(view: ItemView) -> None:
    style = LEECH_FRONT_STYLE if view.leech_warning else FRONT_STYLE
    render_flashcard(view.content.question, corner_text=_corner_text(view), style=style)


def render_card_back(view: ItemView) -> None:
    render_flashcard(
        view.content.answer or "(no answer)",
        subtitle=view.content.question,
        corner_text=_corner_text(view),
        style=BACK_STYLE,
    )
