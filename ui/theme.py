"""
ui/theme.py

Shared look for the lesson pages.
Call apply_course_theme() immediately after st.set_page_config() in any
page to inject brand styling and render the sticky header bar.

Brand tokens:
    primary green:  #16A34A
    dark text:      #111827
    light gray:     #F9FAFB
    border gray:    #E5E7EB
    amber notice:   #B45309
"""

from __future__ import annotations

import html

import streamlit as st

# ---------------------------------------------------------------------------
# Brand tokens
# ---------------------------------------------------------------------------
_PRIMARY_GREEN = "#16A34A"
_DARK_TEXT     = "#111827"
_LIGHT_GRAY    = "#F9FAFB"
_BORDER_GRAY   = "#E5E7EB"
_AMBER         = "#B45309"

# Class toggled on the table-of-contents entry the scrollspy marks active.
TOC_ACTIVE_CLASS = "toc-active"

# ---------------------------------------------------------------------------
# CSS: injected once per page render.
# Double braces {{ }} produce literal CSS braces in the f-string.
# ---------------------------------------------------------------------------
_CSS = f"""
<style>
.block-container {{
    padding-top: 0.75rem !important;
    padding-bottom: 2rem !important;
}}

#MainMenu {{ visibility: hidden; }}
footer {{ visibility: hidden; }}

section[data-testid="stSidebar"] > div:first-child {{
    background-color: {_LIGHT_GRAY};
    padding-top: 0.75rem;
}}

/* On-this-page list */
.toc-list {{ list-style: none; padding-left: 0; margin: 0; }}
.toc-list li {{
    border-left: 3px solid transparent;
    padding: 0.3rem 0.6rem;
    color: #4B5563;
    font-size: 0.92rem;
}}
.toc-list li.{TOC_ACTIVE_CLASS} {{
    border-left-color: {_PRIMARY_GREEN};
    color: {_DARK_TEXT};
    font-weight: 600;
    background: white;
}}

.stButton > button[kind="primary"] {{
    background-color: {_PRIMARY_GREEN} !important;
    color: white !important;
    border: none !important;
    border-radius: 10px !important;
}}
.stButton > button {{
    border-radius: 10px !important;
}}

.sign-in-hint {{
    color: {_AMBER};
    font-size: 0.85rem;
}}

hr {{
    border: none !important;
    border-top: 1px solid {_BORDER_GRAY} !important;
    margin: 1rem 0 !important;
}}
</style>
"""


def apply_course_theme(
    page_title: str,
    subtitle: str | None = None,
    learner_name: str | None = None,
) -> None:
    """Inject brand CSS and render the shared sticky top bar.

    Must be called immediately after st.set_page_config() in each page.
    """
    st.markdown(_CSS, unsafe_allow_html=True)

    subtitle_html = (
        f"<div style='color:#6B7280; font-size:0.85rem;'>{html.escape(subtitle)}</div>"
        if subtitle else
        ""
    )
    learner_html = (
        f"<div style='margin-left:auto; color:{_DARK_TEXT}; font-size:0.9rem;'>"
        f"Hi, {html.escape(learner_name)}</div>"
        if learner_name else
        ""
    )

    st.markdown(
        f"""
        <div style="
            position: sticky;
            top: 0;
            z-index: 999;
            background: white;
            border-bottom: 3px solid {_PRIMARY_GREEN};
            padding: 0.6rem 1.25rem;
            margin: -0.75rem -1rem 1.0rem -1rem;
            display: flex;
            align-items: center;
            gap: 1rem;
        ">
            <div style="display:flex; flex-direction:column; line-height:1.15;">
                <div style="color:{_DARK_TEXT}; font-size:1.2rem; font-weight:650;">
                    {html.escape(page_title)}
                </div>
                {subtitle_html}
            </div>
            {learner_html}
        </div>
        """,
        unsafe_allow_html=True,
    )


def toc_html(entries: list[tuple[str, str]], active_id: str | None) -> str:
    """Return the on-this-page list; only the active entry carries TOC_ACTIVE_CLASS.

    Args:
        entries:   (section_id, label) pairs in document order.
        active_id: Section id the scrollspy currently marks active.
    """
    items = []
    for sid, label in entries:
        cls = f' class="{TOC_ACTIVE_CLASS}"' if sid == active_id else ""
        items.append(f'<li id="toc-{html.escape(sid)}"{cls}>{html.escape(label)}</li>')
    return '<ul class="toc-list">' + "".join(items) + "</ul>"
