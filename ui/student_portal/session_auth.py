"""
ui/student_portal/session_auth.py

Auth collaborator for the Streamlit lesson pages.

The signed-in learner lives in st.session_state["auth_user"] as
{"id": ..., "email": ...}. get_current_user() has no side effects; the
sidebar sign-in form is the only writer.
"""

from __future__ import annotations

import streamlit as st

_SESSION_KEY = "auth_user"


def get_current_user() -> dict | None:
    """Return the signed-in user dict for this browser session, or None."""
    user = st.session_state.get(_SESSION_KEY)
    return dict(user) if isinstance(user, dict) else None


def sign_in(learner_id: str, email: str | None = None) -> None:
    """Remember *learner_id* as the signed-in user for this session."""
    learner_id = learner_id.strip()
    if not learner_id:
        raise ValueError("sign_in: learner id is required")
    st.session_state[_SESSION_KEY] = {"id": learner_id, "email": (email or "").strip() or None}


def sign_out() -> None:
    st.session_state.pop(_SESSION_KEY, None)
