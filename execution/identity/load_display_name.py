"""
execution/identity/load_display_name.py

Picks the name shown in the page header for the current learner:
full_name, then username, then the local part of the email, then "Learner".

Read-only. A store failure falls back to the default name.
"""

import logging
import sqlite3

from execution.db.sqlite import connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Learner"


def load_display_name(identity: LearnerIdentity, db_path: str | None = None) -> str:
    """Return the display name for *identity*.

    Args:
        identity: Result of resolve_identity().
        db_path:  Path to the SQLite file; defaults to get_db_path().

    Returns:
        A non-empty display name. Anonymous learners get DEFAULT_DISPLAY_NAME.
    """
    if not isinstance(identity, Identified):
        return DEFAULT_DISPLAY_NAME

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            row = conn.execute(
                "SELECT username, full_name, email FROM profiles WHERE learner_id = ?",
                (identity.id,),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error:
        logger.error("Could not load profile for %s", identity.id, exc_info=True)
        return DEFAULT_DISPLAY_NAME

    if row is None:
        return DEFAULT_DISPLAY_NAME
    return pick_display_name(row["full_name"], row["username"], row["email"])


def pick_display_name(full_name: str | None, username: str | None, email: str | None) -> str:
    """Apply the full_name -> username -> email local part -> default fallback."""
    for candidate in (full_name, username):
        if candidate and candidate.strip():
            return candidate.strip()
    if email and "@" in email:
        local = email.split("@", 1)[0].strip()
        if local:
            return local
    return DEFAULT_DISPLAY_NAME
