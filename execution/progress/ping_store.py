"""
execution/progress/ping_store.py

Light connectivity check against the tracking table, used by the lesson
page's "Check connection" button. Works on an empty table.
"""

import logging
import sqlite3

from execution.common.result import ErrorKind, Result, err_result, ok_result
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity

logger = logging.getLogger(__name__)


def ping_store(identity: LearnerIdentity, db_path: str | None = None) -> Result:
    """Run a one-row read scoped to the learner and report whether it worked.

    Returns:
        ok Result (value None) when the store answered; UNAUTHENTICATED for
        anonymous learners; REMOTE_UNAVAILABLE or TIMEOUT otherwise.
    """
    if not isinstance(identity, Identified):
        return err_result(ErrorKind.UNAUTHENTICATED, "Sign in first.")

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            conn.execute(
                "SELECT unit_key FROM tracking WHERE learner_id = ? LIMIT 1",
                (identity.id,),
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        kind = classify_db_error(exc)
        logger.error("ping_store failed: %s", kind.value, exc_info=True)
        return err_result(kind, str(exc))

    return ok_result(message="Connected")
