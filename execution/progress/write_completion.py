"""
execution/progress/write_completion.py

Marks a content unit complete for the current learner.

Upserts on PRIMARY KEY (learner_id, unit_key): the first write inserts the
record, later writes overwrite completed_at in place. completed is only ever
written as 1, so no call here can un-complete a unit.

Anonymous learners are refused with UNAUTHENTICATED before the store is
touched. Store failures are returned, not retried and not queued.
"""

import logging
import sqlite3
from datetime import datetime, timezone

from execution.common.result import ErrorKind, Result, err_result, ok_result
from execution.course.course_registry import is_valid_unit_key
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity
from execution.progress.completion_record import CompletionRecord

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def write_completion(
    identity: LearnerIdentity,
    unit_key: str,
    completed_at: str | None = None,
    db_path: str | None = None,
) -> Result:
    """Upsert a completed record for (identity.id, unit_key).

    Args:
        identity:     Result of resolve_identity().
        unit_key:     Content-unit key, e.g. "ethics:week1:privacy".
        completed_at: ISO 8601 timestamp; defaults to current UTC if None.
        db_path:      Path to the SQLite file; defaults to get_db_path().

    Returns:
        ok Result whose value is the written CompletionRecord, or a failed
        Result with UNAUTHENTICATED, REMOTE_UNAVAILABLE or TIMEOUT.

    Raises:
        ValueError: If unit_key is malformed (checked before anything else).
    """
    if not is_valid_unit_key(unit_key):
        raise ValueError(f"Invalid unit_key: {unit_key!r}")

    if not isinstance(identity, Identified):
        logger.debug("Refusing anonymous completion of %s", unit_key)
        return err_result(ErrorKind.UNAUTHENTICATED, "Sign in to save progress.")

    if completed_at is None:
        completed_at = _utc_now()

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            conn.execute(
                """
                INSERT INTO tracking (learner_id, unit_key, completed, completed_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT (learner_id, unit_key) DO UPDATE
                SET completed    = 1,
                    completed_at = excluded.completed_at
                """,
                (identity.id, unit_key, completed_at),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        kind = classify_db_error(exc)
        logger.error("write_completion failed for %s/%s: %s", identity.id, unit_key, kind.value, exc_info=True)
        return err_result(kind, str(exc))

    return ok_result(CompletionRecord(
        learner_id=identity.id,
        unit_key=unit_key,
        completed=True,
        completed_at=completed_at,
    ))
