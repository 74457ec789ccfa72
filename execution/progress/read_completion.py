"""
execution/progress/read_completion.py

Reads the completion record for one (learner_id, unit_key) pair.

Read-only. "Not found" is a normal answer (NOT_FOUND), not an error; only
store failures produce a failed Result.
"""

import logging
import sqlite3

from execution.common.result import Result, err_result, ok_result
from execution.course.course_registry import is_valid_unit_key
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.progress.completion_record import NOT_FOUND, CompletionRecord

logger = logging.getLogger(__name__)


def read_completion(
    learner_id: str,
    unit_key: str,
    db_path: str | None = None,
) -> Result:
    """Return the stored completion record for a learner and content unit.

    Args:
        learner_id: Opaque id of an identified learner.
        unit_key:   Content-unit key, e.g. "ethics:week1:privacy".
        db_path:    Path to the SQLite file; defaults to get_db_path().

    Returns:
        ok Result whose value is a CompletionRecord, or NOT_FOUND when the
        learner never completed the unit. A failed Result carries
        REMOTE_UNAVAILABLE or TIMEOUT.

    Raises:
        ValueError: If learner_id is blank or unit_key is malformed.
    """
    if not isinstance(learner_id, str) or not learner_id.strip():
        raise ValueError(f"read_completion: 'learner_id' must be a non-empty string, got {learner_id!r}")
    if not is_valid_unit_key(unit_key):
        raise ValueError(f"Invalid unit_key: {unit_key!r}")

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            row = conn.execute(
                """
                SELECT learner_id, unit_key, completed, completed_at
                FROM   tracking
                WHERE  learner_id = ? AND unit_key = ?
                """,
                (learner_id, unit_key),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        kind = classify_db_error(exc)
        logger.error("read_completion failed for %s/%s: %s", learner_id, unit_key, kind.value, exc_info=True)
        return err_result(kind, str(exc))

    if row is None:
        return ok_result(NOT_FOUND)

    return ok_result(CompletionRecord(
        learner_id=row["learner_id"],
        unit_key=row["unit_key"],
        completed=bool(row["completed"]),
        completed_at=row["completed_at"],
    ))
