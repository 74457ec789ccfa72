"""
execution/progress/summarize_course_progress.py

Derives a learner's progress through one course from their completion
records: how many units are done, the completion percentage, and the first
unit still open. Read-only; nothing is persisted.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from execution.common.result import Result, err_result, ok_result
from execution.course.load_course_map import CourseUnit
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourseProgress:
    course_id: str
    completed_units: frozenset[str]
    total_units: int
    completion_pct: float
    next_unit_key: str | None


def summarize_course_progress(
    identity: LearnerIdentity,
    course_id: str,
    course_map: dict[str, CourseUnit],
    db_path: str | None = None,
) -> Result:
    """Return a CourseProgress for *identity* over the units in *course_map*.

    Anonymous learners get an empty summary without touching the store.
    Completion records for keys outside the course map are ignored.

    Args:
        identity:   Result of resolve_identity().
        course_id:  Course the map belongs to (e.g. "ethics").
        course_map: Ordered unit_key -> CourseUnit mapping from load_course_map().
        db_path:    Path to the SQLite file; defaults to get_db_path().

    Returns:
        ok Result with a CourseProgress value, or a failed Result carrying
        REMOTE_UNAVAILABLE or TIMEOUT.
    """
    unit_keys = list(course_map)
    done: set[str] = set()

    if isinstance(identity, Identified):
        try:
            conn = connect(db_path)
            try:
                init_db(conn)
                rows = conn.execute(
                    """
                    SELECT unit_key
                    FROM   tracking
                    WHERE  learner_id = ? AND completed = 1 AND unit_key LIKE ?
                    """,
                    (identity.id, f"{course_id}:%"),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            kind = classify_db_error(exc)
            logger.error("summarize_course_progress failed for %s: %s", identity.id, kind.value, exc_info=True)
            return err_result(kind, str(exc))

        done = {row["unit_key"] for row in rows} & set(unit_keys)

    total = len(unit_keys)
    pct = (len(done) / total) * 100.0 if total else 0.0
    next_key = next((k for k in unit_keys if k not in done), None)

    return ok_result(CourseProgress(
        course_id=course_id,
        completed_units=frozenset(done),
        total_units=total,
        completion_pct=pct,
        next_unit_key=next_key,
    ))
