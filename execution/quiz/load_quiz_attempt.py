"""
execution/quiz/load_quiz_attempt.py

Reads the last recorded quiz attempt for a learner. Read-only.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass

from execution.common.result import Result, err_result, ok_result
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizAttemptRecord:
    learner_id: str
    quiz_key: str
    score: int
    total: int
    passed: bool
    answers: dict[str, int]
    submitted_at: str | None


def load_quiz_attempt(
    identity: LearnerIdentity,
    quiz_key: str,
    db_path: str | None = None,
) -> Result:
    """Return the stored attempt for (identity.id, quiz_key).

    Returns:
        ok Result whose value is a QuizAttemptRecord, or None when there is
        no record or the learner is anonymous. Store failures return a
        failed Result.
    """
    if not isinstance(identity, Identified):
        return ok_result(None)

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            row = conn.execute(
                """
                SELECT score, total, passed, answers_json, submitted_at
                FROM   assessments
                WHERE  learner_id = ? AND quiz_key = ?
                """,
                (identity.id, quiz_key),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        kind = classify_db_error(exc)
        logger.error("load_quiz_attempt failed for %s/%s: %s", identity.id, quiz_key, kind.value, exc_info=True)
        return err_result(kind, str(exc))

    if row is None:
        return ok_result(None)

    try:
        answers = json.loads(row["answers_json"] or "{}")
    except json.JSONDecodeError:
        logger.warning("Discarding unreadable answers for %s/%s", identity.id, quiz_key)
        answers = {}

    return ok_result(QuizAttemptRecord(
        learner_id=identity.id,
        quiz_key=quiz_key,
        score=row["score"],
        total=row["total"],
        passed=bool(row["passed"]),
        answers=answers if isinstance(answers, dict) else {},
        submitted_at=row["submitted_at"],
    ))
