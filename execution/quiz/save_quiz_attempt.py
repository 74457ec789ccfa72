"""
execution/quiz/save_quiz_attempt.py

Records the latest submitted quiz attempt for a learner.

Upserts on PRIMARY KEY (learner_id, quiz_key): each submission overwrites
the previous one. The record is for display ("last recorded score") only;
gating always uses the in-memory attempt.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone

from execution.common.result import ErrorKind, Result, err_result, ok_result
from execution.db.sqlite import classify_db_error, connect, init_db
from execution.identity.resolve_identity import Identified, LearnerIdentity
from execution.quiz.score_attempt import QuizAttempt

logger = logging.getLogger(__name__)


def save_quiz_attempt(
    identity: LearnerIdentity,
    quiz_key: str,
    attempt: QuizAttempt,
    score: int,
    total: int,
    passed: bool,
    submitted_at: str | None = None,
    db_path: str | None = None,
) -> Result:
    """Insert or replace the attempt row for (identity.id, quiz_key).

    Args:
        identity:     Result of resolve_identity().
        quiz_key:     Key of the quiz, e.g. "ethics:week1:final-quiz".
        attempt:      The submitted attempt; its answers are stored as JSON.
        score:        Correct answers in this attempt.
        total:        Number of questions in the quiz.
        passed:       Whether the attempt met the unit's gate.
        submitted_at: ISO 8601 timestamp; defaults to current UTC if None.
        db_path:      Path to the SQLite file; defaults to get_db_path().

    Returns:
        ok Result, or a failed Result with UNAUTHENTICATED,
        REMOTE_UNAVAILABLE or TIMEOUT.

    Raises:
        ValueError: If quiz_key is blank, the attempt is not submitted, or
                    score is outside [0, total].
    """
    _validate(quiz_key, attempt, score, total)

    if not isinstance(identity, Identified):
        return err_result(ErrorKind.UNAUTHENTICATED, "Sign in to record your score.")

    if submitted_at is None:
        submitted_at = datetime.now(timezone.utc).isoformat()

    try:
        conn = connect(db_path)
        try:
            init_db(conn)
            conn.execute(
                """
                INSERT OR REPLACE INTO assessments
                    (learner_id, quiz_key, score, total, passed, answers_json, submitted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    identity.id,
                    quiz_key,
                    score,
                    total,
                    1 if passed else 0,
                    json.dumps(attempt.answers, sort_keys=True),
                    submitted_at,
                ),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        kind = classify_db_error(exc)
        logger.error("save_quiz_attempt failed for %s/%s: %s", identity.id, quiz_key, kind.value, exc_info=True)
        return err_result(kind, str(exc))

    return ok_result()


def _validate(quiz_key: object, attempt: object, score: object, total: object) -> None:
    """Raise ValueError if any argument fails type or range rules."""
    if not isinstance(quiz_key, str) or not quiz_key.strip():
        raise ValueError(f"save_quiz_attempt: 'quiz_key' must be a non-empty string, got {quiz_key!r}")
    if not isinstance(attempt, QuizAttempt) or not attempt.submitted:
        raise ValueError("save_quiz_attempt: 'attempt' must be a submitted QuizAttempt")
    for name, value in (("score", score), ("total", total)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"save_quiz_attempt: '{name}' must be an int, got {type(value).__name__}")
    if total < 1 or not (0 <= score <= total):
        raise ValueError(f"save_quiz_attempt: score {score} is out of range [0, {total}]")
