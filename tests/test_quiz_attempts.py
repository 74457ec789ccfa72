"""
tests/test_quiz_attempts.py

Unit tests for:
  execution/quiz/save_quiz_attempt.py
  execution/quiz/load_quiz_attempt.py

Uses an isolated on-disk database (tmp/test_quiz_attempts.db) that is
created fresh before each test and removed afterward.
"""

import os
import sys
import unittest
from pathlib import Path

# ---------------------------------------------------------------------------
# PYTHONPATH bootstrap
# ---------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from execution.common.result import ErrorKind                                # noqa: E402
from execution.db.sqlite import connect, init_db                             # noqa: E402
from execution.identity.resolve_identity import ANONYMOUS, Identified        # noqa: E402
from execution.quiz.load_quiz_attempt import load_quiz_attempt              # noqa: E402
from execution.quiz.save_quiz_attempt import save_quiz_attempt, _validate    # noqa: E402
from execution.quiz.score_attempt import QuizAttempt                         # noqa: E402

TEST_DB_PATH = str(REPO_ROOT / "tmp" / "test_quiz_attempts.db")
QUIZ = "ethics:week1:final-quiz"


def _submitted(answers: dict) -> QuizAttempt:
    return QuizAttempt(answers=answers, submitted=True)


class TestQuizAttempts(unittest.TestCase):

    def setUp(self):
        (REPO_ROOT / "tmp").mkdir(parents=True, exist_ok=True)
        conn = connect(TEST_DB_PATH)
        init_db(conn)
        conn.close()

    def tearDown(self):
        if os.path.exists(TEST_DB_PATH):
            os.remove(TEST_DB_PATH)

    def test_save_then_load(self):
        attempt = _submitted({"q1": 1, "q2": 0})
        saved = save_quiz_attempt(
            Identified("u1"), QUIZ, attempt, score=2, total=5, passed=False,
            submitted_at="2026-01-01T00:00:00+00:00", db_path=TEST_DB_PATH,
        )
        self.assertTrue(saved.ok)

        record = load_quiz_attempt(Identified("u1"), QUIZ, db_path=TEST_DB_PATH).value
        self.assertEqual(record.score, 2)
        self.assertEqual(record.total, 5)
        self.assertFalse(record.passed)
        self.assertEqual(record.answers, {"q1": 1, "q2": 0})
        self.assertEqual(record.submitted_at, "2026-01-01T00:00:00+00:00")

    def test_latest_submission_replaces_previous(self):
        save_quiz_attempt(Identified("u1"), QUIZ, _submitted({}), 1, 5, False, db_path=TEST_DB_PATH)
        save_quiz_attempt(Identified("u1"), QUIZ, _submitted({}), 4, 5, True, db_path=TEST_DB_PATH)
        record = load_quiz_attempt(Identified("u1"), QUIZ, db_path=TEST_DB_PATH).value
        self.assertEqual(record.score, 4)
        self.assertTrue(record.passed)

    def test_missing_record_is_none(self):
        result = load_quiz_attempt(Identified("u1"), QUIZ, db_path=TEST_DB_PATH)
        self.assertTrue(result.ok)
        self.assertIsNone(result.value)

    def test_anonymous(self):
        result = save_quiz_attempt(ANONYMOUS, QUIZ, _submitted({}), 0, 5, False, db_path=TEST_DB_PATH)
        self.assertIs(result.error, ErrorKind.UNAUTHENTICATED)
        self.assertIsNone(load_quiz_attempt(ANONYMOUS, QUIZ, db_path=TEST_DB_PATH).value)

    def test_unreadable_answers_are_dropped(self):
        save_quiz_attempt(Identified("u1"), QUIZ, _submitted({"q1": 0}), 1, 5, False, db_path=TEST_DB_PATH)
        conn = connect(TEST_DB_PATH)
        conn.execute("UPDATE assessments SET answers_json = '{broken'")
        conn.commit()
        conn.close()
        with self.assertLogs("execution.quiz.load_quiz_attempt", level="WARNING"):
            record = load_quiz_attempt(Identified("u1"), QUIZ, db_path=TEST_DB_PATH).value
        self.assertEqual(record.answers, {})
        self.assertEqual(record.score, 1)

    def test_validation(self):
        with self.assertRaises(ValueError):
            _validate("", _submitted({}), 0, 5)
        with self.assertRaises(ValueError):
            _validate(QUIZ, QuizAttempt(), 0, 5)  # not submitted
        with self.assertRaises(ValueError):
            _validate(QUIZ, _submitted({}), 6, 5)
        with self.assertRaises(ValueError):
            _validate(QUIZ, _submitted({}), True, 5)


if __name__ == "__main__":
    unittest.main()
