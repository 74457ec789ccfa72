"""
tests/test_course_navigator.py

End-to-end tests for execution/navigation/course_navigator.py against the
real ethics course content and an isolated database
(tmp/test_course_navigator.db).

Store failures and late replies are simulated by patching the functions
the navigator imports.
"""

import os
import sys
import unittest
from pathlib import Path
from unittest import mock

# ---------------------------------------------------------------------------
# PYTHONPATH bootstrap
# ---------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from execution.common.result import ErrorKind, err_result, ok_result        # noqa: E402
from execution.course.load_course_map import load_course_map                # noqa: E402
from execution.course.load_quiz_library import load_quiz_library            # noqa: E402
from execution.db.sqlite import connect, init_db                            # noqa: E402
from execution.gating.can_complete import BLOCKED_REASON                    # noqa: E402
from execution.identity.resolve_identity import Identified                  # noqa: E402
from execution.navigation.course_navigator import (                         # noqa: E402
    SAVE_FAILED_MESSAGE,
    SIGN_IN_MESSAGE,
    CourseNavigator,
    NavigatorDeps,
    NavState,
    QuizState,
    user_message,
)
from execution.progress.completion_record import is_completed               # noqa: E402
from execution.progress.read_completion import read_completion              # noqa: E402
from execution.progress.write_completion import write_completion            # noqa: E402
from execution.quiz.load_quiz_attempt import load_quiz_attempt              # noqa: E402

TEST_DB_PATH = str(REPO_ROOT / "tmp" / "test_course_navigator.db")
LESSON = "ethics:week1:privacy"
WRAP_UP = "ethics:week1:wrap-up"
NAV_MODULE = "execution.navigation.course_navigator"


def _signed_in(learner_id: str = "u1"):
    return lambda: {"id": learner_id}


def _anonymous():
    return None


class _NavigatorTestBase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.course_map = load_course_map("ethics")
        cls.quiz_library = load_quiz_library("ethics")

    def setUp(self):
        (REPO_ROOT / "tmp").mkdir(parents=True, exist_ok=True)
        conn = connect(TEST_DB_PATH)
        init_db(conn)
        conn.close()

    def tearDown(self):
        if os.path.exists(TEST_DB_PATH):
            os.remove(TEST_DB_PATH)

    def _navigator(self, unit_key: str, get_current_user=None) -> CourseNavigator:
        unit = self.course_map[unit_key]
        quiz = self.quiz_library.get(unit.quiz_id) if unit.quiz_id else None
        return CourseNavigator(
            unit,
            NavigatorDeps(
                get_current_user=get_current_user or _signed_in(),
                db_path=TEST_DB_PATH,
                questions=list(quiz["questions"]) if quiz else [],
                clock=lambda: "2026-03-01T12:00:00+00:00",
            ),
        )

    def _answer(self, nav: CourseNavigator, correct: int) -> None:
        """Answer the first *correct* questions right and the rest wrong."""
        for i, q in enumerate(nav._deps.questions):
            right = q["correct_index"]
            wrong = (right + 1) % len(q["options"])
            nav.select_answer(q["question_id"], right if i < correct else wrong)


# ---------------------------------------------------------------------------
# 1. Ungated lesson
# ---------------------------------------------------------------------------

class TestUngatedLesson(_NavigatorTestBase):

    def test_complete_ungated_lesson(self):
        nav = self._navigator(LESSON)
        self.assertIs(nav.state, NavState.LOADING)
        nav.load()
        self.assertIs(nav.state, NavState.READY)
        self.assertEqual(nav.identity, Identified("u1"))
        self.assertFalse(nav.completed)

        result = nav.mark_complete()

        self.assertTrue(result.ok)
        self.assertTrue(nav.completed)
        self.assertTrue(is_completed(read_completion("u1", LESSON, db_path=TEST_DB_PATH).value))

    def test_load_reflects_existing_completion(self):
        write_completion(Identified("u1"), LESSON, db_path=TEST_DB_PATH)
        nav = self._navigator(LESSON)
        nav.load()
        self.assertTrue(nav.completed)
        with mock.patch(f"{NAV_MODULE}.write_completion") as fake_write:
            self.assertTrue(nav.mark_complete().ok)
        fake_write.assert_not_called()

    def test_advance_is_open_on_ungated_units(self):
        nav = self._navigator(LESSON)
        nav.load()
        result = nav.advance()
        self.assertTrue(result.ok)
        self.assertEqual(result.value, self.course_map[LESSON].next_unit_key)

    def test_tracker_covers_unit_sections(self):
        nav = self._navigator(LESSON)
        self.assertEqual(nav.tracker.active_section_id, self.course_map[LESSON].sections[0].id)


# ---------------------------------------------------------------------------
# 2. Gated wrap-up
# ---------------------------------------------------------------------------

class TestGatedWrapUp(_NavigatorTestBase):

    def test_three_correct_blocked_then_four_allowed(self):
        nav = self._navigator(WRAP_UP)
        nav.load()

        self._answer(nav, 3)
        self.assertEqual(nav.submit_quiz().value, 3)
        self.assertIs(nav.quiz_state, QuizState.SUBMITTED)
        self.assertFalse(nav.quiz_passed)

        blocked = nav.mark_complete()
        self.assertFalse(blocked.ok)
        self.assertIs(blocked.error, ErrorKind.GATE_BLOCKED)
        self.assertEqual(blocked.message, BLOCKED_REASON)
        self.assertFalse(nav.completed)
        self.assertFalse(read_completion("u1", WRAP_UP, db_path=TEST_DB_PATH).value)

        self._answer(nav, 4)
        self.assertIs(nav.quiz_state, QuizState.NOT_ATTEMPTED)
        self.assertEqual(nav.submit_quiz().value, 4)
        self.assertTrue(nav.gate_decision().allowed)

        done = nav.mark_complete()
        self.assertTrue(done.ok)
        self.assertTrue(nav.completed)
        self.assertTrue(is_completed(read_completion("u1", WRAP_UP, db_path=TEST_DB_PATH).value))

    def test_changed_answers_need_resubmission(self):
        nav = self._navigator(WRAP_UP)
        nav.load()
        self._answer(nav, 5)
        nav.submit_quiz()
        first = nav.attempt.answers["q1"]
        nav.select_answer("q1", first)  # even re-selecting clears the submission
        self.assertIsNone(nav.last_score)
        self.assertIs(nav.mark_complete().error, ErrorKind.GATE_BLOCKED)

    def test_advance_blocked_until_completed(self):
        nav = self._navigator("ethics:week1:wrap-up")
        nav.load()
        self.assertIs(nav.advance().error, ErrorKind.GATE_BLOCKED)
        self._answer(nav, 5)
        nav.submit_quiz()
        nav.mark_complete()
        self.assertTrue(nav.advance().ok)

    def test_submission_is_recorded_for_display(self):
        nav = self._navigator(WRAP_UP)
        nav.load()
        self._answer(nav, 4)
        nav.submit_quiz()
        record = load_quiz_attempt(Identified("u1"), nav.quiz_key, db_path=TEST_DB_PATH).value
        self.assertEqual(record.score, 4)
        self.assertTrue(record.passed)
        self.assertEqual(record.submitted_at, "2026-03-01T12:00:00+00:00")

    def test_stored_attempt_does_not_open_gate(self):
        first = self._navigator(WRAP_UP)
        first.load()
        self._answer(first, 5)
        first.submit_quiz()

        fresh = self._navigator(WRAP_UP)
        fresh.load()
        self.assertIs(fresh.quiz_state, QuizState.NOT_ATTEMPTED)
        self.assertFalse(fresh.gate_decision().allowed)

    def test_reset_quiz(self):
        nav = self._navigator(WRAP_UP)
        nav.load()
        self._answer(nav, 5)
        nav.submit_quiz()
        nav.reset_quiz()
        self.assertIs(nav.quiz_state, QuizState.NOT_ATTEMPTED)
        self.assertEqual(nav.attempt.answers, {})

    def test_failed_score_save_keeps_score(self):
        nav = self._navigator(WRAP_UP)
        nav.load()
        self._answer(nav, 4)
        with mock.patch(
            f"{NAV_MODULE}.save_quiz_attempt",
            return_value=err_result(ErrorKind.TIMEOUT, "locked"),
        ):
            result = nav.submit_quiz()
        self.assertFalse(result.ok)
        self.assertEqual(nav.last_score, 4)
        self.assertTrue(nav.gate_decision().allowed)
        self.assertIsNotNone(nav.notice)


# ---------------------------------------------------------------------------
# 3. Anonymous learner
# ---------------------------------------------------------------------------

class TestAnonymousLearner(_NavigatorTestBase):

    def test_content_available_but_completion_refused(self):
        nav = self._navigator(LESSON, get_current_user=_anonymous)
        nav.load()
        self.assertIs(nav.state, NavState.READY)
        self.assertTrue(nav.needs_sign_in)

        result = nav.mark_complete()
        self.assertIs(result.error, ErrorKind.UNAUTHENTICATED)
        self.assertEqual(nav.notice, SIGN_IN_MESSAGE)
        self.assertFalse(nav.completed)

    def test_anonymous_quiz_is_scored_not_saved(self):
        nav = self._navigator(WRAP_UP, get_current_user=_anonymous)
        nav.load()
        self._answer(nav, 4)
        with mock.patch(f"{NAV_MODULE}.save_quiz_attempt") as fake_save:
            self.assertEqual(nav.submit_quiz().value, 4)
        fake_save.assert_not_called()

    def test_failing_auth_is_anonymous(self):
        def broken():
            raise RuntimeError("auth down")

        nav = self._navigator(LESSON, get_current_user=broken)
        with self.assertLogs("execution.identity.resolve_identity", level="WARNING"):
            nav.load()
        self.assertTrue(nav.needs_sign_in)


# ---------------------------------------------------------------------------
# 4. Store failures and lifecycle
# ---------------------------------------------------------------------------

class TestFailuresAndLifecycle(_NavigatorTestBase):

    def test_failed_write_keeps_state(self):
        nav = self._navigator(LESSON)
        nav.load()
        with mock.patch(
            f"{NAV_MODULE}.write_completion",
            return_value=err_result(ErrorKind.REMOTE_UNAVAILABLE, "down"),
        ):
            result = nav.mark_complete()
        self.assertFalse(result.ok)
        self.assertFalse(nav.completed)
        self.assertEqual(nav.notice, SAVE_FAILED_MESSAGE)

        # retry succeeds against the real store
        self.assertTrue(nav.mark_complete().ok)
        self.assertTrue(nav.completed)
        self.assertIsNone(nav.notice)

    def test_failed_read_still_renders(self):
        nav = self._navigator(LESSON)
        with mock.patch(
            f"{NAV_MODULE}.read_completion",
            return_value=err_result(ErrorKind.TIMEOUT, "locked"),
        ):
            nav.load()
        self.assertIs(nav.state, NavState.READY)
        self.assertFalse(nav.completed)
        self.assertIsNotNone(nav.notice)

    def test_reply_after_dispose_is_ignored(self):
        nav = self._navigator(LESSON)
        nav.load()

        def late_write(identity, unit_key, completed_at=None, db_path=None):
            nav.dispose()
            return write_completion(identity, unit_key, completed_at=completed_at, db_path=db_path)

        with mock.patch(f"{NAV_MODULE}.write_completion", side_effect=late_write):
            result = nav.mark_complete()

        self.assertTrue(result.ok)
        self.assertFalse(nav.alive)
        self.assertFalse(nav.completed)
        self.assertFalse(nav.tracker.observing)

    def test_dispose_during_load(self):
        holder = {}

        def lookup():
            holder["nav"].dispose()
            return {"id": "u1"}

        nav = self._navigator(LESSON, get_current_user=lookup)
        holder["nav"] = nav
        nav.load()
        self.assertIs(nav.state, NavState.LOADING)

    def test_disposed_navigator_keeps_quiz_state(self):
        nav = self._navigator(WRAP_UP)
        nav.load()
        self._answer(nav, correct=5)
        nav.dispose()

        with mock.patch(f"{NAV_MODULE}.save_quiz_attempt") as fake_save:
            result = nav.submit_quiz()
        fake_save.assert_not_called()
        self.assertEqual(result.value, 5)
        self.assertIsNone(nav.last_score)
        self.assertIs(nav.quiz_state, QuizState.NOT_ATTEMPTED)

        nav.select_answer("q1", 0)
        nav.reset_quiz()
        self.assertEqual(len(nav.attempt.answers), 5)
        self.assertFalse(nav.attempt.submitted)

        self.assertIs(nav.advance().error, ErrorKind.GATE_BLOCKED)
        self.assertIsNone(nav.notice)


class TestUserMessage(unittest.TestCase):

    def test_copy_per_error_kind(self):
        self.assertEqual(user_message(ok_result()), "")
        self.assertEqual(user_message(err_result(ErrorKind.UNAUTHENTICATED)), SIGN_IN_MESSAGE)
        self.assertEqual(user_message(err_result(ErrorKind.GATE_BLOCKED)), BLOCKED_REASON)
        self.assertEqual(user_message(err_result(ErrorKind.TIMEOUT)), SAVE_FAILED_MESSAGE)
        self.assertEqual(user_message(err_result(ErrorKind.REMOTE_UNAVAILABLE)), SAVE_FAILED_MESSAGE)


if __name__ == "__main__":
    unittest.main()
