"""
execution/navigation/course_navigator.py

Page-level state machine for one content unit, shared by every lesson page.

    LOADING --load()--> READY(completed)
    quiz sub-state:  NOT_ATTEMPTED --submit_quiz()--> SUBMITTED(passed)

mark_complete() moves READY(completed=False) to READY(completed=True) only
for an identified learner whose gate allows it, and only after the store
confirms the write. advance() is open on ungated units and, on gated units,
only once the unit is completed.

Every store call is a suspension point. Once dispose() has run (page left),
results that come back are returned to the caller but no longer change
navigator state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from execution.common.result import ErrorKind, Result, err_result, ok_result
from execution.course.load_course_map import CourseUnit
from execution.gating.can_complete import BLOCKED_REASON, GateDecision, can_complete
from execution.identity.resolve_identity import (
    ANONYMOUS,
    AuthLookup,
    Identified,
    LearnerIdentity,
    resolve_identity,
)
from execution.navigation.section_tracker import SectionVisibilityTracker
from execution.progress.completion_record import is_completed
from execution.progress.read_completion import read_completion
from execution.progress.write_completion import write_completion
from execution.quiz.save_quiz_attempt import save_quiz_attempt
from execution.quiz.score_attempt import QuizAttempt, score_attempt

logger = logging.getLogger(__name__)

SIGN_IN_MESSAGE = "Please sign in to save your progress."
SAVE_FAILED_MESSAGE = "Could not save progress. Please try again."
SCORE_NOT_SAVED_MESSAGE = (
    "Your score was calculated, but saving it failed. Please try again."
)


class NavState(str, Enum):
    LOADING = "LOADING"
    READY = "READY"


class QuizState(str, Enum):
    NOT_ATTEMPTED = "NOT_ATTEMPTED"
    SUBMITTED = "SUBMITTED"


@dataclass
class NavigatorDeps:
    """Collaborators injected into a CourseNavigator."""

    get_current_user: AuthLookup
    db_path: str | None = None
    questions: list[dict] = field(default_factory=list)
    clock: Callable[[], str] | None = None


def user_message(result: Result) -> str:
    """Return the copy shown to the learner for a failed Result."""
    if result.ok:
        return ""
    if result.error is ErrorKind.UNAUTHENTICATED:
        return SIGN_IN_MESSAGE
    if result.error is ErrorKind.GATE_BLOCKED:
        return result.message or BLOCKED_REASON
    return SAVE_FAILED_MESSAGE


class CourseNavigator:
    """One instance per content unit, built with (unit, collaborators)."""

    def __init__(self, unit: CourseUnit, deps: NavigatorDeps):
        self.unit = unit
        self._deps = deps
        self._state = NavState.LOADING
        self._identity: LearnerIdentity = ANONYMOUS
        self._completed = False
        self._attempt = QuizAttempt()
        self._last_score: int | None = None
        self._notice: str | None = None
        self._alive = True
        self.tracker = SectionVisibilityTracker(list(unit.sections))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def state(self) -> NavState:
        return self._state

    @property
    def identity(self) -> LearnerIdentity:
        """ANONYMOUS until load() has resolved the learner."""
        return self._identity

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def needs_sign_in(self) -> bool:
        return self._state is NavState.READY and not isinstance(self._identity, Identified)

    @property
    def notice(self) -> str | None:
        return self._notice

    @property
    def attempt(self) -> QuizAttempt:
        return self._attempt

    @property
    def quiz_state(self) -> QuizState:
        return QuizState.SUBMITTED if self._attempt.submitted else QuizState.NOT_ATTEMPTED

    @property
    def last_score(self) -> int | None:
        """Score of the current submitted attempt, None when not submitted."""
        return self._last_score if self._attempt.submitted else None

    @property
    def quiz_passed(self) -> bool:
        return self.unit.is_gated and self.gate_decision().allowed

    @property
    def quiz_key(self) -> str | None:
        """Library id of the unit's quiz, also the key of its attempt record."""
        return self.unit.quiz_id

    @property
    def alive(self) -> bool:
        return self._alive

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Resolve the learner and read the unit's completion record."""
        identity = resolve_identity(self._deps.get_current_user)
        if not self._alive:
            return
        self._identity = identity

        if isinstance(identity, Identified):
            result = read_completion(identity.id, self.unit.unit_key, db_path=self._deps.db_path)
            if not self._alive:
                return
            if result.ok:
                self._completed = is_completed(result.value)
            else:
                self._completed = False
                self._notice = "Could not load your progress. Lesson content is still available."

        self._state = NavState.READY
        logger.debug("Loaded %s (completed=%s)", self.unit.unit_key, self._completed)

    def dispose(self) -> None:
        """Stop the scrollspy and ignore any later store replies."""
        self._alive = False
        self.tracker.dispose()

    # ------------------------------------------------------------------
    # Quiz
    # ------------------------------------------------------------------
    def select_answer(self, question_id: str, option_index: int) -> None:
        """Record a choice. Changing an answer clears the submitted flag."""
        if not self._alive:
            return
        self._attempt.answers[question_id] = option_index
        self._attempt.submitted = False

    def submit_quiz(self) -> Result:
        """Score the current answers and, for identified learners, record the attempt.

        Returns:
            ok Result whose value is the score. When recording fails the score
            still stands in memory; the Result is failed and carries the error.
            A disposed navigator only reports the score; nothing is kept or saved.
        """
        snapshot = self._attempt.snapshot()
        score = score_attempt(snapshot, self._deps.questions)
        if not self._alive:
            return ok_result(score)
        self._attempt = snapshot
        self._last_score = score
        passed = can_complete(self.unit.gate, snapshot, self._deps.questions).allowed

        if (
            self.quiz_key is None
            or not self._deps.questions
            or not isinstance(self._identity, Identified)
        ):
            return ok_result(score)

        saved = save_quiz_attempt(
            self._identity,
            self.quiz_key,
            snapshot,
            score=score,
            total=len(self._deps.questions),
            passed=passed,
            submitted_at=self._now(),
            db_path=self._deps.db_path,
        )
        if not saved.ok:
            if self._alive:
                self._notice = SCORE_NOT_SAVED_MESSAGE
            return saved
        return ok_result(score)

    def reset_quiz(self) -> None:
        """Clear answers and return to NOT_ATTEMPTED."""
        if not self._alive:
            return
        self._attempt = QuizAttempt()
        self._last_score = None

    # ------------------------------------------------------------------
    # Completion and navigation
    # ------------------------------------------------------------------
    def gate_decision(self) -> GateDecision:
        return can_complete(self.unit.gate, self._attempt, self._deps.questions)

    def mark_complete(self) -> Result:
        """Persist completion of this unit; state changes only after a confirmed write."""
        if self._completed:
            return ok_result()

        if not isinstance(self._identity, Identified):
            self._notice = SIGN_IN_MESSAGE
            return err_result(ErrorKind.UNAUTHENTICATED, SIGN_IN_MESSAGE)

        decision = self.gate_decision()
        if not decision.allowed:
            self._notice = decision.reason
            return err_result(ErrorKind.GATE_BLOCKED, decision.reason)

        result = write_completion(
            self._identity,
            self.unit.unit_key,
            completed_at=self._now(),
            db_path=self._deps.db_path,
        )
        if not self._alive:
            return result
        if result.ok:
            self._completed = True
            self._notice = None
        else:
            self._notice = SAVE_FAILED_MESSAGE
        return result

    def advance(self) -> Result:
        """Return the next unit key if moving forward is allowed.

        Returns:
            ok Result with the next unit_key (None on the last unit), or
            GATE_BLOCKED for a gated unit that is not yet completed.
        """
        if self.unit.is_gated and not self._completed:
            if self._alive:
                self._notice = BLOCKED_REASON
            return err_result(ErrorKind.GATE_BLOCKED, BLOCKED_REASON)
        return ok_result(self.unit.next_unit_key)

    def _now(self) -> str | None:
        return self._deps.clock() if self._deps.clock is not None else None
