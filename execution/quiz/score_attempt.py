"""
execution/quiz/score_attempt.py

In-memory quiz attempt and its score.

A QuizAttempt lives only in page memory; it is never read back from the
store to satisfy a gate. No database access. No randomness.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class QuizAttempt:
    """Answers chosen so far (question_id -> option index) and whether they were submitted."""

    answers: dict[str, int] = field(default_factory=dict)
    submitted: bool = False

    def snapshot(self) -> "QuizAttempt":
        """Return a submitted copy whose answers cannot change under later edits."""
        return QuizAttempt(answers=dict(self.answers), submitted=True)


def score_attempt(attempt: QuizAttempt, questions: list[dict]) -> int:
    """Count the answers that match each question's correct_index.

    Unanswered questions and answers to unknown question ids score nothing.

    Args:
        attempt:   The attempt to score.
        questions: Validated question dicts (see load_quiz_library), each with
                   'question_id' and 'correct_index'.

    Returns:
        Number of correct answers, 0 <= score <= len(questions).
    """
    return sum(
        1
        for q in questions
        if attempt.answers.get(q["question_id"]) == q["correct_index"]
    )


def unanswered_count(attempt: QuizAttempt, questions: list[dict]) -> int:
    """Return how many questions have no selected option yet."""
    return sum(1 for q in questions if q["question_id"] not in attempt.answers)


def unanswered_prompt(attempt: QuizAttempt, questions: list[dict]) -> str | None:
    """Return the confirm-before-submit question, or None when every question is answered."""
    missing = unanswered_count(attempt, questions)
    if missing == 0:
        return None
    noun = "question" if missing == 1 else "questions"
    return f"You have {missing} unanswered {noun}. Submit anyway?"
