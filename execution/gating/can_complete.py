"""
execution/gating/can_complete.py

Decides whether a content unit may be marked complete given its gate and
the latest in-memory quiz attempt.

Pure and synchronous: no database access, no network, no clock. Safe to
call on every render.
"""

from __future__ import annotations

from dataclasses import dataclass

from execution.gating.gate_rules import GateRule, MinScore, NoGate
from execution.quiz.score_attempt import QuizAttempt, score_attempt

BLOCKED_REASON = "submit and pass the quiz first"


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: str = ""


ALLOWED = GateDecision(allowed=True)


def can_complete(
    gate: GateRule,
    attempt: QuizAttempt | None,
    questions: list[dict] | None = None,
) -> GateDecision:
    """Return Allowed or Blocked(reason) for the unit's gate.

    Args:
        gate:      The unit's GateRule.
        attempt:   Latest in-memory attempt, or None when nothing was answered.
        questions: Question dicts used to score the attempt. Required for
                   MinScore gates.

    Returns:
        GateDecision with allowed=True, or allowed=False and a reason string.
    """
    if isinstance(gate, NoGate):
        return ALLOWED

    if isinstance(gate, MinScore):
        if attempt is None or not attempt.submitted:
            return GateDecision(allowed=False, reason=BLOCKED_REASON)
        if score_attempt(attempt, questions or []) >= gate.threshold:
            return ALLOWED
        return GateDecision(allowed=False, reason=BLOCKED_REASON)

    raise ValueError(f"can_complete: unsupported gate rule {gate!r}")
