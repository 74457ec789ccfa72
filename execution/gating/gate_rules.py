"""
execution/gating/gate_rules.py

Prerequisite rules attached to a content unit.

    NoGate()               — completion and advancing are always permitted.
    MinScore(t, n)         — the latest submitted attempt on an n-question
                             quiz must score at least t.

No database access. Pure constants and helpers only.
"""

import math
from dataclasses import dataclass

from execution.course.course_registry import PASS_THRESHOLD_PCT


@dataclass(frozen=True)
class NoGate:
    pass


@dataclass(frozen=True)
class MinScore:
    threshold: int
    total_questions: int

    def __post_init__(self):
        for name, value in (("threshold", self.threshold), ("total_questions", self.total_questions)):
            # bool is a subclass of int: reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"MinScore: '{name}' must be an int, got {type(value).__name__}")
        if self.total_questions < 1:
            raise ValueError(f"MinScore: 'total_questions' must be >= 1, got {self.total_questions}")
        if not (0 <= self.threshold <= self.total_questions):
            raise ValueError(
                f"MinScore: 'threshold' {self.threshold} is out of range "
                f"[0, {self.total_questions}]"
            )


GateRule = NoGate | MinScore

NO_GATE = NoGate()


def min_score_from_percent(pass_pct: int | float, total_questions: int) -> MinScore:
    """Convert a percentage pass mark into a MinScore on a question count.

    The threshold is rounded up, so 70 % of 5 questions needs 4 correct.
    """
    if not (0 <= pass_pct <= 100):
        raise ValueError(f"min_score_from_percent: pass_pct must be in [0, 100], got {pass_pct}")
    threshold = math.ceil(pass_pct * total_questions / 100)
    return MinScore(threshold=threshold, total_questions=total_questions)


def gate_from_config(raw: object, *, unit_key: str) -> GateRule:
    """Build a GateRule from the 'gate' object of a course_map.json unit.

    Accepted shapes:
        None / missing                                 -> NoGate
        {"type": "none"}                               -> NoGate
        {"type": "min_score", "threshold": 4, "total_questions": 5}
        {"type": "min_score", "pass_pct": 70, "total_questions": 5}
        {"type": "min_score", "total_questions": 5}    -> PASS_THRESHOLD_PCT

    Raises:
        ValueError: On an unknown type or malformed fields.
    """
    if raw is None:
        return NO_GATE
    if not isinstance(raw, dict):
        raise ValueError(f"Unit {unit_key!r}: 'gate' must be a dict, got {type(raw).__name__}")

    gate_type = raw.get("type", "none")
    if gate_type == "none":
        return NO_GATE
    if gate_type != "min_score":
        raise ValueError(f"Unit {unit_key!r}: unknown gate type {gate_type!r}")

    total = raw.get("total_questions")
    if isinstance(total, bool) or not isinstance(total, int):
        raise ValueError(
            f"Unit {unit_key!r}: 'total_questions' must be an int, got {type(total).__name__}"
        )
    if "threshold" in raw:
        return MinScore(threshold=raw["threshold"], total_questions=total)
    return min_score_from_percent(raw.get("pass_pct", PASS_THRESHOLD_PCT), total)
