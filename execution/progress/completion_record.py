"""
execution/progress/completion_record.py

Row shape of the tracking table: one record per (learner_id, unit_key).
Records move from absent to completed and never back.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CompletionRecord:
    learner_id: str
    unit_key: str
    completed: bool
    completed_at: str | None


class _NotFound:
    """Sentinel value returned by read_completion when no record exists."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()


def is_completed(value: object) -> bool:
    """True when *value* is a CompletionRecord with completed set."""
    return isinstance(value, CompletionRecord) and value.completed
