"""
execution/common/result.py

Outcome type returned by every collaborator call in the progress core
(identity, completion store, quiz records).

A Result is either ok (value set, error None) or failed (error set to an
ErrorKind). Callers branch on result.ok instead of catching exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure taxonomy for tracking calls. None of these is fatal to a page."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    GATE_BLOCKED = "GATE_BLOCKED"
    TIMEOUT = "TIMEOUT"


# Conditions the learner can fix themselves; surfaced inline, never logged as errors.
EXPECTED_ERRORS: frozenset[ErrorKind] = frozenset({
    ErrorKind.UNAUTHENTICATED,
    ErrorKind.GATE_BLOCKED,
})


@dataclass(frozen=True)
class Result:
    ok: bool
    value: Any = None
    error: ErrorKind | None = None
    message: str = ""

    @property
    def is_expected_error(self) -> bool:
        """True when the failure is user-recoverable (sign in, pass the quiz)."""
        return self.error in EXPECTED_ERRORS


def ok_result(value: Any = None, message: str = "") -> Result:
    """Return a successful Result carrying *value*."""
    return Result(ok=True, value=value, message=message)


def err_result(error: ErrorKind, message: str = "") -> Result:
    """Return a failed Result for *error* with an optional detail message."""
    return Result(ok=False, error=error, message=message)
