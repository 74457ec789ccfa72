"""
execution/identity/resolve_identity.py

Asks the auth collaborator who, if anyone, is using this session and turns
the reply into a LearnerIdentity.

The collaborator is any zero-argument callable returning {"id": str, ...}
or None. It is called exactly once per resolve. A failing collaborator is
never fatal: the learner is treated as anonymous and the page offers a
"sign in to save progress" prompt instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

AuthLookup = Callable[[], dict | None]


@dataclass(frozen=True)
class Identified:
    id: str


@dataclass(frozen=True)
class Anonymous:
    pass


LearnerIdentity = Identified | Anonymous

ANONYMOUS = Anonymous()


def resolve_identity(get_current_user: AuthLookup) -> LearnerIdentity:
    """Return Identified(id) for a signed-in user, ANONYMOUS otherwise.

    Args:
        get_current_user: Auth collaborator; returns a user dict or None.

    Returns:
        Identified when the collaborator returns a dict with a non-blank
        string 'id'; ANONYMOUS for None, malformed replies, or any error.
    """
    try:
        user = get_current_user()
    except Exception:
        logger.warning("Auth lookup failed; continuing as anonymous.", exc_info=True)
        return ANONYMOUS

    if user is None:
        return ANONYMOUS

    if not isinstance(user, dict):
        logger.warning(
            "Auth lookup returned %s instead of a dict; continuing as anonymous.",
            type(user).__name__,
        )
        return ANONYMOUS

    user_id = user.get("id")
    if not isinstance(user_id, str) or not user_id.strip():
        logger.warning("Auth lookup returned a user without an id; continuing as anonymous.")
        return ANONYMOUS

    return Identified(id=user_id.strip())
