"""
execution/identity/upsert_profile.py

Records what the sign-in form knows about a learner in the profiles table.

One upsert on PRIMARY KEY learner_id: a new learner gets a row, a returning
learner keeps every field the caller left as None (COALESCE on the stored
value), created_at is written once and updated_at on every call. The
profile only feeds the display name; gating never reads it.
"""

from datetime import datetime, timezone

from execution.db.sqlite import connect, init_db


def _utc_now() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def upsert_profile(
    learner_id: str,
    username: str | None = None,
    full_name: str | None = None,
    email: str | None = None,
    db_path: str | None = None,
) -> None:
    """Create or refresh the profile of *learner_id*.

    Raises:
        ValueError: If learner_id is not a non-empty string.
    """
    if not isinstance(learner_id, str) or not learner_id.strip():
        raise ValueError(f"upsert_profile: 'learner_id' must be a non-empty string, got {learner_id!r}")

    now = _utc_now()
    conn = connect(db_path)
    try:
        init_db(conn)
        conn.execute(
            """
            INSERT INTO profiles (learner_id, username, full_name, email, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (learner_id) DO UPDATE
            SET username   = COALESCE(excluded.username,  profiles.username),
                full_name  = COALESCE(excluded.full_name, profiles.full_name),
                email      = COALESCE(excluded.email,     profiles.email),
                updated_at = excluded.updated_at
            """,
            (learner_id, username, full_name, email, now, now),
        )
        conn.commit()
    finally:
        conn.close()
