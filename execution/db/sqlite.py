"""
execution/db/sqlite.py

SQLite helper module for learner progress persistence.
Provides only infrastructure: path resolution, connection setup, schema
initialization, and classification of store errors.
No business logic lives here.
"""

import os
import sqlite3
from pathlib import Path

from execution.common.result import ErrorKind

# Seconds to wait on a locked database before sqlite3 gives up.
DEFAULT_STORE_TIMEOUT_SECONDS: float = 5.0

# Substrings of sqlite3.OperationalError messages that mean "gave up waiting".
_TIMEOUT_MARKERS: tuple[str, ...] = ("locked", "busy", "timeout", "timed out")


def get_db_path() -> str:
    """Return the absolute path to the progress database file.

    Honours the LEARN_DB_PATH environment variable when set. Otherwise the
    file lives under the repo's /tmp folder (which is safe to delete and is
    never committed). Creates the directory if it does not exist.

    Returns:
        str: Absolute path to the SQLite file.
    """
    override = os.environ.get("LEARN_DB_PATH", "").strip()
    if override:
        Path(override).parent.mkdir(parents=True, exist_ok=True)
        return override

    repo_root = Path(__file__).resolve().parents[2]  # execution/db/sqlite.py -> repo root
    tmp_dir = repo_root / "tmp"
    tmp_dir.mkdir(parents=True, exist_ok=True)
    return str(tmp_dir / "app.db")


def get_store_timeout() -> float:
    """Return the connection timeout in seconds (LEARN_STORE_TIMEOUT_SECONDS)."""
    raw = os.environ.get("LEARN_STORE_TIMEOUT_SECONDS", "").strip()
    if not raw:
        return DEFAULT_STORE_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_STORE_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_STORE_TIMEOUT_SECONDS


def connect(db_path: str | None = None, timeout: float | None = None) -> sqlite3.Connection:
    """Open and return a sqlite3 connection with foreign key enforcement enabled.

    Args:
        db_path: Path to the SQLite file. Defaults to the result of get_db_path().
        timeout: Seconds to wait for a lock. Defaults to get_store_timeout().

    Returns:
        sqlite3.Connection: An open connection with PRAGMA foreign_keys = ON.
    """
    if db_path is None:
        db_path = get_db_path()
    if timeout is None:
        timeout = get_store_timeout()
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row  # rows accessible by column name
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create all application tables if they do not already exist.

    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    Does not drop or migrate existing tables.

    Schema:
        profiles     — display details for an identified learner
        tracking     — one completion record per (learner_id, unit_key)
        assessments  — last recorded quiz attempt per (learner_id, quiz_key)

    Args:
        conn: An open sqlite3.Connection (foreign keys should already be ON).
    """
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS profiles (
            learner_id  TEXT PRIMARY KEY,
            username    TEXT,
            full_name   TEXT,
            email       TEXT,
            created_at  TEXT,
            updated_at  TEXT
        );

        CREATE TABLE IF NOT EXISTS tracking (
            learner_id    TEXT NOT NULL,
            unit_key      TEXT NOT NULL,
            completed     INTEGER NOT NULL DEFAULT 0,
            completed_at  TEXT,
            PRIMARY KEY (learner_id, unit_key)
        );

        CREATE TABLE IF NOT EXISTS assessments (
            learner_id    TEXT NOT NULL,
            quiz_key      TEXT NOT NULL,
            score         INTEGER NOT NULL,
            total         INTEGER NOT NULL,
            passed        INTEGER NOT NULL DEFAULT 0,
            answers_json  TEXT,
            submitted_at  TEXT,
            PRIMARY KEY (learner_id, quiz_key)
        );

        CREATE INDEX IF NOT EXISTS idx_tracking_learner_id
            ON tracking (learner_id);
    """)
    conn.commit()


def classify_db_error(exc: sqlite3.Error) -> ErrorKind:
    """Map a sqlite3 error raised by the store to an ErrorKind.

    Lock and busy failures mean the connection timeout expired, so they are
    reported as TIMEOUT. Everything else is REMOTE_UNAVAILABLE.

    Args:
        exc: The sqlite3 exception caught at the adapter boundary.

    Returns:
        ErrorKind.TIMEOUT or ErrorKind.REMOTE_UNAVAILABLE.
    """
    if isinstance(exc, sqlite3.OperationalError):
        text = str(exc).lower()
        if any(marker in text for marker in _TIMEOUT_MARKERS):
            return ErrorKind.TIMEOUT
    return ErrorKind.REMOTE_UNAVAILABLE
