"""
execution/drafts/local_storage.py

Device-local string key/value store, the stand-in for browser localStorage.

Backed by its own SQLite file (default tmp/local_storage.db), kept apart from
the progress database and never synced. Every handle is bound to one device
id: keys written under one device are invisible to every other device, so a
browser the learner has never used starts with no drafts. Every set_item() is
written through immediately; the last write for a key wins. Nothing here
expires or deletes keys.
"""

import os
import re
import sqlite3
import uuid
from pathlib import Path

# uuid4().hex: 32 lowercase hex characters.
_DEVICE_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def get_local_storage_path() -> str:
    """Return the path of the local storage file (LEARN_LOCAL_STORAGE_PATH overrides)."""
    override = os.environ.get("LEARN_LOCAL_STORAGE_PATH", "").strip()
    if override:
        Path(override).parent.mkdir(parents=True, exist_ok=True)
        return override

    repo_root = Path(__file__).resolve().parents[2]  # execution/drafts/local_storage.py -> repo root
    tmp_dir = repo_root / "tmp"
    tmp_dir.mkdir(parents=True, exist_ok=True)
    return str(tmp_dir / "local_storage.db")


def new_device_id() -> str:
    """Return a fresh random device id."""
    return uuid.uuid4().hex


def is_valid_device_id(device_id: object) -> bool:
    """Return True if device_id looks like a value new_device_id() produced."""
    return isinstance(device_id, str) and bool(_DEVICE_ID_RE.match(device_id))


class LocalStorage:
    """Synchronous get/set over string keys and string values for one device."""

    def __init__(self, device_id: str, path: str | None = None):
        if not is_valid_device_id(device_id):
            raise ValueError(f"LocalStorage: invalid device_id {device_id!r}")
        self.device_id = device_id
        self.path = path if path is not None else get_local_storage_path()
        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS local_storage (
                    device_id  TEXT NOT NULL,
                    key        TEXT NOT NULL,
                    value      TEXT NOT NULL,
                    PRIMARY KEY (device_id, key)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def get_item(self, key: str) -> str | None:
        """Return the stored string for *key* on this device, or None when absent."""
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value FROM local_storage WHERE device_id = ? AND key = ?",
                (self.device_id, key),
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row is not None else None

    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key* on this device, replacing any previous value."""
        if not isinstance(value, str):
            raise ValueError(f"LocalStorage.set_item: value must be a string, got {type(value).__name__}")
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO local_storage (device_id, key, value) VALUES (?, ?, ?)
                ON CONFLICT (device_id, key) DO UPDATE SET value = excluded.value
                """,
                (self.device_id, key, value),
            )
            conn.commit()
        finally:
            conn.close()
