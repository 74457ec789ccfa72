"""
tests/test_identity.py

Unit tests for:
  execution/identity/resolve_identity.py
  execution/identity/upsert_profile.py
  execution/identity/load_display_name.py

Uses an isolated database (tmp/test_identity.db) and never touches
the application database (tmp/app.db).
"""

import os
import sys
import unittest
from pathlib import Path
from unittest import mock

# ---------------------------------------------------------------------------
# PYTHONPATH bootstrap: repo root must be importable from any test runner.
# ---------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from execution.db.sqlite import connect, init_db                          # noqa: E402
from execution.identity.load_display_name import (                        # noqa: E402
    DEFAULT_DISPLAY_NAME,
    load_display_name,
    pick_display_name,
)
from execution.identity.resolve_identity import (                         # noqa: E402
    ANONYMOUS,
    Identified,
    resolve_identity,
)
from execution.identity.upsert_profile import upsert_profile              # noqa: E402

TEST_DB_PATH = str(REPO_ROOT / "tmp" / "test_identity.db")


def _fetch_profile(learner_id: str) -> dict:
    """Return a profile row as a plain dict, or {} if not found."""
    conn = connect(TEST_DB_PATH)
    try:
        row = conn.execute(
            "SELECT * FROM profiles WHERE learner_id = ?", (learner_id,)
        ).fetchone()
        return dict(row) if row else {}
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# 1. resolve_identity
# ---------------------------------------------------------------------------

class TestResolveIdentity(unittest.TestCase):

    def test_signed_in_user(self):
        self.assertEqual(resolve_identity(lambda: {"id": "u1"}), Identified(id="u1"))

    def test_no_user_is_anonymous(self):
        self.assertIs(resolve_identity(lambda: None), ANONYMOUS)

    def test_collaborator_called_once(self):
        calls = []

        def lookup():
            calls.append(1)
            return {"id": "u1"}

        resolve_identity(lookup)
        self.assertEqual(len(calls), 1)

    def test_failing_lookup_is_anonymous_and_logged(self):
        def lookup():
            raise ConnectionError("auth down")

        with self.assertLogs("execution.identity.resolve_identity", level="WARNING"):
            self.assertIs(resolve_identity(lookup), ANONYMOUS)

    def test_malformed_replies_are_anonymous(self):
        for reply in ({"id": ""}, {"id": "   "}, {"email": "a@b.com"}, {"id": 7}, ["u1"]):
            with self.assertLogs("execution.identity.resolve_identity", level="WARNING"):
                self.assertIs(resolve_identity(lambda r=reply: r), ANONYMOUS, reply)

    def test_id_is_stripped(self):
        self.assertEqual(resolve_identity(lambda: {"id": " u1 "}), Identified(id="u1"))


# ---------------------------------------------------------------------------
# 2. upsert_profile / load_display_name
# ---------------------------------------------------------------------------

class TestProfiles(unittest.TestCase):

    def setUp(self):
        (REPO_ROOT / "tmp").mkdir(parents=True, exist_ok=True)
        conn = connect(TEST_DB_PATH)
        init_db(conn)
        conn.close()

    def tearDown(self):
        if os.path.exists(TEST_DB_PATH):
            os.remove(TEST_DB_PATH)

    def test_insert_sets_equal_timestamps(self):
        upsert_profile("u1", username="ada", db_path=TEST_DB_PATH)
        row = _fetch_profile("u1")
        self.assertEqual(row["username"], "ada")
        self.assertEqual(row["created_at"], row["updated_at"])

    def test_update_keeps_unsupplied_fields(self):
        upsert_profile("u1", username="ada", email="ada@example.com", db_path=TEST_DB_PATH)
        created_at = _fetch_profile("u1")["created_at"]
        upsert_profile("u1", full_name="Ada Lovelace", db_path=TEST_DB_PATH)
        row = _fetch_profile("u1")
        self.assertEqual(row["username"], "ada")
        self.assertEqual(row["email"], "ada@example.com")
        self.assertEqual(row["full_name"], "Ada Lovelace")
        self.assertEqual(row["created_at"], created_at)

    def test_second_sign_in_refreshes_updated_at_only(self):
        with mock.patch("execution.identity.upsert_profile._utc_now", return_value="t1"):
            upsert_profile("u1", email="ada@example.com", db_path=TEST_DB_PATH)
        with mock.patch("execution.identity.upsert_profile._utc_now", return_value="t2"):
            upsert_profile("u1", email=None, db_path=TEST_DB_PATH)
        row = _fetch_profile("u1")
        self.assertEqual((row["created_at"], row["updated_at"]), ("t1", "t2"))
        self.assertEqual(row["email"], "ada@example.com")

        conn = connect(TEST_DB_PATH)
        try:
            self.assertEqual(conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0], 1)
        finally:
            conn.close()

    def test_blank_learner_id_rejected(self):
        with self.assertRaises(ValueError):
            upsert_profile("  ", db_path=TEST_DB_PATH)

    def test_display_name_prefers_full_name(self):
        upsert_profile("u1", username="ada", full_name="Ada Lovelace", db_path=TEST_DB_PATH)
        self.assertEqual(load_display_name(Identified("u1"), db_path=TEST_DB_PATH), "Ada Lovelace")

    def test_display_name_falls_back_to_email_local_part(self):
        upsert_profile("u1", email="grace@example.com", db_path=TEST_DB_PATH)
        self.assertEqual(load_display_name(Identified("u1"), db_path=TEST_DB_PATH), "grace")

    def test_display_name_defaults(self):
        self.assertEqual(load_display_name(ANONYMOUS, db_path=TEST_DB_PATH), DEFAULT_DISPLAY_NAME)
        self.assertEqual(load_display_name(Identified("nobody"), db_path=TEST_DB_PATH), DEFAULT_DISPLAY_NAME)

    def test_pick_display_name_order(self):
        self.assertEqual(pick_display_name(None, "ada", "x@y.z"), "ada")
        self.assertEqual(pick_display_name("  ", None, "x@y.z"), "x")
        self.assertEqual(pick_display_name(None, None, "no-at-sign"), DEFAULT_DISPLAY_NAME)


if __name__ == "__main__":
    unittest.main()
