"""
execution/course/course_registry.py

Canonical course identifiers and content-unit key helpers.

A content-unit key is "<course>:<week>:<unit>" (e.g. "ethics:week1:privacy").
Keys are stored verbatim in the tracking table, so renaming one orphans the
completion records written under the old name.

No database access. Pure constants and helpers only.
"""

COURSE_ID: str = "ethics"

# Courses with content under course_content/<course_id>/.
SUPPORTED_COURSES: frozenset[str] = frozenset({"ethics"})

# Pass mark for a min_score gate that names neither threshold nor pass_pct.
PASS_THRESHOLD_PCT: int = 70

_KEY_SEPARATOR = ":"


def make_unit_key(course_id: str, week: str, unit: str) -> str:
    """Build a content-unit key from its three parts.

    Raises:
        ValueError: If any part is empty or contains the ':' separator.
    """
    for name, part in (("course_id", course_id), ("week", week), ("unit", unit)):
        if not isinstance(part, str) or not part.strip():
            raise ValueError(f"make_unit_key: '{name}' must be a non-empty string, got {part!r}")
        if _KEY_SEPARATOR in part:
            raise ValueError(f"make_unit_key: '{name}' must not contain ':', got {part!r}")
    return _KEY_SEPARATOR.join((course_id, week, unit))


def split_unit_key(unit_key: str) -> tuple[str, str, str]:
    """Return (course_id, week, unit) for a valid key.

    Raises:
        ValueError: If unit_key is not a well-formed content-unit key.
    """
    if not is_valid_unit_key(unit_key):
        raise ValueError(f"Invalid unit_key: {unit_key!r}")
    course_id, week, unit = unit_key.split(_KEY_SEPARATOR)
    return course_id, week, unit


def is_valid_unit_key(unit_key: object) -> bool:
    """Return True if unit_key has exactly three non-empty ':'-separated parts."""
    if not isinstance(unit_key, str):
        return False
    parts = unit_key.split(_KEY_SEPARATOR)
    return len(parts) == 3 and all(p.strip() for p in parts)
