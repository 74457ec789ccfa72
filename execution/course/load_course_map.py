"""
execution/course/load_course_map.py

Loads and validates course_map.json for a given course_id.

No database access. No randomness. Pure file I/O + validation.
Returns an ordered dict keyed by unit_key so callers get O(1) unit lookup
and can still walk units in course order (prev/next navigation).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from execution.course.course_registry import SUPPORTED_COURSES, is_valid_unit_key
from execution.gating.gate_rules import NO_GATE, GateRule, MinScore, gate_from_config
from execution.navigation.section_tracker import TocSection

# Repo root: execution/course/ -> execution/ -> repo root
_REPO_ROOT: Path = Path(__file__).resolve().parents[2]
CONTENT_ROOT: Path = _REPO_ROOT / "course_content"


@dataclass(frozen=True)
class CourseUnit:
    unit_key: str
    title: str
    sections: tuple[TocSection, ...]
    gate: GateRule = NO_GATE
    quiz_id: str | None = None
    practice_fields: tuple[str, ...] = field(default_factory=tuple)
    prev_unit_key: str | None = None
    next_unit_key: str | None = None

    @property
    def is_gated(self) -> bool:
        return isinstance(self.gate, MinScore)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_course_map(course_id: str, content_root: Path | None = None) -> dict[str, CourseUnit]:
    """Load and validate course_map.json for the given course_id.

    Args:
        course_id:    Identifier for the course (e.g. "ethics").
        content_root: Directory holding one folder per course. Defaults to
                      the repo's course_content/.

    Returns:
        dict mapping unit_key (str) -> CourseUnit, in course order.

    Raises:
        ValueError: If course_id is unsupported or the JSON structure is invalid.
        FileNotFoundError: If course_map.json does not exist for the course.
    """
    if course_id not in SUPPORTED_COURSES:
        raise ValueError(
            f"Unsupported course_id: {course_id!r}. "
            f"Supported courses: {sorted(SUPPORTED_COURSES)}"
        )

    root = content_root if content_root is not None else CONTENT_ROOT
    map_path = root / course_id / "course_map.json"
    if not map_path.exists():
        raise FileNotFoundError(
            f"course_map.json not found for course {course_id!r}: {map_path}"
        )

    with map_path.open(encoding="utf-8") as fh:
        raw = json.load(fh)

    return _build_and_validate(raw, course_id)


# ---------------------------------------------------------------------------
# Internal helpers (importable for unit tests)
# ---------------------------------------------------------------------------

def _build_and_validate(raw: object, course_id: str) -> dict[str, CourseUnit]:
    """Convert raw JSON to a unit_key -> CourseUnit mapping and validate it.

    Expects a top-level 'units' list. Each unit needs a 'unit_key' under
    this course, a 'title' and a non-empty 'sections' list of {id, label}.

    Raises:
        ValueError: If the structure does not conform to the expected schema.
    """
    if not isinstance(raw, dict):
        raise ValueError(
            f"[{course_id}] course_map.json top-level must be a dict, "
            f"got {type(raw).__name__}"
        )

    units_raw = raw.get("units")
    if units_raw is None:
        raise ValueError(
            f"[{course_id}] course_map.json missing required top-level key 'units'"
        )
    if not isinstance(units_raw, list) or not units_raw:
        raise ValueError(f"[{course_id}] 'units' must be a non-empty list")

    parsed: list[dict] = []
    seen: set[str] = set()
    for idx, unit in enumerate(units_raw):
        if not isinstance(unit, dict):
            raise ValueError(
                f"[{course_id}] units[{idx}] must be a dict, got {type(unit).__name__}"
            )

        unit_key = unit.get("unit_key")
        if not is_valid_unit_key(unit_key):
            raise ValueError(
                f"[{course_id}] units[{idx}] missing or invalid 'unit_key' "
                f"(expected '<course>:<week>:<unit>'), got {unit_key!r}"
            )
        if not unit_key.startswith(f"{course_id}:"):
            raise ValueError(
                f"[{course_id}] unit {unit_key!r} does not belong to course {course_id!r}"
            )
        if unit_key in seen:
            raise ValueError(f"[{course_id}] duplicate unit_key {unit_key!r}")
        seen.add(unit_key)

        title = unit.get("title")
        if not isinstance(title, str) or not title:
            raise ValueError(f"[{course_id}] unit {unit_key!r}: 'title' must be a non-empty string")

        quiz_id = unit.get("quiz_id")
        if quiz_id is not None and (not isinstance(quiz_id, str) or not quiz_id):
            raise ValueError(
                f"[{course_id}] unit {unit_key!r}: 'quiz_id' must be a non-empty string or null"
            )

        gate = gate_from_config(unit.get("gate"), unit_key=unit_key)
        if isinstance(gate, MinScore) and quiz_id is None:
            raise ValueError(f"[{course_id}] unit {unit_key!r}: min_score gate needs a 'quiz_id'")

        parsed.append({
            "unit_key": unit_key,
            "title": title,
            "sections": _build_sections(unit.get("sections"), course_id, unit_key),
            "gate": gate,
            "quiz_id": quiz_id,
            "practice_fields": tuple(_validate_list_of_str(unit, "practice_fields", course_id, unit_key)),
        })

    course_map: dict[str, CourseUnit] = {}
    for i, fields in enumerate(parsed):
        prev_key = parsed[i - 1]["unit_key"] if i > 0 else None
        next_key = parsed[i + 1]["unit_key"] if i + 1 < len(parsed) else None
        course_map[fields["unit_key"]] = CourseUnit(
            prev_unit_key=prev_key,
            next_unit_key=next_key,
            **fields,
        )
    return course_map


def _build_sections(raw: object, course_id: str, unit_key: str) -> tuple[TocSection, ...]:
    """Validate a unit's 'sections' list and return TocSections in document order."""
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"[{course_id}] unit {unit_key!r}: 'sections' must be a non-empty list")

    sections: list[TocSection] = []
    ids: set[str] = set()
    for order, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(
                f"[{course_id}] unit {unit_key!r}: sections[{order}] must be a dict, "
                f"got {type(item).__name__}"
            )
        sid = item.get("id")
        label = item.get("label")
        if not isinstance(sid, str) or not sid:
            raise ValueError(f"[{course_id}] unit {unit_key!r}: sections[{order}] missing 'id'")
        if not isinstance(label, str) or not label:
            raise ValueError(f"[{course_id}] unit {unit_key!r}: sections[{order}] missing 'label'")
        if sid in ids:
            raise ValueError(f"[{course_id}] unit {unit_key!r}: duplicate section id {sid!r}")
        ids.add(sid)
        sections.append(TocSection(id=sid, label=label, order=order))
    return tuple(sections)


def _validate_list_of_str(
    unit: dict, field_name: str, course_id: str, unit_key: str
) -> list[str]:
    """Return the field as a list of strings ([] when absent); raise on bad types."""
    value = unit.get(field_name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(
            f"[{course_id}] unit {unit_key!r}: "
            f"'{field_name}' must be a list, got {type(value).__name__}"
        )
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ValueError(
                f"[{course_id}] unit {unit_key!r}: "
                f"'{field_name}[{i}]' must be a string, got {type(item).__name__}"
            )
    return value
