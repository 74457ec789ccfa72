"""
execution/course/load_unit_content.py

Loads the lesson markdown for a content unit and splits it into one chunk
per table-of-contents section.

File location: course_content/<course>/<week>/<unit>.md. Each H2 heading
starts a new chunk; chunks are matched to the unit's sections in order.
No database access. No randomness.
"""

from __future__ import annotations

import re
from pathlib import Path

from execution.course.course_registry import split_unit_key
from execution.course.load_course_map import CourseUnit

# Repo root: execution/course/ -> execution/ -> repo root
_REPO_ROOT: Path = Path(__file__).resolve().parents[2]
CONTENT_ROOT: Path = _REPO_ROOT / "course_content"

_SENTINEL = "\x00CHUNK\x00"


def load_unit_content(unit: CourseUnit, content_root: Path | None = None) -> dict[str, str]:
    """Return section_id -> markdown for *unit*.

    Sections with no matching chunk map to "". Extra chunks beyond the last
    section are appended to the last section so no prose is dropped.

    Raises:
        FileNotFoundError: If the unit's markdown file does not exist.
    """
    course_id, week, name = split_unit_key(unit.unit_key)
    root = content_root if content_root is not None else CONTENT_ROOT
    path = root / course_id / week / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Lesson markdown not found for {unit.unit_key!r}: {path}")

    chunks = split_sections(path.read_text(encoding="utf-8"))
    section_ids = [s.id for s in unit.sections]

    content = {sid: "" for sid in section_ids}
    for i, chunk in enumerate(chunks):
        target = section_ids[min(i, len(section_ids) - 1)]
        content[target] = f"{content[target]}\n\n{chunk}".strip() if content[target] else chunk
    return content


def split_sections(text: str) -> list[str]:
    """Split markdown into chunks, one per H2 heading.

    Text before the first H2 heading becomes its own leading chunk. Returns
    an empty list for blank input. Pure function.
    """
    text = text.replace("\r\n", "\n").strip()
    if not text:
        return []
    marked = re.sub(r"^(## )", _SENTINEL + r"\1", text, flags=re.MULTILINE)
    return [p.strip() for p in marked.split(_SENTINEL) if p.strip()]


def estimate_height(markdown: str, line_height: float = 24.0, chars_per_line: int = 90) -> float:
    """Rough rendered height of a markdown chunk, used to lay out the scrollspy.

    Every paragraph line wraps at chars_per_line; blank lines count as one line.
    """
    lines = markdown.split("\n") if markdown else [""]
    total = 0
    for line in lines:
        total += max(1, -(-len(line) // chars_per_line))  # ceiling division
    return total * line_height
