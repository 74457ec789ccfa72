"""
execution/course/load_quiz_library.py

Reads the wrap-up quizzes of a course from course_content/<course_id>/quizzes/.

Each *.json file holds exactly one quiz:

    {"quiz_id": "ethics:week1:final-quiz", "title": "...", "questions": [
        {"question_id": "q1", "question": "...", "options": [...], "correct_index": 1},
        ...
    ]}

quiz_id uses the content-unit key format and must belong to the course, since
it doubles as the key of the learner's recorded attempt. When the course map
is passed in, every quiz a unit points at must exist and a gated unit's quiz
must have exactly as many questions as its gate counts.

No database access. No randomness.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from execution.course.course_registry import SUPPORTED_COURSES, is_valid_unit_key, split_unit_key

_REPO_ROOT: Path = Path(__file__).resolve().parents[2]
CONTENT_ROOT: Path = _REPO_ROOT / "course_content"


def load_quiz_library(
    course_id: str,
    content_root: Path | None = None,
    course_map: Mapping | None = None,
) -> dict[str, dict]:
    """Return quiz_id -> quiz dict for every quiz file of the course.

    Args:
        course_id:    Course whose quizzes to read (e.g. "ethics").
        content_root: Directory holding one folder per course. Defaults to
                      the repo's course_content/.
        course_map:   Result of load_course_map(); when given, the quizzes are
                      checked against the units that reference them.

    Raises:
        ValueError: On an unknown course, a malformed quiz, a quiz_id used
                    twice, or a quiz that does not fit its unit's gate.
        FileNotFoundError: If the course has no quiz files.
    """
    if course_id not in SUPPORTED_COURSES:
        raise ValueError(f"Unsupported course_id: {course_id!r}")

    quiz_dir = (content_root if content_root is not None else CONTENT_ROOT) / course_id / "quizzes"
    paths = sorted(quiz_dir.glob("*.json")) if quiz_dir.is_dir() else []
    if not paths:
        raise FileNotFoundError(f"No quiz files for course {course_id!r} in {quiz_dir}")

    library: dict[str, dict] = {}
    for path in paths:
        with path.open(encoding="utf-8") as fh:
            quiz = check_quiz(json.load(fh), course_id=course_id, where=path.name)
        if quiz["quiz_id"] in library:
            raise ValueError(f"{path.name}: quiz_id {quiz['quiz_id']!r} is already used by another file")
        library[quiz["quiz_id"]] = quiz

    if course_map is not None:
        check_quizzes_fit_units(library, course_map)
    return library


def check_quiz(raw: object, *, course_id: str, where: str) -> dict:
    """Return *raw* unchanged if it is a well-formed quiz of *course_id*.

    Raises:
        ValueError: Naming *where* and the offending field.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: a quiz file must hold one JSON object, got {type(raw).__name__}")

    quiz_id = raw.get("quiz_id")
    if not is_valid_unit_key(quiz_id) or split_unit_key(quiz_id)[0] != course_id:
        raise ValueError(f"{where}: 'quiz_id' must be a {course_id!r} content-unit key, got {quiz_id!r}")

    title = raw.get("title")
    if title is not None and not isinstance(title, str):
        raise ValueError(f"{where}: 'title' must be a string when present")

    questions = raw.get("questions")
    if not isinstance(questions, list) or not questions:
        raise ValueError(f"{where}: quiz {quiz_id!r} has no questions")

    seen: set[str] = set()
    for number, question in enumerate(questions, start=1):
        qid = _check_question(question, where=f"{where} question {number}")
        if qid in seen:
            raise ValueError(f"{where}: duplicate question_id {qid!r}")
        seen.add(qid)
    return raw


def check_quizzes_fit_units(library: Mapping[str, dict], course_map: Mapping) -> None:
    """Raise ValueError if a unit's quiz is missing or does not match its gate size."""
    for unit_key, unit in course_map.items():
        if unit.quiz_id is None:
            continue
        quiz = library.get(unit.quiz_id)
        if quiz is None:
            raise ValueError(f"Unit {unit_key!r} points at unknown quiz {unit.quiz_id!r}")
        if unit.is_gated and len(quiz["questions"]) != unit.gate.total_questions:
            raise ValueError(
                f"Unit {unit_key!r}: gate counts {unit.gate.total_questions} questions "
                f"but quiz {unit.quiz_id!r} has {len(quiz['questions'])}"
            )


def _check_question(q: object, *, where: str) -> str:
    """Validate one multiple-choice question and return its question_id."""
    if not isinstance(q, dict):
        raise ValueError(f"{where}: must be an object")

    for name in ("question_id", "question"):
        if not isinstance(q.get(name), str) or not q[name].strip():
            raise ValueError(f"{where}: '{name}' must be a non-empty string")

    options = q.get("options")
    if (
        not isinstance(options, list)
        or len(options) < 2
        or not all(isinstance(o, str) and o.strip() for o in options)
    ):
        raise ValueError(f"{where}: 'options' must list at least two non-empty strings")

    answer = q.get("correct_index")
    # bool is a subclass of int: reject it explicitly
    if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < len(options):
        raise ValueError(f"{where}: 'correct_index' must index into its {len(options)} options, got {answer!r}")
    return q["question_id"]
