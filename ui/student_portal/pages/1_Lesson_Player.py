"""
ui/student_portal/pages/1_Lesson_Player.py

Lesson Player: one content unit at a time, with an on-this-page scrollspy,
autosaved practice fields, the unit's quiz and the completion gate.

Run from the repository root:
    streamlit run ui/student_portal/student_app.py
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import streamlit as st

# ---------------------------------------------------------------------------
# sys.path bootstrap: this file lives three levels below repo root
# (ui/student_portal/pages/).
# ---------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[3]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from execution.common.result import ErrorKind                                       # noqa: E402
from execution.course.course_registry import COURSE_ID                              # noqa: E402
from execution.course.load_course_map import load_course_map                        # noqa: E402
from execution.course.load_quiz_library import load_quiz_library                    # noqa: E402
from execution.course.load_unit_content import estimate_height, load_unit_content   # noqa: E402
from execution.db.sqlite import get_db_path                                         # noqa: E402
from execution.drafts.draft_cache import restore_draft, save_draft                  # noqa: E402
from execution.drafts.local_storage import LocalStorage                             # noqa: E402
from execution.identity.load_display_name import load_display_name                  # noqa: E402
from execution.identity.upsert_profile import upsert_profile                        # noqa: E402
from execution.navigation.course_navigator import (                                 # noqa: E402
    CourseNavigator,
    NavigatorDeps,
    QuizState,
    user_message,
)
from execution.navigation.section_tracker import layout_sections                    # noqa: E402
from execution.progress.ping_store import ping_store                                # noqa: E402
from execution.progress.summarize_course_progress import summarize_course_progress  # noqa: E402
from execution.quiz.load_quiz_attempt import load_quiz_attempt                      # noqa: E402
from execution.quiz.score_attempt import unanswered_prompt                          # noqa: E402
from ui.student_portal.player_state import (                                        # noqa: E402
    quiz_radio_key,
    resolve_device_id,
    seed_quiz_answers,
)
from ui.student_portal.session_auth import get_current_user, sign_in, sign_out      # noqa: E402
from ui.theme import apply_course_theme, toc_html                                   # noqa: E402

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DB_PATH = get_db_path()
VIEWPORT_HEIGHT = 720.0
EM_DASH = "—"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Cached course data loaders: file I/O runs once per session.
# ---------------------------------------------------------------------------
@st.cache_data
def _cached_course_map() -> dict:
    return load_course_map(COURSE_ID)


@st.cache_data
def _cached_quiz_library() -> dict:
    return load_quiz_library(COURSE_ID, course_map=_cached_course_map())


@st.cache_data
def _cached_unit_content(unit_key: str) -> dict[str, str]:
    return load_unit_content(_cached_course_map()[unit_key])


# ---------------------------------------------------------------------------
# Page config: must be the first Streamlit call in the file.
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Lesson Player", layout="wide")

# ---------------------------------------------------------------------------
# Session state initialisation
# ---------------------------------------------------------------------------
if "player_flash" not in st.session_state:
    st.session_state["player_flash"] = None  # (level, message) or None
if "player_navigator" not in st.session_state:
    st.session_state["player_navigator"] = None
if "player_nav_token" not in st.session_state:
    st.session_state["player_nav_token"] = 0  # bumped per navigator; scopes widget keys
if "player_pending_unit" not in st.session_state:
    st.session_state["player_pending_unit"] = None  # set by Next, applied before the radio
if "player_section_idx" not in st.session_state:
    st.session_state["player_section_idx"] = 0

try:
    course_map = _cached_course_map()
    quiz_library = _cached_quiz_library()
except Exception:
    logging.exception("Failed to load course map or quiz library")
    st.error("Course content could not be loaded. See console for details.")
    st.stop()

unit_keys = list(course_map)

if st.session_state["player_pending_unit"] in course_map:
    st.session_state["player_unit_radio"] = st.session_state["player_pending_unit"]
st.session_state["player_pending_unit"] = None


def _build_navigator(unit_key: str) -> CourseNavigator:
    """Dispose the current navigator and load a fresh one for *unit_key*."""
    previous = st.session_state["player_navigator"]
    if previous is not None:
        previous.dispose()

    unit = course_map[unit_key]
    quiz = quiz_library.get(unit.quiz_id) if unit.quiz_id else None
    navigator = CourseNavigator(
        unit,
        NavigatorDeps(
            get_current_user=get_current_user,
            db_path=DB_PATH,
            questions=list(quiz["questions"]) if quiz else [],
            clock=_utc_now,
        ),
    )
    navigator.load()
    st.session_state["player_navigator"] = navigator
    st.session_state["player_nav_token"] += 1
    st.session_state["player_section_idx"] = 0
    return navigator


def _flash(result, success_msg: str) -> None:
    if result.ok:
        st.session_state["player_flash"] = ("success", success_msg)
    elif result.error is ErrorKind.GATE_BLOCKED:
        st.session_state["player_flash"] = ("warning", f"To finish this unit, {user_message(result)}.")
    elif result.is_expected_error:
        st.session_state["player_flash"] = ("warning", user_message(result))
    else:
        st.session_state["player_flash"] = ("error", user_message(result))


# ---------------------------------------------------------------------------
# Sidebar: sign-in + units + on-this-page + progress
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("Lesson Player")

    current_user = get_current_user()
    if current_user is None:
        with st.form("sign_in_form"):
            learner_id_input = st.text_input("Learner ID", placeholder="e.g. learner-123")
            email_input = st.text_input("Email (optional)")
            if st.form_submit_button("Sign in"):
                try:
                    sign_in(learner_id_input, email_input)
                    upsert_profile(
                        learner_id_input.strip(),
                        email=email_input.strip() or None,
                        db_path=DB_PATH,
                    )
                    st.session_state["player_navigator"] = None
                    st.rerun()
                except ValueError:
                    st.error("Learner ID is required.")
                except Exception:
                    logging.exception("Unexpected error signing in")
                    st.error("Could not sign in. See console for details.")
    else:
        st.caption(f"Signed in as `{current_user['id']}`")
        if st.button("Sign out"):
            sign_out()
            st.session_state["player_navigator"] = None
            st.rerun()

    st.divider()
    st.subheader("Units")
    active_unit_key: str = st.radio(
        "Select a unit",
        options=unit_keys,
        format_func=lambda k: course_map[k].title,
        key="player_unit_radio",
        label_visibility="collapsed",
    )

navigator: CourseNavigator | None = st.session_state["player_navigator"]
current_id = current_user["id"] if current_user else None
navigator_id = getattr(navigator.identity, "id", None) if navigator is not None else None
if (
    navigator is None
    or navigator.unit.unit_key != active_unit_key
    or navigator_id != current_id
):
    navigator = _build_navigator(active_unit_key)

unit = navigator.unit
token = st.session_state["player_nav_token"]

try:
    unit_content = _cached_unit_content(unit.unit_key)
except FileNotFoundError:
    logging.exception("Lesson markdown missing for %s", unit.unit_key)
    unit_content = {s.id: "Content unavailable." for s in unit.sections}

display_name = load_display_name(navigator.identity, db_path=DB_PATH)
apply_course_theme("AI Literacy", "Ethics and Safety", learner_name=display_name)

# Scrollspy: the guided flow shows one section at a time, so the scroll
# position is the top of the section currently on screen.
n_sections = len(unit.sections)
section_idx = min(st.session_state["player_section_idx"], max(0, n_sections - 1))
boxes = layout_sections(
    list(unit.sections),
    {sid: estimate_height(md) for sid, md in unit_content.items()},
)
navigator.tracker.set_layout(boxes)
scroll_top = boxes[section_idx].top if boxes else 0.0
active_section_id = navigator.tracker.observe_scroll(scroll_top, VIEWPORT_HEIGHT)

with st.sidebar:
    st.divider()
    st.subheader("On this page")
    st.markdown(
        toc_html([(s.id, s.label) for s in unit.sections], active_section_id),
        unsafe_allow_html=True,
    )

    st.divider()
    st.subheader("Progress")
    progress_result = summarize_course_progress(
        navigator.identity, COURSE_ID, course_map, db_path=DB_PATH
    )
    if progress_result.ok:
        progress = progress_result.value
        st.metric("Completion", f"{progress.completion_pct:.0f} %")
        st.progress(progress.completion_pct / 100.0)
        next_key = progress.next_unit_key
        st.write(f"**Up next:** {course_map[next_key].title if next_key else EM_DASH}")
    else:
        st.caption(user_message(progress_result))

    if st.button("Check connection"):
        ping = ping_store(navigator.identity, db_path=DB_PATH)
        if ping.ok:
            st.success(ping.message)
        else:
            st.warning(user_message(ping))

# ---------------------------------------------------------------------------
# Main content area
# ---------------------------------------------------------------------------

# Flash message: stored before st.rerun() so it survives the cycle.
if st.session_state["player_flash"] is not None:
    level, msg = st.session_state["player_flash"]
    st.session_state["player_flash"] = None
    if level == "success":
        st.success(msg)
    elif level == "warning":
        st.warning(msg)
    else:
        st.error(msg)

st.title(unit.title)
if navigator.completed:
    st.caption("✓ Completed")

if navigator.needs_sign_in:
    st.markdown(
        "<div class='sign-in-hint'>Sign in from the sidebar to save your progress.</div>",
        unsafe_allow_html=True,
    )
if navigator.notice:
    st.info(navigator.notice)

# ── LESSON ────────────────────────────────────────────────────────────────────
current_section = unit.sections[section_idx]
st.caption(f"Part {section_idx + 1} of {n_sections}")
st.markdown(unit_content.get(current_section.id) or "Content unavailable.")
st.divider()

col_back, col_fwd = st.columns([1, 2])
with col_back:
    if section_idx > 0:
        if st.button("← Back", use_container_width=True):
            st.session_state["player_section_idx"] = section_idx - 1
            st.rerun()
with col_fwd:
    if section_idx < n_sections - 1:
        label = f"Continue → (Part {section_idx + 2} of {n_sections})"
        if st.button(label, type="primary", use_container_width=True):
            st.session_state["player_section_idx"] = section_idx + 1
            st.rerun()

is_last_section = section_idx >= n_sections - 1

# ── PRACTICE ──────────────────────────────────────────────────────────────────
if unit.practice_fields and is_last_section:
    st.subheader("Practice")
    st.caption("Saved on this device only. Not graded.")
    storage = LocalStorage(resolve_device_id(st.session_state, st.query_params))
    for field_id in unit.practice_fields:
        widget_key = f"draft_{token}_{field_id}"
        if widget_key not in st.session_state:
            try:
                st.session_state[widget_key] = restore_draft(storage, unit.unit_key, field_id) or ""
            except Exception:
                logging.exception("Error restoring draft %s", field_id)
                st.session_state[widget_key] = ""

        def _autosave(field_id: str = field_id, widget_key: str = widget_key) -> None:
            try:
                save_draft(storage, unit.unit_key, field_id, st.session_state[widget_key])
            except Exception:
                logging.exception("Error saving draft %s", field_id)

        st.text_area(
            field_id.replace("-", " ").capitalize(),
            key=widget_key,
            height=140,
            on_change=_autosave,
        )
    st.divider()

# ── QUIZ ──────────────────────────────────────────────────────────────────────
quiz = quiz_library.get(unit.quiz_id) if unit.quiz_id else None
if quiz is not None and is_last_section:
    if quiz.get("title"):
        st.subheader(quiz["title"])

    if navigator.quiz_state is QuizState.NOT_ATTEMPTED:
        previous = load_quiz_attempt(navigator.identity, navigator.quiz_key, db_path=DB_PATH)
        if previous.ok and previous.value is not None:
            record = previous.value
            st.caption(
                f"Last recorded attempt: {record.score} / {record.total}"
                f" ({'passed' if record.passed else 'not passed'})"
            )

    questions = quiz["questions"]
    seed_quiz_answers(
        st.session_state,
        token,
        [q["question_id"] for q in questions],
        navigator.attempt.answers,
    )
    for q_idx, q in enumerate(questions):
        opts = q["options"]
        radio_key = quiz_radio_key(token, q["question_id"])

        def _select(qid: str = q["question_id"], radio_key: str = radio_key) -> None:
            choice = st.session_state.get(radio_key)
            if choice is not None:
                navigator.select_answer(qid, choice)

        # A seeded key already carries the value; passing index too makes Streamlit warn.
        radio_kwargs = {} if radio_key in st.session_state else {"index": None}
        st.radio(
            f"**{q_idx + 1}.** {q['question']}",
            options=list(range(len(opts))),
            format_func=lambda j, o=opts: o[j],
            key=radio_key,
            on_change=_select,
            **radio_kwargs,
        )

    def _submit_quiz() -> None:
        st.session_state.pop(confirm_key, None)
        try:
            result = navigator.submit_quiz()
            if result.ok:
                st.session_state["player_flash"] = (
                    "success",
                    f"Score: {result.value} / {len(questions)}",
                )
            else:
                st.session_state["player_flash"] = ("error", navigator.notice)
        except Exception:
            logging.exception("Unexpected error submitting quiz")
            st.session_state["player_flash"] = ("error", "An unexpected error occurred.")
        st.rerun()

    confirm_key = f"confirm_submit_{token}"
    col_submit, col_reset = st.columns([1, 1])
    with col_submit:
        if st.button("Submit Quiz", key=f"submit_{token}", use_container_width=True):
            if unanswered_prompt(navigator.attempt, questions) is None:
                _submit_quiz()
            st.session_state[confirm_key] = True
            st.rerun()
    with col_reset:
        if st.button("Reset answers", key=f"reset_{token}", use_container_width=True):
            navigator.reset_quiz()
            st.session_state.pop(confirm_key, None)
            for q in questions:
                st.session_state.pop(quiz_radio_key(token, q["question_id"]), None)
            st.rerun()

    prompt = unanswered_prompt(navigator.attempt, questions)
    if st.session_state.get(confirm_key) and prompt is not None:
        st.warning(prompt)
        col_yes, col_no = st.columns([1, 1])
        with col_yes:
            if st.button("Submit anyway", key=f"submit_anyway_{token}", use_container_width=True):
                _submit_quiz()
        with col_no:
            if st.button("Keep answering", key=f"keep_answering_{token}", use_container_width=True):
                st.session_state.pop(confirm_key, None)
                st.rerun()

    if navigator.quiz_state is QuizState.SUBMITTED:
        st.write(f"**Score:** {navigator.last_score} / {len(questions)}")
        for i, q in enumerate(questions):
            chosen = navigator.attempt.answers.get(q["question_id"])
            if chosen == q["correct_index"]:
                st.markdown(f"- Q{i + 1}: Correct")
            else:
                correct_text = q["options"][q["correct_index"]]
                st.markdown(f"- Q{i + 1}: Incorrect {EM_DASH} correct answer: **{correct_text}**")
    st.divider()

# ── COMPLETE / NEXT ───────────────────────────────────────────────────────────
if is_last_section:
    gate = navigator.gate_decision()
    if unit.is_gated and not navigator.completed and not gate.allowed:
        st.caption(f"To finish this unit, {gate.reason}.")

    col_done, col_next = st.columns([1, 1])
    with col_done:
        if st.button(
            "✓ Completed" if navigator.completed else "Mark Complete",
            type="primary",
            disabled=navigator.completed,
            use_container_width=True,
        ):
            try:
                result = navigator.mark_complete()
                _flash(result, f"✓ '{unit.title}' marked complete.")
            except Exception:
                logging.exception("Unexpected error in Mark Complete")
                st.session_state["player_flash"] = ("error", "An unexpected error occurred.")
            st.rerun()
    with col_next:
        if unit.next_unit_key is not None:
            if st.button("Next unit →", use_container_width=True):
                result = navigator.advance()
                if result.ok:
                    st.session_state["player_pending_unit"] = result.value
                elif result.error is ErrorKind.GATE_BLOCKED:
                    st.session_state["player_flash"] = ("warning", f"To continue, {result.message}.")
                st.rerun()
