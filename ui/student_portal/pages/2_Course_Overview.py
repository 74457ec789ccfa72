"""
ui/student_portal/pages/2_Course_Overview.py

Course Overview: every unit grouped by week with the learner's completion
marks and a shortcut into the Lesson Player.

Run from the repository root:
    streamlit run ui/student_portal/student_app.py
"""

import logging
import sys
from itertools import groupby
from pathlib import Path

import streamlit as st

# ---------------------------------------------------------------------------
# sys.path bootstrap: this file lives three levels below repo root
# (ui/student_portal/pages/).
# ---------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[3]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from execution.course.course_registry import COURSE_ID, split_unit_key              # noqa: E402
from execution.course.load_course_map import load_course_map                        # noqa: E402
from execution.db.sqlite import get_db_path                                         # noqa: E402
from execution.identity.load_display_name import load_display_name                  # noqa: E402
from execution.identity.resolve_identity import Identified, resolve_identity        # noqa: E402
from execution.navigation.course_navigator import user_message                      # noqa: E402
from execution.progress.summarize_course_progress import summarize_course_progress  # noqa: E402
from ui.student_portal.session_auth import get_current_user                         # noqa: E402
from ui.theme import apply_course_theme                                             # noqa: E402

DB_PATH = get_db_path()


@st.cache_data
def _cached_course_map() -> dict:
    return load_course_map(COURSE_ID)


st.set_page_config(page_title="Course Overview", layout="wide")

identity = resolve_identity(get_current_user)
apply_course_theme(
    "AI Literacy",
    "Course overview",
    learner_name=load_display_name(identity, db_path=DB_PATH),
)

try:
    course_map = _cached_course_map()
except Exception:
    logging.exception("Failed to load course map")
    st.error("Course content could not be loaded. See console for details.")
    st.stop()

result = summarize_course_progress(identity, COURSE_ID, course_map, db_path=DB_PATH)
if result.ok:
    progress = result.value
    done = progress.completed_units
    col_pct, col_count = st.columns(2)
    col_pct.metric("Completion", f"{progress.completion_pct:.0f} %")
    col_count.metric("Units done", f"{len(done)} / {progress.total_units}")
    st.progress(progress.completion_pct / 100.0)
else:
    done = frozenset()
    st.warning(user_message(result))

if not isinstance(identity, Identified):
    st.info("Sign in from the Lesson Player to keep track of your progress.")

st.divider()

for week, keys in groupby(course_map, key=lambda k: split_unit_key(k)[1]):
    st.subheader(week.replace("week", "Week "))
    for unit_key in keys:
        unit = course_map[unit_key]
        mark = "✓" if unit_key in done else ("🔒" if unit.is_gated else "•")
        col_title, col_open = st.columns([4, 1])
        col_title.markdown(f"{mark} **{unit.title}**")
        if col_open.button("Open", key=f"open_{unit_key}", use_container_width=True):
            st.session_state["player_pending_unit"] = unit_key
            st.switch_page("pages/1_Lesson_Player.py")
