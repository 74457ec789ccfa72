"""
ui/student_portal/player_state.py

Session-state helpers for the Lesson Player that do not need a running
Streamlit script. Each takes the mapping to work on (st.session_state,
st.query_params or a plain dict in tests).
"""

from collections.abc import Iterable, MutableMapping

from execution.drafts.local_storage import is_valid_device_id, new_device_id

DEVICE_STATE_KEY = "player_device_id"
DEVICE_QUERY_PARAM = "device"


def quiz_radio_key(token: int, question_id: str) -> str:
    """Widget key for one quiz question, scoped to the current navigator."""
    return f"q_{token}_{question_id}"


def seed_quiz_answers(
    state: MutableMapping,
    token: int,
    question_ids: Iterable[str],
    answers: dict[str, int],
) -> None:
    """Put the navigator's recorded answers back into missing radio keys.

    Streamlit drops a widget's key when the widget is not rendered on a run,
    so leaving the quiz section forgets the visible choice while the
    navigator still holds it. Keys already present are left alone.
    """
    for qid in question_ids:
        key = quiz_radio_key(token, qid)
        if key not in state and qid in answers:
            state[key] = answers[qid]


def resolve_device_id(state: MutableMapping, query_params: MutableMapping) -> str:
    """Return this browser's device id, minting one on first visit.

    The id lives in the session and in the page URL, so a reload of the
    same URL finds the same drafts and any other browser starts empty.
    """
    device_id = state.get(DEVICE_STATE_KEY)
    if not is_valid_device_id(device_id):
        device_id = query_params.get(DEVICE_QUERY_PARAM)
    if not is_valid_device_id(device_id):
        device_id = new_device_id()
    state[DEVICE_STATE_KEY] = device_id
    if query_params.get(DEVICE_QUERY_PARAM) != device_id:
        query_params[DEVICE_QUERY_PARAM] = device_id
    return device_id
