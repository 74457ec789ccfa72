"""
execution/drafts/draft_cache.py

Autosave for ungraded practice input (redaction demo text, threat-model
worksheet answers). One slot per (unit_key, field_id), stored in device
local storage as JSON {"value": ...} under "draft:<unit_key>:<field_id>".

Drafts never reach the progress store and are absent on a new device.
"""

import json
import logging

from execution.course.course_registry import is_valid_unit_key
from execution.drafts.local_storage import LocalStorage

logger = logging.getLogger(__name__)


def draft_key(unit_key: str, field_id: str) -> str:
    """Return the local storage key for a draft slot.

    Raises:
        ValueError: If unit_key is malformed or field_id is blank.
    """
    if not is_valid_unit_key(unit_key):
        raise ValueError(f"Invalid unit_key: {unit_key!r}")
    if not isinstance(field_id, str) or not field_id.strip():
        raise ValueError(f"draft_key: 'field_id' must be a non-empty string, got {field_id!r}")
    return f"draft:{unit_key}:{field_id}"


def save_draft(storage: LocalStorage, unit_key: str, field_id: str, value: str) -> None:
    """Write the current practice text through to local storage."""
    if not isinstance(value, str):
        raise ValueError(f"save_draft: 'value' must be a string, got {type(value).__name__}")
    storage.set_item(draft_key(unit_key, field_id), json.dumps({"value": value}))


def restore_draft(storage: LocalStorage, unit_key: str, field_id: str) -> str | None:
    """Return the saved practice text verbatim, or None if nothing usable is stored."""
    raw = storage.get_item(draft_key(unit_key, field_id))
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable draft for %s/%s", unit_key, field_id)
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("value"), str):
        return None
    return payload["value"]
