"""Raw API entity → ReminderEntity conversion — pure business logic.

The backend returns three differently shaped collections. Each is mapped
onto the common reminder shape so the evaluator, ledger and dispatcher
never look at raw payloads.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging

from src.data.models import EntityType, ReminderEntity

logger = logging.getLogger(__name__)


def _to_timestamp(value: object) -> int | None:
    """Coerce a Unix-seconds value; 0, empty and unparseable values → None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = int(float(value))
    except (TypeError, ValueError):
        return None
    return ts or None


def _to_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_id(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _common_fields(raw: dict, parent_key: str) -> dict:
    return {
        "id": str(raw["id"]),
        "title": raw.get("title") or "",
        "description": raw.get("description") or None,
        "is_recurring": bool(raw.get("is_recurring")),
        "recurrence_pattern": raw.get("recurrence_pattern"),
        "recurrence_interval": _to_int(raw.get("recurrence_interval")),
        "recurrence_end_date": _to_timestamp(raw.get("recurrence_end_date")),
        "parent_id": _to_id(raw.get(parent_key)),
    }


def normalize_task(raw: dict) -> ReminderEntity:
    return ReminderEntity(
        entity_type=EntityType.TASK,
        due=_to_timestamp(raw.get("due_date")),
        completed=bool(raw.get("completed")),
        priority=raw.get("priority"),
        **_common_fields(raw, "parent_task_id"),
    )


def normalize_meeting(raw: dict) -> ReminderEntity:
    # Meetings keep their link in the "location" column.
    return ReminderEntity(
        entity_type=EntityType.MEETING,
        due=_to_timestamp(raw.get("start_time")),
        meeting_link=raw.get("location") or raw.get("meeting_link") or None,
        **_common_fields(raw, "parent_meeting_id"),
    )


def normalize_appointment(raw: dict) -> ReminderEntity:
    return ReminderEntity(
        entity_type=EntityType.APPOINTMENT,
        due=_to_timestamp(raw.get("start_time")),
        location=raw.get("location") or None,
        contact=raw.get("attendees") or None,
        **_common_fields(raw, "parent_appointment_id"),
    )


_NORMALIZERS = {
    EntityType.TASK: normalize_task,
    EntityType.MEETING: normalize_meeting,
    EntityType.APPOINTMENT: normalize_appointment,
}


def normalize_entities(
    entity_type: EntityType, raw_items: list[dict],
) -> list[ReminderEntity]:
    """Normalize a whole collection, skipping items without an id."""
    normalize = _NORMALIZERS[entity_type]
    entities: list[ReminderEntity] = []
    for raw in raw_items:
        if not isinstance(raw, dict) or raw.get("id") is None:
            logger.warning("Skipping malformed %s payload: %r", entity_type.value, raw)
            continue
        entities.append(normalize(raw))
    return entities
