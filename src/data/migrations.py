"""
Tiger Reminders — Persisted state (de)serialization and schema migrations.

Migrations run once, when the state store hydrates, so the reminder
hot path only ever sees current-version records:

- Notification records written before time-point tracking (no
  schema_version, no notified time points) become version 2 records with
  an empty fired set. The next matching time point then fires normally.
- Email history written as bare booleans becomes {sent, timestamp},
  assuming the email went out 12 hours before the migration.
"""

from __future__ import annotations

import logging

from src.data.models import (
    NOTIFICATION_RECORD_VERSION,
    EmailSentRecord,
    EntityType,
    NotificationRecord,
)

logger = logging.getLogger(__name__)

_LEGACY_EMAIL_AGE_SECONDS = 12 * 60 * 60

NotificationHistory = dict[EntityType, dict[str, NotificationRecord]]
EmailHistory = dict[EntityType, dict[str, EmailSentRecord]]


def empty_notification_history() -> NotificationHistory:
    return {entity_type: {} for entity_type in EntityType}


def empty_email_history() -> EmailHistory:
    return {entity_type: {} for entity_type in EntityType}


# ---------------------------------------------------------------------------
# Notification records
# ---------------------------------------------------------------------------


def migrate_notification_record(raw: dict) -> NotificationRecord:
    """Upgrade a pre-time-point record (camelCase or snake_case) to version 2."""
    points = raw.get("notified_time_points") or raw.get("notifiedTimePoints") or {}
    return NotificationRecord(
        notified_time_points={name for name, fired in points.items() if fired},
        last_notified=float(raw.get("last_notified", raw.get("lastNotified", 0)) or 0),
        count=int(raw.get("count", 0) or 0),
        acknowledged=raw.get("acknowledged"),
    )


def notification_record_from_dict(raw: dict) -> NotificationRecord:
    if raw.get("schema_version") != NOTIFICATION_RECORD_VERSION:
        return migrate_notification_record(raw)
    return NotificationRecord(
        notified_time_points={
            name for name, fired in raw.get("notified_time_points", {}).items() if fired
        },
        last_notified=float(raw.get("last_notified", 0)),
        count=int(raw.get("count", 0)),
        acknowledged=raw.get("acknowledged"),
    )


def notification_record_to_dict(record: NotificationRecord) -> dict:
    data = {
        "schema_version": NOTIFICATION_RECORD_VERSION,
        "notified_time_points": {name: True for name in sorted(record.notified_time_points)},
        "last_notified": record.last_notified,
        "count": record.count,
    }
    if record.acknowledged is not None:
        data["acknowledged"] = record.acknowledged
    return data


def parse_notification_history(raw: object) -> NotificationHistory:
    """Parse the persisted ledger blob, migrating legacy records."""
    history = empty_notification_history()
    if not isinstance(raw, dict):
        return history

    migrated = 0
    for entity_type in EntityType:
        section = raw.get(entity_type.store_key) or {}
        if not isinstance(section, dict):
            continue
        for entity_id, record in section.items():
            if not isinstance(record, dict):
                logger.warning(
                    "Dropping unreadable notification record %s/%s",
                    entity_type.value, entity_id,
                )
                continue
            if record.get("schema_version") != NOTIFICATION_RECORD_VERSION:
                migrated += 1
            history[entity_type][str(entity_id)] = notification_record_from_dict(record)

    if migrated:
        logger.info("Migrated %d notification records to time-point tracking", migrated)
    return history


def notification_history_to_dict(history: NotificationHistory, now: float) -> dict:
    data: dict = {
        entity_type.store_key: {
            entity_id: notification_record_to_dict(record)
            for entity_id, record in history[entity_type].items()
        }
        for entity_type in EntityType
    }
    data["last_updated"] = now
    return data


# ---------------------------------------------------------------------------
# Email-sent records
# ---------------------------------------------------------------------------


def parse_email_history(raw: object, now: float) -> EmailHistory:
    """Parse the persisted email blob, upgrading boolean entries."""
    history = empty_email_history()
    if not isinstance(raw, dict):
        return history

    upgraded = 0
    for entity_type in EntityType:
        section = raw.get(entity_type.store_key) or {}
        if not isinstance(section, dict):
            continue
        for entity_id, record in section.items():
            if isinstance(record, bool):
                upgraded += 1
                history[entity_type][str(entity_id)] = EmailSentRecord(
                    sent=record, timestamp=now - _LEGACY_EMAIL_AGE_SECONDS,
                )
            elif isinstance(record, dict):
                history[entity_type][str(entity_id)] = EmailSentRecord(
                    sent=bool(record.get("sent")),
                    timestamp=float(record.get("timestamp", 0) or 0),
                )

    if upgraded:
        logger.info("Upgraded %d email history entries to include timestamps", upgraded)
    return history


def email_history_to_dict(history: EmailHistory, now: float) -> dict:
    data: dict = {
        entity_type.store_key: {
            entity_id: {"sent": record.sent, "timestamp": record.timestamp}
            for entity_id, record in history[entity_type].items()
        }
        for entity_type in EntityType
    }
    data["last_updated"] = now
    return data
