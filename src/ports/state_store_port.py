"""Reminder state store port — abstract interface for persisted reminder state.

Core modules depend on this protocol, never on a specific persistence
backend. Implementations hold the notification ledger, the email-sent
ledger, the cached preferences and short-lived idempotency markers.
"""

from __future__ import annotations

from typing import Protocol

from src.data.models import EmailSentRecord, EntityType, NotificationRecord


class ReminderStateStore(Protocol):
    """Abstract persistence interface used by the reminder service."""

    @property
    def initialized(self) -> bool: ...

    def load(self) -> None: ...

    # Notification ledger
    def get_notification_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> NotificationRecord | None: ...

    def set_notification_record(
        self, entity_type: EntityType, entity_id: str, record: NotificationRecord,
    ) -> None: ...

    def delete_notification_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> None: ...

    # Email-sent ledger
    def get_email_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> EmailSentRecord | None: ...

    def set_email_record(
        self, entity_type: EntityType, entity_id: str, record: EmailSentRecord,
    ) -> None: ...

    def delete_email_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> None: ...

    def list_email_records(
        self, entity_type: EntityType,
    ) -> dict[str, EmailSentRecord]: ...

    # Cached notification preferences (raw stored view)
    def get_preferences(self) -> dict | None: ...

    def set_preferences(self, preferences: dict) -> None: ...

    # Idempotency markers
    def has_marker(self, key: str, now: float) -> bool: ...

    def set_marker(self, key: str, expires_at: float) -> None: ...

    # Housekeeping
    def get_last_cleanup(self) -> float: ...

    def set_last_cleanup(self, timestamp: float) -> None: ...
