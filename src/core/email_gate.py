"""
Tiger Reminders — Email Escalation Gate.

Decides whether to ask the backend to email a reminder for one entity.
Runs independently of the in-app ledger and is deliberately stricter:

1. settings and preferences must allow email at every layer
2. the user id and email must be known
3. 23-hour cooldown after a successful send
4. only inside a ±3 minute window around 24 h before (tasks, appointments)
   or 1 h before (meetings), unless the entity was just edited to land
   inside that window
5. one attempt per entity per minute (marker held for 5 minutes)
6. no attempt within 10 minutes of any previous attempt

The record is marked sent before the request goes out so overlapping
passes see it, and rolled back to sent=False on failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.data.models import EmailSentRecord, EntityType, ReminderEntity, User

if TYPE_CHECKING:
    from src.core.preferences import PreferenceResolver
    from src.ports.backend_port import BackendPort
    from src.ports.state_store_port import ReminderStateStore

logger = logging.getLogger(__name__)

EMAIL_COOLDOWN_SECONDS = 23 * 60 * 60
EMAIL_WINDOW_SECONDS = 3 * 60
ATTEMPT_GUARD_SECONDS = 10 * 60
IDEMPOTENCY_TTL_SECONDS = 5 * 60

EMAIL_THRESHOLDS = {
    EntityType.TASK: 24 * 60 * 60,
    EntityType.APPOINTMENT: 24 * 60 * 60,
    EntityType.MEETING: 60 * 60,
}


def build_email_payload(entity: ReminderEntity, user: User) -> dict | None:
    """Request body for the type's scheduling route, or None if incomplete."""
    if not entity.title or not entity.due:
        return None

    if entity.entity_type == EntityType.TASK:
        return {
            "email": user.email,
            "taskTitle": entity.title,
            "taskId": entity.id,
            "dueDate": entity.due,
            "userId": user.id,
        }
    if entity.entity_type == EntityType.MEETING:
        return {
            "email": user.email,
            "meetingTitle": entity.title,
            "meetingId": entity.id,
            "startTime": entity.due,
            "meetingLink": entity.meeting_link,
            "userId": user.id,
        }
    return {
        "email": user.email,
        "appointmentTitle": entity.title,
        "appointmentId": entity.id,
        "dueDate": entity.due,
        "location": entity.location,
        "userId": user.id,
    }


def validate_payload(payload: dict, entity_type: EntityType) -> bool:
    if not payload.get("email") or not payload.get("userId"):
        return False

    if entity_type == EntityType.TASK:
        return bool(payload.get("taskTitle")) and bool(payload.get("taskId")) \
            and payload.get("dueDate") is not None
    if entity_type == EntityType.MEETING:
        return bool(payload.get("meetingTitle")) and bool(payload.get("meetingId")) \
            and payload.get("startTime") is not None
    return bool(payload.get("appointmentTitle")) and bool(payload.get("appointmentId")) \
        and payload.get("dueDate") is not None


def is_in_email_window(
    entity: ReminderEntity, now: float, recently_edited: bool = False,
) -> bool:
    """Step 4: exact window, or an edit that moved the due time inside it."""
    if not entity.due:
        return False
    threshold = EMAIL_THRESHOLDS[entity.entity_type]
    time_until_event = entity.due - now
    if abs(time_until_event - threshold) < EMAIL_WINDOW_SECONDS:
        return True
    return recently_edited and 0 < time_until_event < threshold


class EmailEscalationGate:
    """Backend email reminder requests with their own suppression rules."""

    def __init__(
        self,
        backend: BackendPort,
        store: ReminderStateStore,
        preferences: PreferenceResolver,
        user: User | None,
        email_enabled: bool = True,
    ) -> None:
        self._backend = backend
        self._store = store
        self._preferences = preferences
        self._user = user
        self._email_enabled = email_enabled

    def _channel_allows_email(self) -> bool:
        if not self._email_enabled:
            return False
        user_settings = self._preferences.user_settings
        server_email = user_settings.email_notifications_enabled if user_settings else False
        server_global = user_settings.notifications_enabled if user_settings else True
        return (
            server_email
            and server_global
            and self._preferences.preferences.email_notifications
        )

    async def send_email_notification(
        self,
        entity: ReminderEntity,
        now: float,
        recently_edited: bool = False,
    ) -> bool:
        """Request one email reminder if every gate passes.

        Returns True only when the backend accepted the request. Never
        raises: failures are logged and rolled back.
        """
        entity_type = entity.entity_type

        if not self._channel_allows_email():
            logger.debug("Email notifications disabled; skipping %s %s", entity_type.value, entity.id)
            return False

        user = self._user
        if user is None or not user.id or not user.email:
            logger.error("Cannot schedule email notification: user ID or email not found")
            return False

        existing = self._store.get_email_record(entity_type, entity.id)
        if existing is not None and existing.sent:
            since_last = now - existing.timestamp
            if since_last < EMAIL_COOLDOWN_SECONDS:
                logger.debug(
                    "Email already sent for %s %s %.1f hours ago, skipping",
                    entity_type.value, entity.id, since_last / 3600,
                )
                return False

        if not is_in_email_window(entity, now, recently_edited):
            logger.debug(
                "Not the right time to email %s %s (due in %ss)",
                entity_type.value, entity.id, (entity.due or now) - now,
            )
            return False

        marker = f"{entity_type.value}_{entity.id}_{int(now // 60)}"
        if self._store.has_marker(marker, now):
            logger.debug("Email attempt for %s %s already made this minute", entity_type.value, entity.id)
            return False
        self._store.set_marker(marker, now + IDEMPOTENCY_TTL_SECONDS)

        if existing is not None and now - existing.timestamp < ATTEMPT_GUARD_SECONDS:
            logger.info(
                "Email attempt for %s %s blocked: another attempt within 10 minutes",
                entity_type.value, entity.id,
            )
            return False

        self._store.set_email_record(entity_type, entity.id, EmailSentRecord(sent=True, timestamp=now))

        payload = build_email_payload(entity, user)
        if payload is None or not validate_payload(payload, entity_type):
            logger.warning(
                "Email not sent for %s %s: missing required fields",
                entity_type.value, entity.id,
            )
            self._store.set_email_record(entity_type, entity.id, EmailSentRecord(sent=False, timestamp=now))
            return False

        try:
            if entity_type == EntityType.TASK:
                await self._backend.schedule_task_reminder(payload)
            elif entity_type == EntityType.MEETING:
                await self._backend.schedule_meeting_reminder(payload)
            else:
                await self._backend.schedule_appointment_reminder(payload)
        except Exception as exc:
            logger.error(
                "Error scheduling email for %s %s: %s", entity_type.value, entity.id, exc,
            )
            self._store.set_email_record(entity_type, entity.id, EmailSentRecord(sent=False, timestamp=now))
            return False

        logger.info("Email reminder scheduled for %s %s: %s", entity_type.value, entity.id, entity.title)
        return True
