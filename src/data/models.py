"""
Tiger Reminders — Data Models.

Entities arrive from the backend as raw dicts and are normalized into
ReminderEntity. Everything else here is reminder-service state that only
this process owns: fired time points, email history, resolved preferences
and the in-app notification feed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

NOTIFICATION_RECORD_VERSION = 2


class EntityType(str, Enum):
    """The three reminder-eligible collections."""

    TASK = "task"
    MEETING = "meeting"
    APPOINTMENT = "appointment"

    @property
    def store_key(self) -> str:
        """Plural key used for the per-type sections of persisted state."""
        return f"{self.value}s"


@dataclass
class ReminderEntity:
    """A task, meeting or appointment in the common reminder shape.

    `due` is the due/start instant in Unix seconds: due_date for tasks,
    start_time for meetings and appointments.
    """

    id: str
    entity_type: EntityType
    title: str
    due: int | None
    description: str | None = None
    completed: bool = False
    is_recurring: bool = False
    recurrence_pattern: str | None = None
    recurrence_interval: int | None = None
    recurrence_end_date: int | None = None
    parent_id: str | None = None
    priority: str | None = None          # tasks
    meeting_link: str | None = None      # meetings
    location: str | None = None          # appointments
    contact: str | None = None           # appointments

    @property
    def is_series_parent(self) -> bool:
        """A recurring template; only its materialized instances remind."""
        return self.is_recurring and not self.parent_id


@dataclass
class NotificationRecord:
    """Which time points already fired for one entity."""

    notified_time_points: set[str] = field(default_factory=set)
    last_notified: float = 0.0
    count: int = 0
    acknowledged: bool | None = None
    schema_version: int = NOTIFICATION_RECORD_VERSION


@dataclass
class EmailSentRecord:
    """Last attempted email reminder for one entity."""

    sent: bool
    timestamp: float


@dataclass
class NotificationPreferences:
    """Resolved per-channel switches used while evaluating reminders."""

    task_reminders: bool = True
    meeting_reminders: bool = True
    appointment_reminders: bool = True
    desktop_notifications: bool = True
    email_notifications: bool = True

    def reminders_enabled_for(self, entity_type: EntityType) -> bool:
        return {
            EntityType.TASK: self.task_reminders,
            EntityType.MEETING: self.meeting_reminders,
            EntityType.APPOINTMENT: self.appointment_reminders,
        }[entity_type]


@dataclass
class UserSettings:
    """Server-held notification switches (GET /user-settings)."""

    notifications_enabled: bool = True
    show_notifications: bool = True
    email_notifications_enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> UserSettings:
        """Build from the API payload; missing or null keys take defaults."""

        def _flag(key: str, default: bool) -> bool:
            value = data.get(key)
            return default if value is None else bool(value)

        return cls(
            notifications_enabled=_flag("notifications_enabled", True),
            show_notifications=_flag("show_notifications", True),
            email_notifications_enabled=_flag("email_notifications_enabled", False),
        )


@dataclass
class User:
    """The account reminders are evaluated for."""

    id: int | None
    email: str = ""


@dataclass
class Notification:
    """An entry in the in-app notification feed."""

    id: int
    title: str
    message: str
    type: str                      # task | meeting | appointment | reminder | system
    read: bool = False
    created_at: str = ""
    link: str | None = None
