"""Preference resolver.

Merges the server-held notification switches with the preferences cached
in the state store. The server's global switch always wins: when
notifications are globally off, every channel is off regardless of what
the user opted into locally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.data.models import NotificationPreferences, UserSettings

if TYPE_CHECKING:
    from src.ports.state_store_port import ReminderStateStore

logger = logging.getLogger(__name__)

DEFAULT_STORED_PREFERENCES = {
    "tasks": True,
    "meetings": True,
    "appointments": True,
    "desktop": True,
    "email": True,
    "useReminderService": True,
}

_TYPE_KEYS = ("tasks", "meetings", "appointments")


def _user_choices(stored: dict) -> dict[str, bool]:
    """Per-type switches the user chose, ignoring a forced global-off write."""
    source = stored.get("userChoices") if stored.get("globalOverride") else None
    if not isinstance(source, dict):
        source = stored
    return {key: bool(source.get(key, True)) for key in _TYPE_KEYS}


class PreferenceResolver:
    """Owns the current UserSettings and the resolved NotificationPreferences."""

    def __init__(self, store: ReminderStateStore) -> None:
        self._store = store
        self.user_settings: UserSettings | None = None
        self.preferences = NotificationPreferences()

    def sync(self, user_settings: UserSettings) -> NotificationPreferences:
        """Recompute preferences from fresh server settings.

        Per-type switches are the user's stored opt-outs ANDed with the
        global switch. A global disable is written over the stored view,
        with the user's own choices kept aside under "userChoices" so they
        come back when the global switch is turned on again.
        """
        stored = self._store.get_preferences() or dict(DEFAULT_STORED_PREFERENCES)
        choices = _user_choices(stored)

        global_enabled = user_settings.notifications_enabled
        desktop_enabled = global_enabled and user_settings.show_notifications
        email_enabled = global_enabled and user_settings.email_notifications_enabled

        to_save = {
            **stored,
            "desktop": desktop_enabled,
            "email": email_enabled,
            "useReminderService": True,
        }
        if global_enabled:
            to_save.update(choices)
            to_save["globalOverride"] = False
            to_save.pop("userChoices", None)
        else:
            to_save.update({key: False for key in _TYPE_KEYS})
            to_save["globalOverride"] = True
            to_save["userChoices"] = choices
        self._store.set_preferences(to_save)

        self.user_settings = user_settings
        self.preferences = NotificationPreferences(
            task_reminders=bool(to_save["tasks"]),
            meeting_reminders=bool(to_save["meetings"]),
            appointment_reminders=bool(to_save["appointments"]),
            desktop_notifications=desktop_enabled,
            email_notifications=email_enabled,
        )
        logger.debug("Preferences synced from server settings: %s", self.preferences)
        return self.preferences

    def load_fallback(self) -> NotificationPreferences:
        """Use cached preferences when server settings are unavailable."""
        stored = self._store.get_preferences()
        if stored is None:
            logger.info("No stored notification preferences, using defaults")
            stored = dict(DEFAULT_STORED_PREFERENCES)
            self._store.set_preferences(stored)
        elif not stored.get("useReminderService"):
            stored["useReminderService"] = True
            self._store.set_preferences(stored)

        self.preferences = NotificationPreferences(
            task_reminders=bool(stored.get("tasks", True)),
            meeting_reminders=bool(stored.get("meetings", True)),
            appointment_reminders=bool(stored.get("appointments", True)),
            desktop_notifications=bool(stored.get("desktop", True)),
            email_notifications=bool(stored.get("email", True)),
        )
        logger.debug("Fallback preferences loaded: %s", self.preferences)
        return self.preferences

    @property
    def notifications_enabled(self) -> bool:
        """Server global switch; True while settings are unknown."""
        return self.user_settings.notifications_enabled if self.user_settings else True

    def desktop_allowed(self) -> bool:
        """Global → server desktop switch → resolved preference."""
        show = self.user_settings.show_notifications if self.user_settings else True
        return self.notifications_enabled and show and self.preferences.desktop_notifications
