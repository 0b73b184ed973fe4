"""Notification dispatcher.

Turns a fired reminder into a human-readable title/message, drops exact
repeats, records it in the in-app feed and, when every gate allows it,
raises an OS-level notification with a sound cue.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Awaitable, Callable

from src.core.ledger import MessageDeduplicator
from src.core.time_points import format_time_left
from src.data.models import EntityType, ReminderEntity

if TYPE_CHECKING:
    from src.core.preferences import PreferenceResolver
    from src.ports.notification_port import DesktopNotifierPort, InAppNotificationPort

logger = logging.getLogger(__name__)

SOUND_RETRY_DELAY_SECONDS = 0.5

_FEED_LINKS = {
    EntityType.TASK: "/tasks",
    EntityType.MEETING: "/meetings",
    EntityType.APPOINTMENT: "/appointments",
}


def build_reminder_message(
    entity: ReminderEntity, now: float, tz: tzinfo,
) -> tuple[str, str]:
    """Return (title, message) for a reminder about `entity`."""
    time_left = format_time_left(entity.due - now)
    at = datetime.fromtimestamp(entity.due, tz=tz).strftime("%H:%M")

    if entity.entity_type == EntityType.TASK:
        message = f"Due at {at} ({time_left})"
    elif entity.entity_type == EntityType.MEETING:
        message = f"Starts at {at} ({time_left})"
        if entity.meeting_link:
            message += f"\nLocation: {entity.meeting_link}"
    else:
        message = f"At {at} ({time_left})"
        if entity.location:
            message += f"\nLocation: {entity.location}"
        if entity.contact:
            message += f"\nWith: {entity.contact}"

    if entity.description:
        message += f"\n{entity.description}"

    if entity.is_recurring:
        message += " (Recurring)"

    return entity.title, message


class NotificationDispatcher:
    """Fan a fired reminder out to the in-app feed and the desktop channel."""

    def __init__(
        self,
        feed: InAppNotificationPort,
        desktop: DesktopNotifierPort | None,
        preferences: PreferenceResolver,
        tz: tzinfo,
        deduplicator: MessageDeduplicator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._feed = feed
        self._desktop = desktop
        self._preferences = preferences
        self._tz = tz
        self._dedup = deduplicator or MessageDeduplicator()
        self._sleep = sleep

    async def dispatch(self, entity: ReminderEntity, now: float) -> bool:
        """Deliver one reminder. Returns False if it was a duplicate."""
        title, message = build_reminder_message(entity, now, self._tz)
        type_ = entity.entity_type.value

        if not self._dedup.allow(type_, title, message, now):
            return False

        self._feed.add_notification(
            title=title, message=message, type=type_, link=_FEED_LINKS[entity.entity_type],
        )
        logger.info("Reminder sent for %s %s: %s", type_, entity.id, title)

        if self._desktop is None or not self._preferences.desktop_allowed():
            return True
        if not self._desktop.is_permitted():
            logger.debug("Desktop notifications not permitted; in-app only")
            return True

        try:
            await self._desktop.show(title, message)
        except Exception as exc:
            logger.warning("Failed to show desktop notification: %s", exc)
            return True

        await self._play_sound()
        return True

    async def _play_sound(self) -> None:
        """Play the bell, retrying once after a short delay."""
        try:
            await self._desktop.play_sound()
            return
        except Exception as exc:
            logger.warning("Notification sound failed, retrying: %s", exc)

        await self._sleep(SOUND_RETRY_DELAY_SECONDS)
        try:
            await self._desktop.play_sound()
        except Exception as exc:
            logger.warning("Second notification sound attempt failed: %s", exc)
