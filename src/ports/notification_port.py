"""Notification ports — abstract interfaces for the reminder sinks.

Core modules depend on these protocols, never on a specific feed or
OS-level provider.
"""

from __future__ import annotations

from typing import Protocol

from src.data.models import Notification


class InAppNotificationPort(Protocol):
    """The in-app notification feed."""

    def add_notification(
        self,
        title: str,
        message: str,
        type: str,
        link: str | None = None,
    ) -> Notification: ...


class DesktopNotifierPort(Protocol):
    """Best-effort OS-level channel: a visible notification plus a sound cue."""

    def is_permitted(self) -> bool: ...

    async def show(self, title: str, message: str) -> None: ...

    async def play_sound(self) -> None: ...
