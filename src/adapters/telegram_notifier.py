"""Telegram notification adapter — implements DesktopNotifierPort.

Pushes reminders to a single Telegram chat instead of the local desktop,
for users who run the service on a headless box. Telegram plays its own
notification sound, so play_sound is a no-op.
"""

from __future__ import annotations

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of DesktopNotifierPort."""

    def __init__(self, bot: Bot, chat_id: int | None) -> None:
        self._bot = bot
        self._chat_id = chat_id

    def is_permitted(self) -> bool:
        return self._chat_id is not None

    async def show(self, title: str, message: str) -> None:
        await self._bot.send_message(chat_id=self._chat_id, text=f"{title}\n{message}")

    async def play_sound(self) -> None:
        return None
