"""Desktop notifier factory — creates the right adapter based on config."""

from __future__ import annotations

from src.config import settings
from src.ports.notification_port import DesktopNotifierPort


def create_desktop_notifier() -> DesktopNotifierPort | None:
    """Return the OS-level channel matching DESKTOP_PROVIDER, or None for "none"."""
    provider = settings.DESKTOP_PROVIDER.lower()

    if provider == "desktop":
        from src.adapters.desktop_notifier import DesktopNotifier

        return DesktopNotifier(sound_path=settings.SOUND_PATH)

    if provider == "telegram":
        from telegram import Bot

        from src.adapters.telegram_notifier import TelegramNotifier

        if not settings.TELEGRAM_BOT_TOKEN:
            raise ValueError("DESKTOP_PROVIDER=telegram requires TELEGRAM_BOT_TOKEN")
        return TelegramNotifier(
            Bot(token=settings.TELEGRAM_BOT_TOKEN), chat_id=settings.TELEGRAM_CHAT_ID,
        )

    if provider == "none":
        return None

    raise ValueError(f"Unknown DESKTOP_PROVIDER: {provider!r}")
