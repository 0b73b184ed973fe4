"""
Tiger Reminders — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Backend REST API
    API_BASE_URL: str
    API_TOKEN: str
    API_TIMEOUT_SECONDS: float = 10.0

    # Account the reminders run for (email reminders need both)
    USER_ID: int | None = None
    USER_EMAIL: str = ""

    # SQLite: reminder ledgers, preferences and in-app notifications
    STATE_DB_PATH: str = "data/reminders.db"

    # Polling
    POLL_INTERVAL_SECONDS: float = 120.0
    REFRESH_DELAY_SECONDS: float = 1.0
    INITIAL_DELAY_SECONDS: float = 2.0

    # Capability flag: False runs the in-app/desktop-only variant
    EMAIL_ENABLED: bool = True

    # OS-level channel: "desktop" | "telegram" | "none"
    DESKTOP_PROVIDER: str = "desktop"
    SOUND_PATH: str = "assets/bell_not.wav"

    # Telegram (only needed when DESKTOP_PROVIDER=telegram)
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: int | None = None

    # Used to render "Due at HH:MM" in reminder messages
    TIMEZONE: str = "UTC"

    @field_validator("USER_ID", "TELEGRAM_CHAT_ID", mode="before")
    @classmethod
    def parse_optional_int(cls, v: str | int | None) -> int | None:
        if v is None or isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip():
            return int(v.strip())
        return None

    @field_validator("EMAIL_ENABLED", mode="before")
    @classmethod
    def parse_bool(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    base_url = os.getenv("API_BASE_URL", "")
    token = os.getenv("API_TOKEN", "")

    if not base_url:
        print("ERROR: API_BASE_URL is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not token or token.startswith("your-"):
        print("ERROR: API_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        API_BASE_URL=base_url,
        API_TOKEN=token,
        API_TIMEOUT_SECONDS=os.getenv("API_TIMEOUT_SECONDS", "10"),
        USER_ID=os.getenv("USER_ID", ""),
        USER_EMAIL=os.getenv("USER_EMAIL", ""),
        STATE_DB_PATH=os.getenv("STATE_DB_PATH", "data/reminders.db"),
        POLL_INTERVAL_SECONDS=os.getenv("POLL_INTERVAL_SECONDS", "120"),
        REFRESH_DELAY_SECONDS=os.getenv("REFRESH_DELAY_SECONDS", "1"),
        INITIAL_DELAY_SECONDS=os.getenv("INITIAL_DELAY_SECONDS", "2"),
        EMAIL_ENABLED=os.getenv("EMAIL_ENABLED", "true"),
        DESKTOP_PROVIDER=os.getenv("DESKTOP_PROVIDER", "desktop"),
        SOUND_PATH=os.getenv("SOUND_PATH", "assets/bell_not.wav"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        TELEGRAM_CHAT_ID=os.getenv("TELEGRAM_CHAT_ID", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
    )


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
