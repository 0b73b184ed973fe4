"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like a temp state DB and a frozen clock.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("API_BASE_URL", "http://backend.test/api")
os.environ.setdefault("API_TOKEN", "fake-token-for-tests")
os.environ.setdefault("USER_ID", "42")
os.environ.setdefault("USER_EMAIL", "user@example.com")
os.environ.setdefault("STATE_DB_PATH", ":memory:")
os.environ.setdefault("DESKTOP_PROVIDER", "none")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest
from unittest.mock import AsyncMock, MagicMock

# 2026-01-15 12:00:00 UTC
NOW = 1768478400.0


class FakeClock:
    """A settable time source."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_reminders.db")


@pytest.fixture
def unloaded_state_db(tmp_db_path, clock):
    """A ReminderStateDB that has not been hydrated yet."""
    from src.data.db import ReminderStateDB
    return ReminderStateDB(db_path=tmp_db_path, clock=clock)


@pytest.fixture
def state_db(unloaded_state_db):
    """A loaded ReminderStateDB backed by a temp file."""
    unloaded_state_db.load()
    return unloaded_state_db


@pytest.fixture
def notification_db(tmp_path):
    """Return a NotificationDB instance backed by a temp file."""
    from src.data.db import NotificationDB
    return NotificationDB(db_path=str(tmp_path / "test_notifications.db"))


@pytest.fixture
def backend():
    """A BackendPort mock with empty collections and permissive settings."""
    mock = MagicMock()
    mock.get_tasks = AsyncMock(return_value=[])
    mock.get_meetings = AsyncMock(return_value=[])
    mock.get_appointments = AsyncMock(return_value=[])
    mock.get_user_settings = AsyncMock(return_value={
        "notifications_enabled": True,
        "show_notifications": True,
        "email_notifications_enabled": True,
    })
    mock.schedule_task_reminder = AsyncMock(return_value={"ok": True})
    mock.schedule_meeting_reminder = AsyncMock(return_value={"ok": True})
    mock.schedule_appointment_reminder = AsyncMock(return_value={"ok": True})
    return mock


@pytest.fixture
def desktop():
    """A DesktopNotifierPort mock that is permitted and always succeeds."""
    mock = MagicMock()
    mock.is_permitted = MagicMock(return_value=True)
    mock.show = AsyncMock()
    mock.play_sound = AsyncMock()
    return mock
