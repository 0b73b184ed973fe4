"""
Tiger Reminders — Reminder State Database.

Fired time points, email history and cached preferences persist in
SQLite across restarts. Each logical store is one JSON blob in a
key/value table, hydrated once at startup and written through on every
mutation.

Also home to the in-app notification feed (NotificationDB).
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Callable

from src.data.migrations import (
    EmailHistory,
    NotificationHistory,
    email_history_to_dict,
    empty_email_history,
    empty_notification_history,
    notification_history_to_dict,
    parse_email_history,
    parse_notification_history,
)
from src.data.models import EmailSentRecord, EntityType, Notification, NotificationRecord

logger = logging.getLogger(__name__)

NOTIFICATION_HISTORY_KEY = "notification_history"
EMAIL_HISTORY_KEY = "email_notification_history"
PREFERENCES_KEY = "notification_preferences"
LAST_CLEANUP_KEY = "last_notification_cleanup"
_MARKER_PREFIX = "marker:"


def _default_db_path() -> str:
    from src.config import settings

    return settings.STATE_DB_PATH


class ReminderStateDB:
    """SQLite-backed implementation of ReminderStateStore."""

    def __init__(
        self,
        db_path: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if db_path is None:
            db_path = _default_db_path()

        self._db_path = db_path
        self._clock = clock
        self._initialized = False
        self._notifications: NotificationHistory = empty_notification_history()
        self._emails: EmailHistory = empty_email_history()
        self._preferences: dict | None = None
        self._last_cleanup = 0.0
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the key/value table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    expires_at REAL
                )
            """)
        logger.debug("Reminder state table initialized at %s", self._db_path)

    # ------------------------------------------------------------------
    # Raw blob access
    # ------------------------------------------------------------------

    def _read_json(self, key: str) -> object | None:
        """Read one blob; corrupt JSON is treated as absent."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Corrupt %s in state store, resetting: %s", key, exc)
            return None

    def _write_json(self, key: str, value: object, expires_at: float | None = None) -> None:
        if not self._initialized:
            logger.warning("Ignoring write to %s before state store is loaded", key)
            return
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value, expires_at = excluded.expires_at
                    """,
                    (key, json.dumps(value), expires_at),
                )
        except sqlite3.Error as exc:
            logger.error("Failed to persist %s: %s", key, exc)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    def load(self) -> None:
        """Hydrate all stores from disk, running schema migrations once."""
        now = self._clock()
        self._notifications = parse_notification_history(
            self._read_json(NOTIFICATION_HISTORY_KEY)
        )
        self._emails = parse_email_history(self._read_json(EMAIL_HISTORY_KEY), now)

        preferences = self._read_json(PREFERENCES_KEY)
        self._preferences = preferences if isinstance(preferences, dict) else None

        last_cleanup = self._read_json(LAST_CLEANUP_KEY)
        self._last_cleanup = (
            float(last_cleanup) if isinstance(last_cleanup, (int, float)) else 0.0
        )

        self._initialized = True
        # Persist migrated shapes right away.
        self._save_notifications()
        self._save_emails()
        logger.info(
            "Reminder state loaded: %d notification records, %d email records",
            sum(len(v) for v in self._notifications.values()),
            sum(len(v) for v in self._emails.values()),
        )

    def _save_notifications(self) -> None:
        self._write_json(
            NOTIFICATION_HISTORY_KEY,
            notification_history_to_dict(self._notifications, self._clock()),
        )

    def _save_emails(self) -> None:
        self._write_json(
            EMAIL_HISTORY_KEY, email_history_to_dict(self._emails, self._clock()),
        )

    # ------------------------------------------------------------------
    # Notification ledger
    # ------------------------------------------------------------------

    def get_notification_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> NotificationRecord | None:
        return self._notifications[entity_type].get(entity_id)

    def set_notification_record(
        self, entity_type: EntityType, entity_id: str, record: NotificationRecord,
    ) -> None:
        if not self._initialized:
            logger.warning("Ignoring ledger update for %s %s before load", entity_type.value, entity_id)
            return
        self._notifications[entity_type][entity_id] = record
        self._save_notifications()

    def delete_notification_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> None:
        if self._notifications[entity_type].pop(entity_id, None) is not None:
            self._save_notifications()

    # ------------------------------------------------------------------
    # Email-sent ledger
    # ------------------------------------------------------------------

    def get_email_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> EmailSentRecord | None:
        return self._emails[entity_type].get(entity_id)

    def set_email_record(
        self, entity_type: EntityType, entity_id: str, record: EmailSentRecord,
    ) -> None:
        if not self._initialized:
            logger.warning("Ignoring email record for %s %s before load", entity_type.value, entity_id)
            return
        self._emails[entity_type][entity_id] = record
        self._save_emails()

    def delete_email_record(
        self, entity_type: EntityType, entity_id: str,
    ) -> None:
        if self._emails[entity_type].pop(entity_id, None) is not None:
            self._save_emails()

    def list_email_records(
        self, entity_type: EntityType,
    ) -> dict[str, EmailSentRecord]:
        return dict(self._emails[entity_type])

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self) -> dict | None:
        return dict(self._preferences) if self._preferences is not None else None

    def set_preferences(self, preferences: dict) -> None:
        if not self._initialized:
            logger.warning("Ignoring preferences write before load")
            return
        self._preferences = dict(preferences)
        self._write_json(PREFERENCES_KEY, self._preferences)

    # ------------------------------------------------------------------
    # Idempotency markers
    # ------------------------------------------------------------------

    def has_marker(self, key: str, now: float) -> bool:
        """True if an unexpired marker exists; expired markers are purged."""
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM kv_store WHERE key LIKE ? AND expires_at <= ?",
                (f"{_MARKER_PREFIX}%", now),
            )
            row = conn.execute(
                "SELECT 1 FROM kv_store WHERE key = ?", (_MARKER_PREFIX + key,)
            ).fetchone()
        return row is not None

    def set_marker(self, key: str, expires_at: float) -> None:
        self._write_json(_MARKER_PREFIX + key, True, expires_at=expires_at)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def get_last_cleanup(self) -> float:
        return self._last_cleanup

    def set_last_cleanup(self, timestamp: float) -> None:
        self._last_cleanup = timestamp
        self._write_json(LAST_CLEANUP_KEY, timestamp)


class NotificationDB:
    """SQLite-backed in-app notification feed."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            db_path = _default_db_path()

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS notifications (
                    id         INTEGER PRIMARY KEY AUTOINCREMENT,
                    title      TEXT    NOT NULL,
                    message    TEXT    NOT NULL,
                    type       TEXT    NOT NULL,
                    read       INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT    NOT NULL,
                    link       TEXT
                )
            """)
        logger.debug("Notifications table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_notification(row: sqlite3.Row) -> Notification:
        return Notification(
            id=row["id"],
            title=row["title"],
            message=row["message"],
            type=row["type"],
            read=bool(row["read"]),
            created_at=row["created_at"],
            link=row["link"],
        )

    def add_notification(
        self,
        title: str,
        message: str,
        type: str,
        link: str | None = None,
    ) -> Notification:
        """Insert a new unread notification at the top of the feed."""
        created_at = datetime.now().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO notifications (title, message, type, read, created_at, link)
                VALUES (?, ?, ?, 0, ?, ?)
                """,
                (title, message, type, created_at, link),
            )
            notification_id = cursor.lastrowid

        logger.info("Notification #%d added: [%s] %s", notification_id, type, title)
        return Notification(
            id=notification_id,
            title=title,
            message=message,
            type=type,
            read=False,
            created_at=created_at,
            link=link,
        )

    def list_notifications(self, unread_only: bool = False) -> list[Notification]:
        """Newest first."""
        query = "SELECT * FROM notifications"
        if unread_only:
            query += " WHERE read = 0"
        query += " ORDER BY id DESC"
        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_notification(r) for r in rows]

    def unread_count(self) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM notifications WHERE read = 0"
            ).fetchone()
        return row["n"]

    def mark_as_read(self, notification_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE notifications SET read = 1 WHERE id = ? AND read = 0",
                (notification_id,),
            )
        return cursor.rowcount > 0

    def mark_all_as_read(self) -> int:
        with self._connect() as conn:
            cursor = conn.execute("UPDATE notifications SET read = 1 WHERE read = 0")
        return cursor.rowcount

    def clear_notifications(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM notifications")
        logger.info("Notification feed cleared")
