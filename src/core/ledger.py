"""
Tiger Reminders — Deduplication Ledger.

Two independent layers keep reminders from repeating:

- NotificationLedger: persisted, per entity and per time point. A reminder
  fires once per (entity, time point) until the entity's due instant
  changes and the edit watcher clears its record.
- MessageDeduplicator: in memory, per visible message. Two evaluation
  passes landing within seconds of each other cannot show the same
  title/message twice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.core.time_points import match_time_point
from src.data.models import EntityType, NotificationRecord

if TYPE_CHECKING:
    from src.ports.state_store_port import ReminderStateStore

logger = logging.getLogger(__name__)

MESSAGE_DEDUP_WINDOW_SECONDS = 10.0


class NotificationLedger:
    """Per-entity record of fired time points, written through to the store."""

    def __init__(self, store: ReminderStateStore) -> None:
        self._store = store

    def should_notify(
        self,
        entity_id: str,
        entity_type: EntityType,
        now: float,
        due: float,
    ) -> bool:
        """Return True exactly once per (entity, time point).

        Records the time point as fired when returning True. Returns False
        without touching state when `now` is not on a time point.
        """
        point = match_time_point(now, due)
        if point is None:
            return False

        if not self._store.initialized:
            logger.warning(
                "State store not loaded; skipping %s %s", entity_type.value, entity_id,
            )
            return False

        record = self._store.get_notification_record(entity_type, entity_id)
        if record is None:
            logger.info(
                "First notification for %s %s at time point %s",
                entity_type.value, entity_id, point.name,
            )
            self._store.set_notification_record(
                entity_type,
                entity_id,
                NotificationRecord(
                    notified_time_points={point.name}, last_notified=now, count=1,
                ),
            )
            return True

        if point.name in record.notified_time_points:
            logger.debug(
                "Skipping %s %s: already notified for %s",
                entity_type.value, entity_id, point.name,
            )
            return False

        logger.info(
            "Notification for %s %s at time point %s",
            entity_type.value, entity_id, point.name,
        )
        self._store.set_notification_record(
            entity_type,
            entity_id,
            NotificationRecord(
                notified_time_points=record.notified_time_points | {point.name},
                last_notified=now,
                count=record.count + 1,
                acknowledged=record.acknowledged,
            ),
        )
        return True

    def clear(self, entity_type: EntityType, entity_id: str) -> None:
        """Forget every fired time point for one entity."""
        self._store.delete_notification_record(entity_type, entity_id)


class MessageDeduplicator:
    """Suppress identical visible notifications within a short window."""

    def __init__(self, window_seconds: float = MESSAGE_DEDUP_WINDOW_SECONDS) -> None:
        self._window = window_seconds
        self._seen: dict[str, float] = {}

    def allow(self, type: str, title: str, message: str, now: float) -> bool:
        key = f"{type}:{title}:{message}"
        last = self._seen.get(key)
        if last is not None and now - last < self._window:
            logger.debug("Preventing duplicate notification: %s", key)
            return False
        self._seen[key] = now
        self._prune(now)
        return True

    def _prune(self, now: float) -> None:
        stale = [k for k, ts in self._seen.items() if now - ts >= self._window]
        for key in stale:
            del self._seen[key]
