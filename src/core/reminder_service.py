"""
Tiger Reminders — Reminder Service.

Wires the reminder pipeline together:

    Preference Resolver → Data Fetcher → Edit-Invalidation Watcher →
    Reminder Evaluator + Deduplication Ledger →
    Notification Dispatcher + Email Escalation Gate

refresh() pulls fresh settings and collections from the backend and
invalidates edited entities; tick() evaluates the current collections
once and reports what fired. The scheduler drives both.

This module is provider-agnostic: it depends on the BackendPort,
ReminderStateStore and notification ports, not on specific
implementations.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import TYPE_CHECKING, Awaitable, Callable

from src.core.dispatcher import NotificationDispatcher
from src.core.edit_watcher import EditInvalidationWatcher
from src.core.email_gate import EmailEscalationGate
from src.core.ledger import NotificationLedger
from src.core.normalizer import normalize_entities
from src.core.preferences import PreferenceResolver
from src.core.time_points import is_reminder_eligible
from src.data.models import EntityType, ReminderEntity, User, UserSettings

if TYPE_CHECKING:
    from src.ports.backend_port import BackendPort
    from src.ports.notification_port import DesktopNotifierPort, InAppNotificationPort
    from src.ports.state_store_port import ReminderStateStore

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 24 * 60 * 60
EMAIL_RECORD_MAX_AGE_SECONDS = 7 * 24 * 60 * 60


@dataclass
class EntityBatch:
    """The latest known state of all three collections."""

    tasks: list[ReminderEntity] = field(default_factory=list)
    meetings: list[ReminderEntity] = field(default_factory=list)
    appointments: list[ReminderEntity] = field(default_factory=list)

    def by_type(self, entity_type: EntityType) -> list[ReminderEntity]:
        return {
            EntityType.TASK: self.tasks,
            EntityType.MEETING: self.meetings,
            EntityType.APPOINTMENT: self.appointments,
        }[entity_type]


@dataclass
class TickReport:
    """What one evaluation pass did."""

    notified: list[tuple[EntityType, str]] = field(default_factory=list)
    emailed: list[tuple[EntityType, str]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Data fetcher
# ---------------------------------------------------------------------------


class ReminderDataFetcher:
    """Pull collections and settings; a failed collection keeps its last value."""

    def __init__(self, backend: BackendPort) -> None:
        self._backend = backend
        self._last = EntityBatch()

    async def _fetch_one(
        self, entity_type: EntityType, fetch: Callable[[], Awaitable[list[dict]]],
    ) -> list[ReminderEntity]:
        try:
            raw_items = await fetch()
        except Exception as exc:
            logger.warning("Fetching %ss failed, keeping previous data: %s", entity_type.value, exc)
            return self._last.by_type(entity_type)
        return normalize_entities(entity_type, raw_items)

    async def fetch(self) -> EntityBatch:
        batch = EntityBatch(
            tasks=await self._fetch_one(EntityType.TASK, self._backend.get_tasks),
            meetings=await self._fetch_one(EntityType.MEETING, self._backend.get_meetings),
            appointments=await self._fetch_one(
                EntityType.APPOINTMENT, self._backend.get_appointments,
            ),
        )
        self._last = batch
        return batch

    async def fetch_user_settings(self) -> UserSettings | None:
        try:
            return UserSettings.from_dict(await self._backend.get_user_settings())
        except Exception as exc:
            logger.warning("Fetching user settings failed: %s", exc)
            return None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ReminderService:
    """One parameterized reminder service; email is a capability flag."""

    def __init__(
        self,
        backend: BackendPort,
        store: ReminderStateStore,
        feed: InAppNotificationPort,
        desktop: DesktopNotifierPort | None,
        user: User | None,
        tz: tzinfo,
        email_enabled: bool = True,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._clock = clock
        self.preferences = PreferenceResolver(store)
        self.ledger = NotificationLedger(store)
        self.watcher = EditInvalidationWatcher(store)
        self.fetcher = ReminderDataFetcher(backend)
        self.email_gate = EmailEscalationGate(
            backend, store, self.preferences, user, email_enabled=email_enabled,
        )
        self.dispatcher = NotificationDispatcher(
            feed, desktop, self.preferences, tz, sleep=sleep,
        )
        self.entities = EntityBatch()

    def start(self) -> None:
        """Hydrate persisted state before the first evaluation."""
        if not self._store.initialized:
            self._store.load()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Pull settings and collections, invalidating edited entities.

        Returns True when the collections or the resolved preferences
        differ from the previous refresh.
        """
        previous_preferences = self.preferences.preferences

        user_settings = await self.fetcher.fetch_user_settings()
        if user_settings is not None:
            self.preferences.sync(user_settings)
        elif self.preferences.user_settings is None:
            self.preferences.load_fallback()

        batch = await self.fetcher.fetch()
        now = self._clock()
        for entity_type in EntityType:
            edited = self.watcher.observe(entity_type, batch.by_type(entity_type))
            await self._email_edited(edited, now)

        changed = batch != self.entities or self.preferences.preferences != previous_preferences
        self.entities = batch
        return changed

    async def _email_edited(self, edited: list[ReminderEntity], now: float) -> None:
        """Give edited entities an immediate chance at their email reminder."""
        if not self.preferences.notifications_enabled:
            return
        if not self.preferences.preferences.email_notifications:
            return
        for entity in edited:
            if not self.preferences.preferences.reminders_enabled_for(entity.entity_type):
                continue
            if not is_reminder_eligible(entity, now):
                continue
            await self.email_gate.send_email_notification(
                entity, now, recently_edited=True,
            )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def tick(self, now: float | None = None) -> TickReport:
        """Evaluate every known entity once against the ledger."""
        if now is None:
            now = self._clock()
        report = TickReport()

        self.cleanup_email_history(now)

        if not self.preferences.notifications_enabled:
            logger.debug("Notifications are globally disabled, skipping check")
            return report

        for entity_type in EntityType:
            if not self.preferences.preferences.reminders_enabled_for(entity_type):
                logger.debug("%s reminders are disabled, skipping", entity_type.value)
                continue
            for entity in self.entities.by_type(entity_type):
                try:
                    await self._evaluate(entity, now, report)
                except Exception:
                    logger.exception(
                        "Reminder evaluation failed for %s %s", entity_type.value, entity.id,
                    )
        return report

    async def _evaluate(self, entity: ReminderEntity, now: float, report: TickReport) -> None:
        """In-app reminder on a fresh time point; email on its own schedule.

        The email gate has its own window, cooldown and attempt guards, so
        it is consulted on every pass, not only when the ledger fires.
        """
        if not is_reminder_eligible(entity, now):
            return

        if self.ledger.should_notify(entity.id, entity.entity_type, now, entity.due):
            try:
                if await self.dispatcher.dispatch(entity, now):
                    report.notified.append((entity.entity_type, entity.id))
            except Exception:
                logger.exception(
                    "Reminder dispatch failed for %s %s", entity.entity_type.value, entity.id,
                )

        if self.preferences.preferences.email_notifications:
            if await self.email_gate.send_email_notification(entity, now):
                report.emailed.append((entity.entity_type, entity.id))

    def cleanup_email_history(self, now: float) -> int:
        """Once a day, drop email records older than a week.

        Only stale records go; anything newer still backs the 23-hour
        cooldown and the attempt guard.
        """
        if now - self._store.get_last_cleanup() < CLEANUP_INTERVAL_SECONDS:
            return 0

        removed = 0
        for entity_type in EntityType:
            for entity_id, record in self._store.list_email_records(entity_type).items():
                if now - record.timestamp >= EMAIL_RECORD_MAX_AGE_SECONDS:
                    self._store.delete_email_record(entity_type, entity_id)
                    removed += 1

        self._store.set_last_cleanup(now)
        if removed:
            logger.info("Cleaned up %d old email notification records", removed)
        return removed


def create_reminder_service() -> ReminderService:
    """Build a ReminderService from settings with the default adapters."""
    from zoneinfo import ZoneInfo

    from src.adapters.api_client import ApiClient
    from src.adapters.notifier_factory import create_desktop_notifier
    from src.config import settings
    from src.data.db import NotificationDB, ReminderStateDB

    return ReminderService(
        backend=ApiClient(),
        store=ReminderStateDB(settings.STATE_DB_PATH),
        feed=NotificationDB(settings.STATE_DB_PATH),
        desktop=create_desktop_notifier(),
        user=User(id=settings.USER_ID, email=settings.USER_EMAIL),
        tz=ZoneInfo(settings.TIMEZONE),
        email_enabled=settings.EMAIL_ENABLED,
    )
