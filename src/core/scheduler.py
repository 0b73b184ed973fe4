"""
Tiger Reminders — Reminder Scheduler.

Drives the ReminderService from a single asyncio task:

- after a short initial delay, a refresh + evaluation pass runs every
  POLL_INTERVAL_SECONDS (refresh, brief settle delay, evaluate)
- notify_data_changed() wakes the loop early for an immediate pass

Passes run one at a time on the same task, so evaluations never
interleave. This module is provider-agnostic: it only talks to the
service.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from src.core.reminder_service import ReminderService

logger = logging.getLogger(__name__)

# Time point windows are ±5 minutes wide; a slower loop can skip one.
MAX_SAFE_INTERVAL_SECONDS = 5 * 60


class ReminderScheduler:
    """Owns the one timer that drives reminder evaluation."""

    def __init__(
        self,
        service: ReminderService,
        interval_seconds: float = 120,
        refresh_delay_seconds: float = 1,
        initial_delay_seconds: float = 2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_seconds >= MAX_SAFE_INTERVAL_SECONDS:
            logger.warning(
                "Poll interval %ss is not below %ss; time points may be missed",
                interval_seconds, MAX_SAFE_INTERVAL_SECONDS,
            )
        self._service = service
        self._interval = interval_seconds
        self._refresh_delay = refresh_delay_seconds
        self._initial_delay = initial_delay_seconds
        self._sleep = sleep
        self._wake: asyncio.Event | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Hydrate state and start the loop. Calling twice is a no-op."""
        if self.running:
            return
        self._service.start()
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run())
        logger.info("Reminder scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Reminder scheduler stopped")

    async def wait(self) -> None:
        """Block until the loop ends."""
        if self._task is not None:
            await self._task

    def notify_data_changed(self) -> None:
        """Request an immediate pass, e.g. after an entity was saved."""
        if self._wake is not None:
            self._wake.set()

    async def run_pass(self, from_timer: bool = True) -> None:
        """One refresh followed by one evaluation. Never raises."""
        try:
            changed = await self._service.refresh()
            logger.debug("Refresh complete (changed=%s)", changed)
        except Exception:
            logger.exception("Reminder refresh failed")

        if from_timer:
            await self._sleep(self._refresh_delay)

        try:
            report = await self._service.tick()
        except Exception:
            logger.exception("Reminder evaluation failed")
            return

        if report.notified or report.emailed:
            logger.info(
                "Reminder pass: %d notified, %d emailed",
                len(report.notified), len(report.emailed),
            )

    async def _wait_for_wake(self, timeout: float) -> bool:
        """Sleep up to `timeout`; True if woken by notify_data_changed()."""
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        self._wake.clear()
        return True

    async def _run(self) -> None:
        delay = self._initial_delay
        while True:
            woken = await self._wait_for_wake(delay)
            await self.run_pass(from_timer=not woken)
            delay = self._interval
