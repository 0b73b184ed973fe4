"""
Tiger Reminders — Entry Point.

Single entry point: `python main.py` starts the reminder loop.
"""

import asyncio
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.config import settings
from src.core.reminder_service import create_reminder_service
from src.core.scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


async def run() -> None:
    scheduler = ReminderScheduler(
        create_reminder_service(),
        interval_seconds=settings.POLL_INTERVAL_SECONDS,
        refresh_delay_seconds=settings.REFRESH_DELAY_SECONDS,
        initial_delay_seconds=settings.INITIAL_DELAY_SECONDS,
    )
    scheduler.start()
    try:
        await scheduler.wait()
    finally:
        await scheduler.stop()


def main() -> None:
    logger.info("Starting Tiger Reminders against %s", settings.API_BASE_URL)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
