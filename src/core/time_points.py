"""Reminder time point evaluator — pure business logic.

Decides whether "now" sits on one of the fixed lead times before an
entity's due instant, and whether the entity may remind at all.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from enum import Enum

from src.data.models import ReminderEntity

logger = logging.getLogger(__name__)

TOLERANCE_SECONDS = 5 * 60


class TimePoint(Enum):
    """Lead time before the due instant, in seconds."""

    ONE_DAY = 24 * 60 * 60
    HALF_DAY = 12 * 60 * 60
    ONE_HOUR = 60 * 60
    THIRTY_MIN = 30 * 60


# Longest lead time plus the tolerance window.
MAX_LOOKAHEAD_SECONDS = TimePoint.ONE_DAY.value + TOLERANCE_SECONDS


def match_time_point(now: float, due: float) -> TimePoint | None:
    """Return the time point `now` falls on for `due`, or None.

    Offsets are at least 30 minutes apart and the window is ±5 minutes,
    so at most one time point can match.
    """
    time_until_due = due - now
    for point in TimePoint:
        if abs(time_until_due - point.value) < TOLERANCE_SECONDS:
            return point
    return None


def is_reminder_eligible(entity: ReminderEntity, now: float) -> bool:
    """Check everything except the time point itself.

    Excludes completed entities, entities without a due instant, recurring
    series parents, recurrences whose end date passed, and anything not
    strictly in the future within the lookahead.
    """
    if entity.completed or not entity.due:
        return False

    if entity.recurrence_end_date and entity.recurrence_end_date < now:
        return False

    if entity.is_series_parent:
        return False

    time_until_due = entity.due - now
    return 0 < time_until_due <= MAX_LOOKAHEAD_SECONDS


def format_time_left(seconds_left: float) -> str:
    """Human-readable countdown: minutes under an hour, else hours and minutes."""
    seconds_left = int(seconds_left)
    if seconds_left < 60 * 60:
        minutes = seconds_left // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''} left"

    hours = seconds_left // 3600
    minutes = (seconds_left % 3600) // 60
    text = f"{hours} hour{'s' if hours != 1 else ''}"
    if minutes > 0:
        text += f" {minutes} minute{'s' if minutes != 1 else ''}"
    return text + " left"
