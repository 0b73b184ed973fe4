"""Tests for src.core.time_points — pure reminder timing logic."""

from src.core.time_points import (
    MAX_LOOKAHEAD_SECONDS,
    TOLERANCE_SECONDS,
    TimePoint,
    format_time_left,
    is_reminder_eligible,
    match_time_point,
)
from src.data.models import EntityType, ReminderEntity

NOW = 1768478400


def _task(**overrides) -> ReminderEntity:
    fields = {
        "id": "1",
        "entity_type": EntityType.TASK,
        "title": "Report",
        "due": NOW + 3600,
    }
    fields.update(overrides)
    return ReminderEntity(**fields)


class TestMatchTimePoint:
    def test_exact_offsets(self):
        assert match_time_point(NOW, NOW + 86400) is TimePoint.ONE_DAY
        assert match_time_point(NOW, NOW + 43200) is TimePoint.HALF_DAY
        assert match_time_point(NOW, NOW + 3600) is TimePoint.ONE_HOUR
        assert match_time_point(NOW, NOW + 1800) is TimePoint.THIRTY_MIN

    def test_inside_tolerance(self):
        assert match_time_point(NOW, NOW + 3600 + 299) is TimePoint.ONE_HOUR
        assert match_time_point(NOW, NOW + 3600 - 299) is TimePoint.ONE_HOUR

    def test_tolerance_boundary_is_exclusive(self):
        assert match_time_point(NOW, NOW + 3600 + TOLERANCE_SECONDS) is None
        assert match_time_point(NOW, NOW + 3600 - TOLERANCE_SECONDS) is None

    def test_between_points_returns_none(self):
        assert match_time_point(NOW, NOW + 7200) is None

    def test_past_due_returns_none(self):
        assert match_time_point(NOW, NOW - 1800) is None

    def test_at_most_one_point_matches(self):
        for offset in range(0, 90000, 60):
            due = NOW + offset
            hits = [
                p for p in TimePoint
                if abs((due - NOW) - p.value) < TOLERANCE_SECONDS
            ]
            assert len(hits) <= 1


class TestIsReminderEligible:
    def test_future_task_is_eligible(self):
        assert is_reminder_eligible(_task(), NOW) is True

    def test_completed_is_not_eligible(self):
        assert is_reminder_eligible(_task(completed=True), NOW) is False

    def test_missing_due_is_not_eligible(self):
        assert is_reminder_eligible(_task(due=None), NOW) is False

    def test_past_recurrence_end_is_not_eligible(self):
        task = _task(is_recurring=True, parent_id="9", recurrence_end_date=NOW - 60)
        assert is_reminder_eligible(task, NOW) is False

    def test_future_recurrence_end_is_eligible(self):
        task = _task(is_recurring=True, parent_id="9", recurrence_end_date=NOW + 86400 * 7)
        assert is_reminder_eligible(task, NOW) is True

    def test_series_parent_is_not_eligible(self):
        assert is_reminder_eligible(_task(is_recurring=True), NOW) is False

    def test_series_instance_is_eligible(self):
        assert is_reminder_eligible(_task(is_recurring=True, parent_id="9"), NOW) is True

    def test_past_due_is_not_eligible(self):
        assert is_reminder_eligible(_task(due=NOW - 1), NOW) is False

    def test_due_now_is_not_eligible(self):
        assert is_reminder_eligible(_task(due=NOW), NOW) is False

    def test_lookahead_boundary(self):
        assert is_reminder_eligible(_task(due=NOW + MAX_LOOKAHEAD_SECONDS), NOW) is True
        assert is_reminder_eligible(_task(due=NOW + MAX_LOOKAHEAD_SECONDS + 1), NOW) is False


class TestFormatTimeLeft:
    def test_minutes_only_under_an_hour(self):
        assert format_time_left(1800) == "30 minutes left"

    def test_singular_minute(self):
        assert format_time_left(60) == "1 minute left"

    def test_whole_hour(self):
        assert format_time_left(3600) == "1 hour left"

    def test_hours_and_minutes(self):
        assert format_time_left(5400) == "1 hour 30 minutes left"
        assert format_time_left(7260) == "2 hours 1 minute left"

    def test_one_day(self):
        assert format_time_left(86400) == "24 hours left"

    def test_fractional_seconds_truncate(self):
        assert format_time_left(1799.9) == "29 minutes left"
