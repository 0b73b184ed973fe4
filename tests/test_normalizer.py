"""Tests for src.core.normalizer — raw API payloads to ReminderEntity."""

from src.core.normalizer import (
    normalize_appointment,
    normalize_entities,
    normalize_meeting,
    normalize_task,
)
from src.data.models import EntityType


class TestNormalizeTask:
    def test_basic_fields(self):
        entity = normalize_task({
            "id": 7,
            "title": "Write report",
            "description": "Q3 numbers",
            "due_date": 1768482000,
            "completed": False,
            "priority": "high",
        })
        assert entity.id == "7"
        assert entity.entity_type == EntityType.TASK
        assert entity.title == "Write report"
        assert entity.description == "Q3 numbers"
        assert entity.due == 1768482000
        assert entity.completed is False
        assert entity.priority == "high"

    def test_zero_due_date_is_none(self):
        assert normalize_task({"id": 1, "title": "x", "due_date": 0}).due is None

    def test_string_due_date_is_parsed(self):
        assert normalize_task({"id": 1, "title": "x", "due_date": "1768482000"}).due == 1768482000

    def test_garbage_due_date_is_none(self):
        assert normalize_task({"id": 1, "title": "x", "due_date": "soon"}).due is None

    def test_recurrence_fields(self):
        entity = normalize_task({
            "id": 2,
            "title": "Standup notes",
            "due_date": 1768482000,
            "is_recurring": 1,
            "recurrence_pattern": "weekly",
            "recurrence_interval": "2",
            "recurrence_end_date": 1770000000,
            "parent_task_id": 1,
        })
        assert entity.is_recurring is True
        assert entity.recurrence_pattern == "weekly"
        assert entity.recurrence_interval == 2
        assert entity.recurrence_end_date == 1770000000
        assert entity.parent_id == "1"
        assert entity.is_series_parent is False

    def test_empty_description_is_none(self):
        assert normalize_task({"id": 1, "title": "x", "description": ""}).description is None


class TestNormalizeMeeting:
    def test_link_read_from_location(self):
        entity = normalize_meeting({
            "id": 3,
            "title": "Sync",
            "start_time": 1768482000,
            "location": "https://meet.example.com/abc",
            "parent_meeting_id": None,
        })
        assert entity.entity_type == EntityType.MEETING
        assert entity.due == 1768482000
        assert entity.meeting_link == "https://meet.example.com/abc"
        assert entity.parent_id is None

    def test_link_falls_back_to_meeting_link(self):
        entity = normalize_meeting({
            "id": 3, "title": "Sync", "start_time": 1768482000,
            "meeting_link": "https://meet.example.com/xyz",
        })
        assert entity.meeting_link == "https://meet.example.com/xyz"


class TestNormalizeAppointment:
    def test_location_and_contact(self):
        entity = normalize_appointment({
            "id": 4,
            "title": "Dentist",
            "start_time": 1768482000,
            "location": "Main St 5",
            "attendees": "Dr. Levi",
            "parent_appointment_id": 2,
        })
        assert entity.entity_type == EntityType.APPOINTMENT
        assert entity.location == "Main St 5"
        assert entity.contact == "Dr. Levi"
        assert entity.parent_id == "2"


class TestNormalizeEntities:
    def test_skips_items_without_id(self):
        entities = normalize_entities(EntityType.TASK, [
            {"id": 1, "title": "ok", "due_date": 1768482000},
            {"title": "no id"},
            "not a dict",
        ])
        assert [e.id for e in entities] == ["1"]

    def test_empty_collection(self):
        assert normalize_entities(EntityType.MEETING, []) == []
