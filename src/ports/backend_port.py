"""Backend port — abstract interface for the task manager REST API.

Core modules depend on this protocol, never on a specific transport.
"""

from __future__ import annotations

from typing import Protocol


class BackendError(Exception):
    """Raised when any backend request fails."""


class BackendPort(Protocol):
    """Abstract backend interface used by the reminder service."""

    async def get_tasks(self) -> list[dict]: ...

    async def get_meetings(self) -> list[dict]: ...

    async def get_appointments(self) -> list[dict]: ...

    async def get_user_settings(self) -> dict: ...

    async def schedule_task_reminder(self, payload: dict) -> dict: ...

    async def schedule_meeting_reminder(self, payload: dict) -> dict: ...

    async def schedule_appointment_reminder(self, payload: dict) -> dict: ...
