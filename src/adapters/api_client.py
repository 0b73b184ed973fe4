"""Task manager REST API adapter — implements BackendPort.

Thin httpx wrapper over the endpoints the reminder service consumes:
the three entity collections, the user's notification settings and the
email reminder scheduling routes.

Every failure (transport, timeout, non-2xx, bad JSON) surfaces as
BackendError so callers deal with a single exception type.
"""

from __future__ import annotations

import logging

import httpx

from src.ports.backend_port import BackendError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10


class ApiClient:
    """httpx implementation of BackendPort."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        if base_url is None or token is None or timeout is None:
            from src.config import settings

            base_url = base_url if base_url is not None else settings.API_BASE_URL
            token = token if token is not None else settings.API_TOKEN
            timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS

        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._timeout = timeout or _DEFAULT_TIMEOUT_SECONDS

    async def _request(self, method: str, path: str, payload: dict | None = None) -> object:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.request(
                    method, url, json=payload, headers=self._headers,
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise BackendError(
                f"{method} {path} failed with status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc

    async def _get_list(self, path: str) -> list[dict]:
        data = await self._request("GET", path)
        if not isinstance(data, list):
            logger.warning("Expected a list from GET %s, got %s", path, type(data).__name__)
            return []
        return data

    async def get_tasks(self) -> list[dict]:
        return await self._get_list("/tasks")

    async def get_meetings(self) -> list[dict]:
        return await self._get_list("/meetings")

    async def get_appointments(self) -> list[dict]:
        return await self._get_list("/appointments")

    async def get_user_settings(self) -> dict:
        data = await self._request("GET", "/user-settings")
        if not isinstance(data, dict):
            raise BackendError("GET /user-settings returned a non-object payload")
        return data

    async def schedule_task_reminder(self, payload: dict) -> dict:
        return await self._request("POST", "/email/task-reminder", payload)

    async def schedule_meeting_reminder(self, payload: dict) -> dict:
        return await self._request("POST", "/email/meeting-reminder", payload)

    async def schedule_appointment_reminder(self, payload: dict) -> dict:
        return await self._request("POST", "/email/appointment-reminder", payload)
