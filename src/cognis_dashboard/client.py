"""HTTP client for the Cognis observability endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .config import Settings
from .models import AuditEvent, DashboardSummary

logger = logging.getLogger(__name__)


class DashboardBackendError(Exception):
    """Base error for backend request failures."""


class BackendConnectionError(DashboardBackendError):
    """Raised when the backend cannot be reached."""


class BackendStatusError(DashboardBackendError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendResponseError(DashboardBackendError):
    """Raised when a response body is not the expected JSON shape."""


class CognisClient:
    """HTTP client for the Cognis gateway dashboard API."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise BackendConnectionError(f"backend_timeout: Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendConnectionError(f"backend_connection_failed: {exc}") from exc

        if not response.is_success:
            raise BackendStatusError(
                f"backend_error_{response.status_code}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as exc:
            raise BackendResponseError(f"backend_invalid_json: {path}") from exc

    async def get_dashboard_summary(self) -> DashboardSummary:
        data = await self.call("GET", "/dashboard/summary")
        try:
            return DashboardSummary.model_validate(data)
        except ValidationError as exc:
            logger.debug("dashboard_summary_invalid: %s", exc)
            raise BackendResponseError("backend_invalid_summary") from exc

    async def get_audit_events(self, limit: int | None = None) -> list[AuditEvent]:
        data = await self.call(
            "GET",
            "/audit/events",
            params={"limit": limit or self.settings.event_limit},
        )
        if not isinstance(data, dict):
            raise BackendResponseError("backend_invalid_events")
        raw_events = data.get("events") or []
        if not isinstance(raw_events, list):
            raise BackendResponseError("backend_invalid_events")
        try:
            return [AuditEvent.model_validate(item) for item in raw_events]
        except ValidationError as exc:
            logger.debug("audit_events_invalid: %s", exc)
            raise BackendResponseError("backend_invalid_events") from exc
