"""Per-operator dashboard state and the refresh cycle."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol

from .client import BackendStatusError
from .filters import distinct_types, filter_events
from .models import AuditEvent, DashboardSummary, FilterCriteria

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown dashboard error"


class DashboardBackend(Protocol):
    async def get_dashboard_summary(self) -> DashboardSummary: ...

    async def get_audit_events(self, limit: int | None = None) -> list[AuditEvent]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def describe_failure(label: str, exc: BaseException) -> str:
    if isinstance(exc, BackendStatusError):
        return f"{label} failed ({exc.status_code})"
    reason = str(exc).strip()
    if not reason:
        return UNKNOWN_ERROR
    return f"{label} failed: {reason}"


class DashboardSession:
    """State for one dashboard operator.

    Holds the KPI snapshot, the raw audit events, the active filter criteria
    and the refresh status. Summary and events are only ever replaced
    together; the visible events and type choices are derived on demand and
    cached until their inputs change.
    """

    def __init__(
        self,
        backend: DashboardBackend,
        *,
        event_limit: int = 300,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.backend = backend
        self.event_limit = event_limit
        self.clock = clock

        self.summary: DashboardSummary | None = None
        self.events: tuple[AuditEvent, ...] = ()
        self.criteria = FilterCriteria()
        self.loading = False
        self.error = ""
        self.last_refresh: datetime | None = None

        self._visible_key: tuple[tuple[AuditEvent, ...], FilterCriteria] | None = None
        self._visible: tuple[AuditEvent, ...] = ()
        self._types_key: tuple[AuditEvent, ...] | None = None
        self._types: tuple[str, ...] = ()

    async def refresh(self) -> None:
        """Fetch summary and events together; on any failure keep the previous state."""
        self.loading = True
        self.error = ""
        try:
            summary_result, events_result = await asyncio.gather(
                self.backend.get_dashboard_summary(),
                self.backend.get_audit_events(self.event_limit),
                return_exceptions=True,
            )
            for label, result in (("summary", summary_result), ("events", events_result)):
                if isinstance(result, BaseException):
                    self._record_failure(label, result)
                    return

            # No await between these assignments.
            self.summary = summary_result
            self.events = tuple(events_result)
            self.last_refresh = self.clock()
            logger.info("dashboard_refreshed: %s events", len(self.events))
        finally:
            self.loading = False

    def _record_failure(self, label: str, exc: BaseException) -> None:
        if not isinstance(exc, Exception):
            raise exc
        self.error = describe_failure(label, exc)
        if isinstance(exc, BackendStatusError):
            logger.warning("dashboard_refresh_failed: %s", self.error)
        else:
            logger.warning("dashboard_refresh_failed: %s", self.error, exc_info=exc)

    def update_filters(self, changes: Mapping[str, Any]) -> FilterCriteria:
        self.criteria = self.criteria.updated(changes)
        return self.criteria

    def visible_events(self) -> tuple[AuditEvent, ...]:
        key = (self.events, self.criteria)
        if self._visible_key is None or not _same_inputs(self._visible_key, key):
            self._visible = tuple(filter_events(self.events, self.criteria, self.clock()))
            self._visible_key = key
        return self._visible

    def event_types(self) -> tuple[str, ...]:
        if self._types_key is not self.events:
            self._types = tuple(distinct_types(self.events))
            self._types_key = self.events
        return self._types


def _same_inputs(
    cached: tuple[tuple[AuditEvent, ...], FilterCriteria],
    current: tuple[tuple[AuditEvent, ...], FilterCriteria],
) -> bool:
    return cached[0] is current[0] and cached[1] == current[1]
