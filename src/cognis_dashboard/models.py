"""Data model shared by the dashboard client, filters and views."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALL_TYPES = "all"


class DashboardSummary(BaseModel):
    """KPI snapshot returned by the summary endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    tasks_started: int
    tasks_succeeded: int
    tasks_failed: int
    task_success_rate: float
    p50_latency_ms: float
    p95_latency_ms: float
    average_cost_per_task_usd: float
    failure_recovery_rate: float
    safety_incident_rate: float
    weekly_completed_tasks: int
    active_users_7d: int
    retention_7d: float
    audit_events: int


class AuditEvent(BaseModel):
    """Single audit trail entry as delivered by the audit feed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    timestamp: str
    type: str
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _scalar_timestamp(cls, value: Any) -> Any:
        # Non-ISO values (epoch numbers, null) are kept and dropped later by the time window.
        if value is None:
            return ""
        if isinstance(value, (int, float, bool)):
            return str(value)
        return value

    @field_validator("attributes", mode="before")
    @classmethod
    def _none_attributes(cls, value: Any) -> Any:
        return {} if value is None else value


class EventScope(str, Enum):
    ALL = "all"
    TOOL = "tool"
    TASK = "task"

    @property
    def prefix(self) -> str | None:
        if self is EventScope.TOOL:
            return "tool_"
        if self is EventScope.TASK:
            return "task_"
        return None


class TimeWindow(str, Enum):
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    ALL = "all"

    @property
    def duration(self) -> timedelta | None:
        return _WINDOW_DURATIONS.get(self)


_WINDOW_DURATIONS = {
    TimeWindow.LAST_24_HOURS: timedelta(hours=24),
    TimeWindow.LAST_7_DAYS: timedelta(days=7),
    TimeWindow.LAST_30_DAYS: timedelta(days=30),
}


class Severity(str, Enum):
    WARNING = "warning"
    SUCCESS = "success"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class FilterCriteria:
    scope: EventScope = EventScope.ALL
    event_type: str = ALL_TYPES
    time_window: TimeWindow = TimeWindow.LAST_7_DAYS
    search_text: str = ""

    def to_payload(self) -> dict[str, str]:
        return {
            "scope": self.scope.value,
            "type": self.event_type,
            "time_window": self.time_window.value,
            "search": self.search_text,
        }

    def updated(self, changes: Mapping[str, Any]) -> "FilterCriteria":
        """Return a copy with operator changes applied.

        Accepts the same keys as ``to_payload``. Unknown keys and invalid
        scope or window values raise ``ValueError``.
        """
        unknown = set(changes) - {"scope", "type", "time_window", "search"}
        if unknown:
            raise ValueError(f"unknown_filter_fields: {', '.join(sorted(unknown))}")

        fields: dict[str, Any] = {}
        if "scope" in changes:
            fields["scope"] = EventScope(_require_str(changes, "scope"))
        if "type" in changes:
            fields["event_type"] = _require_str(changes, "type")
        if "time_window" in changes:
            fields["time_window"] = TimeWindow(_require_str(changes, "time_window"))
        if "search" in changes:
            fields["search_text"] = _require_str(changes, "search")
        return replace(self, **fields)


def _require_str(changes: Mapping[str, Any], key: str) -> str:
    value = changes[key]
    if not isinstance(value, str):
        raise ValueError(f"invalid_filter_value: {key} must be a string")
    return value
