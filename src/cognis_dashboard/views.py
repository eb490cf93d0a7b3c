"""Payload builders for the operator dashboard."""

from __future__ import annotations

from typing import Any, Sequence

from .filters import canonical_attributes
from .models import ALL_TYPES, AuditEvent, DashboardSummary, EventScope, TimeWindow
from .session import DashboardSession
from .severity import classify

EMPTY_EVENTS_MESSAGE = "No events match the current filters."
MIN_FUNNEL_WIDTH = 6.0

SCOPE_LABELS = {
    EventScope.ALL: "All scopes",
    EventScope.TOOL: "Tool events only",
    EventScope.TASK: "Task events only",
}

WINDOW_LABELS = {
    TimeWindow.LAST_24_HOURS: "Last 24 hours",
    TimeWindow.LAST_7_DAYS: "Last 7 days",
    TimeWindow.LAST_30_DAYS: "Last 30 days",
    TimeWindow.ALL: "All time",
}


def kpi_cards(summary: DashboardSummary) -> list[dict[str, str]]:
    return [
        {"label": "Task success rate", "value": f"{summary.task_success_rate:.1f}%"},
        {"label": "P95 latency", "value": f"{summary.p95_latency_ms:.0f} ms"},
        {"label": "Avg cost / task", "value": f"${summary.average_cost_per_task_usd:.4f}"},
        {"label": "Safety incident rate", "value": f"{summary.safety_incident_rate:.2f}%"},
    ]


def stat_rows(summary: DashboardSummary) -> list[dict[str, Any]]:
    return [
        {"label": "Tasks started", "value": summary.tasks_started},
        {"label": "Tasks succeeded", "value": summary.tasks_succeeded},
        {"label": "Tasks failed", "value": summary.tasks_failed},
        {"label": "Failure recovery rate", "value": f"{summary.failure_recovery_rate:.1f}%"},
        {"label": "Retention (7d)", "value": f"{summary.retention_7d:.1f}%"},
    ]


def funnel_bar(label: str, value: float, maximum: float) -> dict[str, Any]:
    width = max(MIN_FUNNEL_WIDTH, (value / maximum) * 100)
    return {"label": label, "value": value, "max": maximum, "width_pct": round(width, 2)}


def funnel_bars(summary: DashboardSummary) -> list[dict[str, Any]]:
    task_max = max(summary.tasks_started, summary.tasks_succeeded, summary.tasks_failed, 1)
    return [
        funnel_bar("Started", summary.tasks_started, task_max),
        funnel_bar("Succeeded", summary.tasks_succeeded, task_max),
        funnel_bar("Failed", summary.tasks_failed, task_max),
        funnel_bar(
            "Weekly completed",
            summary.weekly_completed_tasks,
            max(summary.weekly_completed_tasks, 1),
        ),
    ]


def event_row(event: AuditEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "timestamp": event.timestamp,
        "type": event.type,
        "severity": classify(event.type).value,
        "attributes": canonical_attributes(event.attributes),
    }


def filter_options(event_types: Sequence[str]) -> dict[str, list[dict[str, str]]]:
    return {
        "scope": [{"value": scope.value, "label": label} for scope, label in SCOPE_LABELS.items()],
        "type": [
            {"value": value, "label": "All event types" if value == ALL_TYPES else value}
            for value in event_types
        ],
        "time_window": [
            {"value": window.value, "label": label} for window, label in WINDOW_LABELS.items()
        ],
    }


def build_dashboard_view(session: DashboardSession) -> dict[str, Any]:
    visible = session.visible_events()
    summary = session.summary
    return {
        "loading": session.loading,
        "error": session.error or None,
        "last_refresh": session.last_refresh.isoformat() if session.last_refresh else None,
        "summary": summary.model_dump() if summary else None,
        "kpis": kpi_cards(summary) if summary else None,
        "execution_quality": stat_rows(summary) if summary else None,
        "funnel": funnel_bars(summary) if summary else None,
        "filters": session.criteria.to_payload(),
        "filter_options": filter_options(session.event_types()),
        "events": [event_row(event) for event in visible],
        "event_count": len(visible),
        "empty_message": None if visible else EMPTY_EVENTS_MESSAGE,
        "export_available": bool(visible),
    }
