"""Audit event filtering and the event type catalog."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from .models import ALL_TYPES, AuditEvent, FilterCriteria, TimeWindow


def canonical_attributes(attributes: Mapping[str, Any]) -> str:
    """Serialize attributes as compact JSON, key order kept."""
    return json.dumps(attributes, separators=(",", ":"), ensure_ascii=False)


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _matches_scope(event: AuditEvent, criteria: FilterCriteria) -> bool:
    prefix = criteria.scope.prefix
    return prefix is None or event.type.startswith(prefix)


def _matches_type(event: AuditEvent, criteria: FilterCriteria) -> bool:
    return criteria.event_type == ALL_TYPES or event.type == criteria.event_type


def _within_window(event: AuditEvent, window: TimeWindow, now: datetime) -> bool:
    duration = window.duration
    if duration is None:
        return True
    timestamp = parse_timestamp(event.timestamp)
    if timestamp is None:
        return False
    return now - timestamp <= duration


def _matches_search(event: AuditEvent, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    if needle in event.type.lower():
        return True
    return needle in canonical_attributes(event.attributes).lower()


def filter_events(
    events: Iterable[AuditEvent],
    criteria: FilterCriteria,
    now: datetime | None = None,
) -> list[AuditEvent]:
    """Return the events that pass every criterion, in their original order."""
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return [
        event
        for event in events
        if _matches_scope(event, criteria)
        and _matches_type(event, criteria)
        and _within_window(event, criteria.time_window, current)
        and _matches_search(event, criteria.search_text)
    ]


def distinct_types(events: Sequence[AuditEvent]) -> list[str]:
    """Event type choices: the ``all`` sentinel, then each observed type once, sorted."""
    observed = {event.type for event in events} - {ALL_TYPES}
    return [ALL_TYPES, *sorted(observed)]
