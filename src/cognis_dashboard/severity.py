"""Severity hint for audit event badges."""

from __future__ import annotations

from .models import Severity

# Checked in order; the first rule with a matching keyword wins.
SEVERITY_RULES: tuple[tuple[Severity, tuple[str, ...]], ...] = (
    (Severity.WARNING, ("failed", "denied", "incident")),
    (Severity.SUCCESS, ("succeeded", "authorized", "captured")),
)


def classify(event_type: str) -> Severity:
    lowered = event_type.lower()
    for severity, keywords in SEVERITY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return severity
    return Severity.NEUTRAL
