from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

from cognis_dashboard.client import BackendStatusError
from cognis_dashboard.config import Settings
from cognis_dashboard.models import AuditEvent, DashboardSummary
from cognis_dashboard.server import _load_settings, create_app, main
from starlette.testclient import TestClient

from tests.test_client import SUMMARY_PAYLOAD


def _recent(minutes: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(minutes=minutes)).isoformat()


class FakeClient:
    def __init__(self) -> None:
        self.summary_calls = 0
        self.events_fail_with: Exception | None = None
        self.events = [
            AuditEvent(
                id="e1",
                timestamp=_recent(5),
                type="task_failed",
                attributes={"note": 'say "hi"'},
            ),
            AuditEvent(id="e2", timestamp=_recent(10), type="tool_call_succeeded"),
        ]

    async def get_dashboard_summary(self) -> DashboardSummary:
        self.summary_calls += 1
        return DashboardSummary.model_validate(SUMMARY_PAYLOAD)

    async def get_audit_events(self, limit=None) -> list[AuditEvent]:
        if self.events_fail_with is not None:
            raise self.events_fail_with
        return list(self.events)


def _app(fake: FakeClient):
    return create_app(Settings(api_base_url="https://gateway.cognis.test"), client=fake)


def test_health():
    client = TestClient(_app(FakeClient()))

    res = client.get("/api/v1/health")

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "service": "cognis-dashboard"}


def test_startup_triggers_initial_refresh():
    fake = FakeClient()

    with TestClient(_app(fake)) as client:
        view = client.get("/api/v1/dashboard").json()

    assert fake.summary_calls == 1
    assert view["summary"]["tasks_started"] == 10
    assert [row["id"] for row in view["events"]] == ["e1", "e2"]
    assert view["events"][0]["severity"] == "warning"
    assert view["last_refresh"] is not None


def test_dashboard_without_refresh_is_empty():
    client = TestClient(_app(FakeClient()))

    view = client.get("/api/v1/dashboard").json()

    assert view["summary"] is None
    assert view["export_available"] is False


def test_refresh_route_reports_error_and_keeps_state():
    fake = FakeClient()
    client = TestClient(_app(fake))
    client.post("/api/v1/dashboard/refresh")

    fake.events_fail_with = BackendStatusError("backend_error_500", status_code=500)
    view = client.post("/api/v1/dashboard/refresh").json()

    assert view["error"] == "events failed (500)"
    assert view["loading"] is False
    assert view["summary"] is not None
    assert view["event_count"] == 2


def test_update_filters():
    fake = FakeClient()
    client = TestClient(_app(fake))
    client.post("/api/v1/dashboard/refresh")

    res = client.patch("/api/v1/dashboard/filters", json={"scope": "tool", "search": "CALL"})

    assert res.status_code == 200
    assert res.json() == {"scope": "tool", "type": "all", "time_window": "7d", "search": "CALL"}
    assert client.get("/api/v1/dashboard/filters").json()["scope"] == "tool"
    view = client.get("/api/v1/dashboard").json()
    assert [row["id"] for row in view["events"]] == ["e2"]


def test_update_filters_rejects_invalid_values():
    client = TestClient(_app(FakeClient()))

    assert client.patch("/api/v1/dashboard/filters", json={"time_window": "1y"}).status_code == 422
    assert client.patch("/api/v1/dashboard/filters", json=["tool"]).status_code == 422
    res = client.patch(
        "/api/v1/dashboard/filters",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert client.get("/api/v1/dashboard/filters").json()["time_window"] == "7d"


def test_export_returns_csv_attachment():
    client = TestClient(_app(FakeClient()))
    client.post("/api/v1/dashboard/refresh")

    res = client.get("/api/v1/audit/export")

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    disposition = res.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="cognis-audit-')
    assert disposition.endswith('.csv"')
    lines = res.content.decode("utf-8").split("\n")
    assert lines[0] == '"id","timestamp","type","attributes"'
    assert lines[1].endswith('"task_failed","{""note"":""say \\""hi\\""""}"')
    assert len(lines) == 3


def test_export_uses_filtered_set_and_404s_when_empty():
    client = TestClient(_app(FakeClient()))
    client.post("/api/v1/dashboard/refresh")
    client.patch("/api/v1/dashboard/filters", json={"type": "payment_denied"})

    res = client.get("/api/v1/audit/export")

    assert res.status_code == 404
    assert res.json() == {"error": "no_events_to_export"}


def test_load_settings_returns_settings():
    settings = _load_settings()
    assert isinstance(settings, Settings)


def test_main_invokes_uvicorn(monkeypatch):
    mock_uvicorn = SimpleNamespace(run=MagicMock())
    monkeypatch.setitem(sys.modules, "uvicorn", mock_uvicorn)
    monkeypatch.setenv("PORT", "9100")

    main()

    assert mock_uvicorn.run.called is True
    assert mock_uvicorn.run.call_args.kwargs["port"] == 9100
    assert mock_uvicorn.run.call_args.kwargs["factory"] is True
