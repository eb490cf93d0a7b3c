import pytest
from cognis_dashboard.config import Settings
from pydantic import ValidationError


def test_defaults(monkeypatch):
    monkeypatch.delenv("COGNIS_DASHBOARD_API_BASE_URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.api_base_url == "http://127.0.0.1:8787"
    assert settings.event_limit == 300
    assert settings.request_timeout_seconds is None
    assert settings.export_prefix == "cognis-audit"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("COGNIS_DASHBOARD_API_BASE_URL", "http://gateway:8787")
    monkeypatch.setenv("COGNIS_DASHBOARD_EVENT_LIMIT", "50")
    monkeypatch.setenv("COGNIS_DASHBOARD_REQUEST_TIMEOUT_SECONDS", "4.5")

    settings = Settings(_env_file=None)

    assert settings.api_base_url == "http://gateway:8787"
    assert settings.event_limit == 50
    assert settings.request_timeout_seconds == 4.5


def test_event_limit_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(event_limit=0)
