"""Configuration for the Cognis operations dashboard."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    api_base_url: str = "http://127.0.0.1:8787"
    event_limit: int = Field(default=300, ge=1)
    # None leaves the backend calls without a timeout.
    request_timeout_seconds: float | None = None
    export_prefix: str = "cognis-audit"
    export_dir: str = "."
    environment: str = "development"
    sentry_dsn: str | None = None

    model_config = SettingsConfigDict(env_prefix="COGNIS_DASHBOARD_", env_file=".env")
