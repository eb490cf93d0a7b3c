"""Starlette entry point for the Cognis operations dashboard."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from typing import Any, AsyncIterator

import sentry_sdk
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .client import CognisClient
from .config import Settings
from .export import export_events
from .session import DashboardBackend, DashboardSession
from .views import build_dashboard_view

logger = logging.getLogger(__name__)


def _init_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        integrations=[
            StarletteIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={*range(500, 600)},
            ),
        ],
        traces_sample_rate=0.1,
    )
    logger.info("Sentry initialized for environment: %s", settings.environment)


def _load_settings() -> Settings:
    return Settings()


def _session(request: Request) -> DashboardSession:
    return request.app.state.session


async def health_check(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "service": "cognis-dashboard"})


async def get_dashboard(request: Request) -> JSONResponse:
    return JSONResponse(build_dashboard_view(_session(request)))


async def refresh_dashboard(request: Request) -> JSONResponse:
    session = _session(request)
    await session.refresh()
    return JSONResponse(build_dashboard_view(session))


async def get_filters(request: Request) -> JSONResponse:
    return JSONResponse(_session(request).criteria.to_payload())


async def update_filters(request: Request) -> JSONResponse:
    try:
        changes = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"error": "invalid_json"}, status_code=400)
    if not isinstance(changes, dict):
        return JSONResponse({"error": "filters_must_be_object"}, status_code=422)
    try:
        criteria = _session(request).update_filters(changes)
    except ValueError as exc:
        return JSONResponse({"error": str(exc)}, status_code=422)
    return JSONResponse(criteria.to_payload())


async def export_audit_csv(request: Request) -> Response:
    session = _session(request)
    settings: Settings = request.app.state.settings
    export = export_events(session.visible_events(), prefix=settings.export_prefix)
    if export is None:
        return JSONResponse({"error": "no_events_to_export"}, status_code=404)
    return Response(
        export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


def create_app(
    settings: Settings | None = None,
    client: DashboardBackend | None = None,
) -> Starlette:
    settings = settings or _load_settings()
    _init_sentry(settings)
    owns_client = client is None
    backend: Any = client or CognisClient(settings)
    session = DashboardSession(backend, event_limit=settings.event_limit)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        await session.refresh()
        try:
            yield
        finally:
            if owns_client:
                await backend.aclose()

    app = Starlette(
        routes=[
            Route("/api/v1/health", health_check, methods=["GET", "HEAD"]),
            Route("/api/v1/dashboard", get_dashboard, methods=["GET"]),
            Route("/api/v1/dashboard/refresh", refresh_dashboard, methods=["POST"]),
            Route("/api/v1/dashboard/filters", get_filters, methods=["GET"]),
            Route("/api/v1/dashboard/filters", update_filters, methods=["PATCH"]),
            Route("/api/v1/audit/export", export_audit_csv, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session = session
    return app


_app: Any | None = None


def get_app() -> Any:
    """Get or create the app instance (lazy initialization)."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def main(host: str = "127.0.0.1", port: int | None = None) -> None:
    import uvicorn

    uvicorn.run(
        "cognis_dashboard.server:get_app",
        host=host,
        port=port or int(os.getenv("PORT", "8790")),
        factory=True,
    )
