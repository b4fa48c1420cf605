"""
FastAPI application factory for hosts embedding the token subsystem.

create_app() wires logging, Sentry, the token error handlers and a
TokenService on app.state. It mounts no routes of its own; host services add
their routers and reach the service through dependencies.get_token_service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI

from config import AppSettings
from errors import register_error_handlers
from services.token_service import TokenService, create_token_service
from shared.logging import setup_logging


def create_app(
    settings: Optional[AppSettings] = None,
    token_service: Optional[TokenService] = None,
) -> FastAPI:
    """Create and return a configured FastAPI application.

    Pass *token_service* to skip building one from settings (tests do this).
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        owns_service = token_service is None
        service = token_service or await create_token_service(settings)
        app.state.settings = settings
        app.state.token_service = service

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        # An injected service belongs to the caller
        if owns_service:
            await service.store.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    register_error_handlers(app)

    return app
