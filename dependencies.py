"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. The token service is created once per process in
the app lifespan; there is no module-level store handle.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from services.token_service import TokenService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService stored on app.state."""
    return request.app.state.token_service
