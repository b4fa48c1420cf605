"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Token failures are split by who has to act on them:
  - InvalidOrExpiredTokenError: expected, user-facing, deliberately generic
  - StoreUnavailableError: transient, the caller decides whether to retry
  - EntropySourceUnavailableError: fatal, raised at construction time
  - ValidationError: programmer error (blank principal, bad policy values)
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class InvalidOrExpiredTokenError(AppError):
    """Token unknown, already consumed, revoked or expired.

    The message never says which one so callers cannot use it as an oracle
    when guessing tokens.
    """

    status_code = 400
    error_code = "invalid_or_expired_token"

    def __init__(self, message: str = "Token invalid or expired") -> None:
        super().__init__(message)


class StoreUnavailableError(AppError):
    status_code = 503
    error_code = "store_unavailable"


class EntropySourceUnavailableError(AppError):
    status_code = 500
    error_code = "entropy_source_unavailable"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
