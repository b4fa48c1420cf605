"""
Token generators: cryptographically secure and side-effect-free.

Everything here draws from the OS CSPRNG via the ``secrets`` module; the
``random`` module must never be used for token material.
"""

from __future__ import annotations

import secrets
from typing import Callable

from errors import EntropySourceUnavailableError, ValidationError
from shared.logging import get_logger

log = get_logger(__name__)


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.

    Returns:
        URL-safe base64-encoded token string without padding.
    """
    return secrets.token_urlsafe(length)


class TokenGenerator:
    """Produces URL-safe token strings from ``byte_length`` random bytes.

    The entropy source is probed once at construction so a host without a
    usable CSPRNG fails at startup instead of on the first request.
    """

    def __init__(self, source: Callable[[int], str] = generate_secure_token) -> None:
        self._source = source
        self._read(1)

    def generate(self, byte_length: int) -> str:
        if isinstance(byte_length, bool) or not isinstance(byte_length, int):
            raise ValidationError("byte_length must be an integer", field="byte_length")
        if byte_length <= 0:
            raise ValidationError("byte_length must be positive", field="byte_length")
        return self._read(byte_length)

    def _read(self, byte_length: int) -> str:
        try:
            return self._source(byte_length)
        except (OSError, NotImplementedError) as e:
            log.critical(
                "entropy_source_unavailable",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EntropySourceUnavailableError(
                "Secure random source could not be read"
            ) from e
