"""Unit tests for shared.generators."""

from __future__ import annotations

import base64
import re

import pytest

from errors import EntropySourceUnavailableError, ValidationError
from shared.generators import TokenGenerator, generate_secure_token

_URLSAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def _decoded_length(token: str) -> int:
    padded = token + "=" * (-len(token) % 4)
    return len(base64.urlsafe_b64decode(padded))


def test_generate_secure_token_is_urlsafe():
    assert _URLSAFE.match(generate_secure_token())


@pytest.mark.parametrize("byte_length", [1, 6, 32, 64], ids=["1", "6", "32", "64"])
def test_generate_decodes_to_requested_byte_length(byte_length):
    token = TokenGenerator().generate(byte_length)
    assert _URLSAFE.match(token)
    assert _decoded_length(token) == byte_length


def test_generate_never_contains_namespace_separator():
    gen = TokenGenerator()
    assert all(":" not in gen.generate(16) for _ in range(50))


def test_generate_produces_distinct_values():
    gen = TokenGenerator()
    values = {gen.generate(32) for _ in range(200)}
    assert len(values) == 200


@pytest.mark.parametrize("byte_length", [0, -4, 2.5, True], ids=["zero", "negative", "float", "bool"])
def test_generate_rejects_invalid_byte_length(byte_length):
    with pytest.raises(ValidationError):
        TokenGenerator().generate(byte_length)


class TestEntropySourceFailure:
    def test_probe_fails_at_construction(self):
        def broken(_n):
            raise OSError("getrandom failed")

        with pytest.raises(EntropySourceUnavailableError):
            TokenGenerator(source=broken)

    def test_failure_after_construction(self):
        calls = []

        def flaky(n):
            calls.append(n)
            if len(calls) > 1:
                raise NotImplementedError("no urandom")
            return "x"

        gen = TokenGenerator(source=flaky)
        with pytest.raises(EntropySourceUnavailableError):
            gen.generate(6)

    def test_uses_injected_source(self):
        gen = TokenGenerator(source=lambda n: "a" * n)
        assert gen.generate(4) == "aaaa"
