"""
Pytest configuration and fixtures for Voice Canvas backend tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ["TESTING"] = "true"
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

from unittest.mock import AsyncMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from backend.middleware.rate_limit import rate_limiter  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Each test starts with an empty global rate limiter."""
    rate_limiter._requests.clear()
    yield
    rate_limiter._requests.clear()


@pytest.fixture
def llm():
    """Stand-in completion provider; set llm.complete.return_value or side_effect."""
    fake = AsyncMock()
    fake.service_name = "Claude"
    fake.complete.return_value = '{"actions": []}'
    return fake


@pytest.fixture
def upstream_response():
    """Build an httpx.Response like the one attached to SDK status errors."""

    def _make(status_code: int) -> httpx.Response:
        return httpx.Response(status_code, request=httpx.Request("POST", "https://api.example.test/v1/messages"))

    return _make
