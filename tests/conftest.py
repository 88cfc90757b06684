"""
Pytest fixtures and configuration for tests.
"""

import json

import pytest
from unittest.mock import MagicMock

from api_cache.cache import CacheStore
from api_cache.client import ApiClient


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fake clock starting at a fixed timestamp."""
    return FakeClock()


# =============================================================================
# CACHE / CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def store(clock):
    """Isolated cache store driven by the fake clock."""
    return CacheStore(ttl=300, max_size=100, clock=clock)


@pytest.fixture
def client(store):
    """Client bound to the isolated store."""
    return ApiClient("https://api.example.com", cache=store)


# =============================================================================
# MOCK RESPONSES
# =============================================================================

def make_response(status_code: int = 200, payload=None, reason: str = "OK"):
    """Build a mock requests.Response."""
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.reason = reason
    mock_response.content = b"" if payload is None else json.dumps(payload).encode()
    mock_response.json.return_value = payload
    return mock_response


@pytest.fixture
def mock_api_response():
    """Mock successful API response."""
    return make_response(200, {"value": [{"id": "1"}]})


@pytest.fixture
def mock_server_error_response():
    """Mock 500 API response."""
    return make_response(500, {"error": "boom"}, reason="Internal Server Error")


@pytest.fixture
def mock_not_found_response():
    """Mock 404 API response."""
    return make_response(404, {"error": "missing"}, reason="Not Found")


# =============================================================================
# SHARED CACHE
# =============================================================================

@pytest.fixture(autouse=True)
def clear_caches():
    """Clear the shared cache before and after each test."""
    from api_cache.cache import cache_clear

    cache_clear()

    yield

    cache_clear()
