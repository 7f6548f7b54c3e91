"""Shared fixtures for unit tests that do not need PostgreSQL.

Resolver and store tests patch the repository layer and hand the code
under test a mock AsyncSession plus a bare Starlette Request.
"""

from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request


def make_request(
    *, cookies: dict[str, str] | None = None, headers: dict[str, str] | None = None
) -> Request:
    """Build a minimal HTTP request carrying the given cookies and headers."""
    raw_headers = [
        (name.lower().encode(), value.encode()) for name, value in (headers or {}).items()
    ]
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode()))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": raw_headers,
        "client": ("203.0.113.7", 50000),
    }
    return Request(scope)


@pytest.fixture
def mock_db() -> AsyncMock:
    """AsyncSession stand-in. Tests that patch repositories never touch it."""
    return AsyncMock()
