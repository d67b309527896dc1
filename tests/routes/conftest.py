# tests/routes/conftest.py
"""Pytest fixtures for route tests."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.managers.rate_limiter import limiter

CreateUser = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
async def client(database: None, clean_cache: None) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing, with rate limiting disabled."""
    limiter.enabled = False
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
    limiter.enabled = True


@pytest.fixture
def create_user(client: AsyncClient, valid_user_data: dict[str, str]) -> CreateUser:
    """Factory posting a valid user, with field overrides and an optional image."""

    async def _create(image: tuple[str, bytes, str] | None = None, **overrides: str) -> dict[str, Any]:
        response = await client.post(
            "/api/users",
            data={**valid_user_data, **overrides},
            files={"image": image} if image else None,
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _create
