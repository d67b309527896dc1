# tests/routes/test_rate_limit.py
"""Rate limiting on the user endpoints."""

from collections.abc import Generator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.managers.rate_limiter import RATE_LIMIT_MESSAGE, limiter


@pytest.fixture
def rate_limited(client: AsyncClient) -> Generator[AsyncClient]:
    """The test client with the limiter switched back on and its counters cleared."""
    limiter.enabled = True
    limiter.reset()
    yield client
    limiter.reset()


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_mutations_are_limited_per_ip(self, rate_limited: AsyncClient) -> None:
        """Five deletes fit in the window, the sixth is refused."""
        missing = f"/api/users/{uuid4()}"
        for _ in range(5):
            assert (await rate_limited.delete(missing)).status_code == 404

        response = await rate_limited.delete(missing)

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["message"] == RATE_LIMIT_MESSAGE
        assert body["retry_after"] == "60 seconds"
        assert response.headers["Retry-After"] == "60"

    @pytest.mark.asyncio
    async def test_clients_are_counted_separately(self, rate_limited: AsyncClient) -> None:
        missing = f"/api/users/{uuid4()}"
        for _ in range(5):
            await rate_limited.delete(missing, headers={"X-Forwarded-For": "203.0.113.7"})

        assert (await rate_limited.delete(missing)).status_code == 404

    @pytest.mark.asyncio
    async def test_untrusted_client_cannot_pick_its_address(self, rate_limited: AsyncClient) -> None:
        """Forwarded headers from a client that is not a configured proxy are ignored."""
        missing = f"/api/users/{uuid4()}"
        transport = ASGITransport(app=app, client=("198.51.100.20", 40000))
        async with AsyncClient(base_url="http://test", transport=transport) as outsider:
            for index in range(5):
                forged = {"X-Forwarded-For": f"203.0.113.{index}"}
                assert (await outsider.delete(missing, headers=forged)).status_code == 404

            response = await outsider.delete(missing, headers={"X-Forwarded-For": "203.0.113.99"})

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_reads_use_the_default_limit(self, rate_limited: AsyncClient) -> None:
        for _ in range(6):
            assert (await rate_limited.get("/api/users")).status_code == 200

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, rate_limited: AsyncClient) -> None:
        for _ in range(10):
            assert (await rate_limited.get("/api/health")).status_code == 200
