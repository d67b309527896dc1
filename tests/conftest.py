# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

import os
from tempfile import mkdtemp

# Settings are read once at import time, so the test environment must be in
# place before anything from `app` is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["UPLOADS_DIR"] = mkdtemp(prefix="user-directory-uploads-")
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_STRICT"] = "5/minute"

from collections.abc import AsyncGenerator, Callable
from datetime import date
from io import BytesIO

import pytest
from PIL import Image

from app.db import close_db, init_db
from app.managers.cache_manager import cache_manager


def _years_ago(years: int) -> str:
    return date(date.today().year - years, 1, 1).isoformat()


@pytest.fixture
def years_ago() -> Callable[[int], str]:
    """ISO birthday for someone who turned `years` at the start of this year."""
    return _years_ago


@pytest.fixture
def valid_user_data() -> dict[str, str]:
    """Form fields for a user that passes every rule."""
    return {
        "name": "Ada Lovelace",
        "gender": "Female",
        "birthday": _years_ago(30),
        "occupation": "Engineer",
        "phone": "+1 555 123 4567",
    }


@pytest.fixture
def valid_png_bytes() -> bytes:
    """Create valid PNG image bytes."""
    img = Image.new("RGBA", (64, 64), color="blue")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def valid_jpeg_bytes() -> bytes:
    """Create valid JPEG image bytes."""
    img = Image.new("RGB", (64, 64), color="red")
    buffer = BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
async def database() -> AsyncGenerator[None]:
    """Fresh in-memory database: tables are created before and the engine disposed after."""
    await init_db()
    yield
    await close_db()


@pytest.fixture
async def clean_cache() -> AsyncGenerator[None]:
    """Reset the shared cache manager around a test."""
    await cache_manager.initialize()
    await cache_manager.clear()
    cache_manager.statistics.reset()
    yield
    await cache_manager.shutdown()
