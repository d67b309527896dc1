"""Protocol definitions for cache client implementations."""

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheClientProtocol(Protocol):
    """
    Protocol for cache client implementations.

    Both RedisClient and MemoryClient conform to this protocol. Values are
    arbitrary JSON-compatible objects; clients serialize them internally and
    report failures through return values instead of exceptions.
    """

    @property
    def is_connected(self) -> bool:
        """Whether the client currently accepts operations."""
        ...

    async def connect(self) -> bool:
        """Open the connection; `False` when the backend is unreachable."""
        ...

    async def disconnect(self) -> None:
        """Close the connection."""
        ...

    async def get(self, key: str) -> object | None:
        """Get a value from the cache."""
        ...

    async def set(self, key: str, value: object, ttl: int | None = None) -> bool:
        """Set a value in the cache with optional TTL."""
        ...

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys from the cache."""
        ...

    async def exists(self, *keys: str) -> int:
        """Check if keys exist in the cache."""
        ...

    async def ttl(self, key: str) -> int:
        """Get the remaining TTL of a key."""
        ...

    def scan_iter(self, pattern: str, count: int = 100) -> AsyncIterator[str]:
        """Iterate over keys matching a pattern."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a pattern."""
        ...

    async def flush_all(self) -> bool:
        """Clear all entries from the cache."""
        ...

    async def ping(self) -> bool:
        """Check if the cache server is reachable."""
        ...

    async def info(self) -> dict[str, Any]:
        """Get information about the cache."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Summarize the client for health reporting."""
        ...
