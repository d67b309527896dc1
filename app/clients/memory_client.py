"""In-memory cache client used when Redis is disabled, and in tests."""

from asyncio import CancelledError, Lock, Task, create_task
from asyncio import sleep as asyncio_sleep
from collections import OrderedDict
from collections.abc import AsyncGenerator
from contextlib import suppress
from fnmatch import fnmatch
from logging import DEBUG, getLogger
from sys import getsizeof
from time import time
from typing import Any

from app.clients.redis_client import ConnectionState
from app.configs import file_logger
from app.errors import CacheDeserializationError, CacheSerializationError
from app.utils.cache_serializer import deserialize, serialize

logger = file_logger(getLogger(__name__))


class MemoryClient:
    """
    An asynchronous in-memory cache client exposing the RedisClient surface.

    Features:
        - Values serialized exactly like the Redis client stores them
        - Lazy and active expiration (background cleanup task)
        - Entry count and memory limits with LRU eviction
        - Pattern-based key scanning and deletion
    """

    DEFAULT_MAX_ENTRIES: int = 10_000
    DEFAULT_MAX_MEMORY_MB: int = 50
    DEFAULT_CLEANUP_INTERVAL: int = 60  # seconds

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_memory_mb: int = DEFAULT_MAX_MEMORY_MB,
        cleanup_interval: int = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        """
        Initialize the MemoryClient with configurable limits.

        Args:
            max_entries: Maximum number of cache entries before LRU eviction.
            max_memory_mb: Maximum memory usage in megabytes before eviction.
            cleanup_interval: Interval in seconds for background cleanup.
        """
        self._cache: OrderedDict[str, str] = OrderedDict()
        self._ttl: dict[str, float] = {}
        self.state = ConnectionState.CONNECTED
        self._cleanup_task: Task[None] | None = None

        self._max_entries = max_entries
        self._max_memory_bytes = max_memory_mb * 1024 * 1024
        self._cleanup_interval = cleanup_interval
        self._current_memory: int = 0

        self._lock = Lock()

    @property
    def is_connected(self) -> bool:
        """Whether the client accepts operations."""
        return self.state is ConnectionState.CONNECTED

    async def connect(self) -> bool:
        """Start background expiration; always succeeds."""
        async with self._lock:
            self.state = ConnectionState.CONNECTED
            if not self._cleanup_task:
                self._cleanup_task = create_task(self._cleanup_loop())
                logger.info("MemoryClient active expiration task started.")
        return True

    async def _cleanup_loop(self) -> None:
        """Background loop to remove expired keys."""
        while self.is_connected:
            try:
                await asyncio_sleep(self._cleanup_interval)
                await self._active_expire()
            except CancelledError:
                break

    async def _active_expire(self) -> None:
        async with self._lock:
            expired_keys = [key for key in list(self._ttl) if self._is_expired(key)]
            if expired_keys:
                count = self._delete_internal(*expired_keys)
                if logger.isEnabledFor(DEBUG):
                    logger.debug("Memory cleanup: removed %d expired keys.", count)

    def _is_expired(self, key: str) -> bool:
        return key in self._ttl and time() > self._ttl[key]

    @staticmethod
    def _entry_size(key: str, value: str) -> int:
        return getsizeof(key) + getsizeof(value)

    def _evict_oldest(self) -> None:
        key, value = self._cache.popitem(last=False)
        self._current_memory -= self._entry_size(key, value)
        self._ttl.pop(key, None)

    def _delete_internal(self, *keys: str) -> int:
        count = 0
        for key in keys:
            if key in self._cache:
                value = self._cache.pop(key)
                self._current_memory -= self._entry_size(key, value)
                self._ttl.pop(key, None)
                count += 1
        return count

    async def get(self, key: str) -> object | None:
        """Get a value from the cache."""
        if not self.is_connected:
            return None
        async with self._lock:
            if self._is_expired(key):
                self._delete_internal(key)
                return None
            raw = self._cache.get(key)
            if raw is None:
                return None
            self._cache.move_to_end(key)
        try:
            return deserialize(raw)
        except CacheDeserializationError:
            return None

    async def set(self, key: str, value: object, ttl: int | None = None) -> bool:
        """Set a value in the cache with optional TTL and automatic eviction."""
        if not self.is_connected:
            return False
        try:
            payload = serialize(value)
        except CacheSerializationError:
            return False

        async with self._lock:
            entry_size = self._entry_size(key, payload)
            if key in self._cache:
                self._current_memory -= self._entry_size(key, self._cache.pop(key))

            while self._cache and (
                len(self._cache) >= self._max_entries
                or self._current_memory + entry_size > self._max_memory_bytes
            ):
                self._evict_oldest()

            self._cache[key] = payload
            self._current_memory += entry_size

            if ttl:
                self._ttl[key] = time() + ttl
            else:
                # SET without expiry clears a previous TTL
                self._ttl.pop(key, None)
            return True

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys from the cache."""
        async with self._lock:
            return self._delete_internal(*keys)

    async def exists(self, *keys: str) -> int:
        """Count how many of the given keys are present."""
        async with self._lock:
            return sum(1 for key in keys if key in self._cache and not self._is_expired(key))

    async def ttl(self, key: str) -> int:
        """Get the remaining time to live of a key."""
        async with self._lock:
            if self._is_expired(key):
                self._delete_internal(key)
            if key not in self._cache:
                return -2
            if key not in self._ttl:
                return -1
            return int(self._ttl[key] - time())

    async def flush_all(self) -> bool:
        """Clear the entire cache."""
        async with self._lock:
            self._cache.clear()
            self._ttl.clear()
            self._current_memory = 0
        return True

    async def scan_iter(
        self,
        pattern: str,
        count: int = 100,  # noqa: ARG002 - kept for API compatibility with RedisClient
    ) -> AsyncGenerator[str]:
        """Yield keys matching a glob-style pattern."""
        async with self._lock:
            keys = list(self._cache.keys())
        for key in keys:
            if fnmatch(key, pattern):
                yield key

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob-style pattern."""
        async with self._lock:
            matches = [key for key in self._cache if fnmatch(key, pattern)]
            return self._delete_internal(*matches)

    async def ping(self) -> bool:
        """Check if the cache is alive."""
        return self.is_connected

    async def info(self) -> dict[str, Any]:
        """Get information about the in-memory cache."""
        async with self._lock:
            return {
                "server": "In-Memory Cache",
                "used_memory_bytes": self._current_memory,
                "used_memory_human": f"{self._current_memory / 1024 / 1024:.2f}MB",
                "total_keys": len(self._cache),
                "max_entries": self._max_entries,
            }

    async def health_check(self) -> dict[str, Any]:
        """Summarize the client for the health endpoint."""
        info = await self.info()
        return {
            "status": "connected" if self.is_connected else "disconnected",
            "backend": "memory",
            "state": self.state.value,
            "keys": info["total_keys"],
            "used_memory": info["used_memory_human"],
        }

    async def disconnect(self) -> None:
        """Stop the client and its cleanup task."""
        async with self._lock:
            self.state = ConnectionState.CLOSED
            task, self._cleanup_task = self._cleanup_task, None
        if task:
            task.cancel()
            with suppress(CancelledError):
                await task
