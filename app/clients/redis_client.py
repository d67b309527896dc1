# app/clients/redis_client.py
"""Redis client module for cache operations.

The client never raises on cache operations: an unreachable server turns every
read into a miss and every write into a no-op, and the connection state is
tracked explicitly so callers can check it before touching the network.
"""

from collections.abc import AsyncGenerator, Awaitable
from enum import StrEnum
from logging import DEBUG, getLogger
from time import monotonic
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from app.configs import file_logger, pool_kwargs, settings
from app.errors import CacheDeserializationError, CacheSerializationError
from app.utils.cache_serializer import deserialize, serialize

logger = file_logger(getLogger(__name__))

CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, ConnectionError, TimeoutError, OSError)


class ConnectionState(StrEnum):
    """Lifecycle of the Redis connection."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


class RedisClient:
    """Async Redis client wrapper with connection pooling and explicit connection state."""

    def __init__(
        self,
        url: str | None = None,
        reconnect_interval: float | None = None,
    ) -> None:
        """Initialize Redis client."""
        self.url = url or settings.REDIS_URL
        self.config = pool_kwargs
        self.reconnect_interval = (
            settings.REDIS_RECONNECT_INTERVAL if reconnect_interval is None else reconnect_interval
        )
        self.state = ConnectionState.DISCONNECTED
        self._pool: ConnectionPool | None = None
        self._redis: Redis | None = None
        self._last_attempt: float | None = None

    @property
    def is_connected(self) -> bool:
        """Whether the last known state is `CONNECTED`."""
        return self.state is ConnectionState.CONNECTED

    def _set_state(self, state: ConnectionState, event: str) -> None:
        if state is not self.state:
            logger.info(f"Redis {event}: {self.state} -> {state}")
        self.state = state

    def _mark_disconnected(self, exc: BaseException) -> None:
        logger.warning(f"Redis error, marking cache as disconnected: {exc}")
        self._set_state(ConnectionState.DISCONNECTED, "error")

    async def connect(self) -> bool:
        """
        Establish the Redis connection pool and verify it with a ping.

        Returns:
            True when the server answered, False otherwise. Never raises.
        """
        self._last_attempt = monotonic()
        try:
            if self._redis is None:
                self._pool = ConnectionPool.from_url(self.url, **self.config)
                self._redis = Redis(connection_pool=self._pool)
            ping_result = self._redis.ping()
            result = await ping_result if isinstance(ping_result, Awaitable) else ping_result
            if not result:
                mssg = "Redis ping returned False"
                raise RedisConnectionError(mssg)
        except (*CONNECTION_ERRORS, RedisError) as e:
            logger.warning(f"Failed to connect to Redis at {self.url}: {e}")
            self._set_state(ConnectionState.DISCONNECTED, "error")
            return False
        self._set_state(ConnectionState.CONNECTED, "connect")
        logger.info("Redis connection successful. Cache is using Redis.")
        return True

    async def disconnect(self) -> None:
        """Close Redis connection pool."""
        if self._redis is not None:
            try:
                await self._redis.aclose()
            except RedisError as e:
                logger.warning(f"Error while closing Redis connection: {e}")
            self._redis = None
            self._pool = None
        self._set_state(ConnectionState.CLOSED, "close")
        logger.info("Redis connection closed.")

    async def _ensure_connected(self) -> bool:
        """Return the connection state, retrying a lost connection at most once per interval."""
        if self.state is ConnectionState.CONNECTED:
            return True
        if self.state is ConnectionState.CLOSED:
            return False
        if self._last_attempt is not None and monotonic() - self._last_attempt < self.reconnect_interval:
            return False
        if logger.isEnabledFor(DEBUG):
            logger.debug("Attempting Redis reconnection")
        return await self.connect()

    @property
    def client(self) -> Redis:
        """Get Redis client instance."""
        if self._redis is None:
            mssg = "Redis client not initialized. Call connect() first."
            raise RuntimeError(mssg)
        return self._redis

    async def get(self, key: str) -> object | None:
        """Get a value from cache, `None` on miss, error or while disconnected."""
        if not await self._ensure_connected():
            return None
        try:
            raw = await self.client.get(key)
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
            return None
        except RedisError:
            logger.exception(f"Failed to get key {key}")
            return None
        if raw is None:
            return None
        try:
            return deserialize(raw)
        except CacheDeserializationError:
            logger.warning(f"Discarding unreadable cache entry {key}")
            return None

    async def set(self, key: str, value: object, ttl: int | None = None) -> bool:
        """Serialize and store a value with native expiry; `False` when it was not stored."""
        if not await self._ensure_connected():
            return False
        try:
            payload = serialize(value)
            return bool(await self.client.set(key, payload, ex=ttl))
        except CacheSerializationError:
            return False
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
            return False
        except RedisError:
            logger.exception(f"Failed to set key {key}")
            return False

    async def delete(self, *keys: str) -> int:
        """Delete keys from cache."""
        if not keys or not await self._ensure_connected():
            return 0
        try:
            return await self.client.delete(*keys)
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
        except RedisError:
            logger.exception("Failed to delete keys")
        return 0

    async def exists(self, *keys: str) -> int:
        """Check if keys exist in cache."""
        if not keys or not await self._ensure_connected():
            return 0
        try:
            return await self.client.exists(*keys)
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
        except RedisError:
            logger.exception("Failed to check key existence")
        return 0

    async def ttl(self, key: str) -> int:
        """Get remaining time to live, `-2` when unknown."""
        if not await self._ensure_connected():
            return -2
        try:
            return await self.client.ttl(key)
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
        except RedisError:
            logger.exception(f"Failed to get TTL for {key}")
        return -2

    async def flush_all(self) -> bool:
        """Flush current database."""
        if not await self._ensure_connected():
            return False
        try:
            return bool(await self.client.flushdb())
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
        except RedisError:
            logger.exception("Failed to flush database")
        return False

    async def scan_iter(self, pattern: str, count: int = 100) -> AsyncGenerator[str]:
        """Yield keys matching the pattern memory-efficiently."""
        if not await self._ensure_connected():
            return
        cursor = 0
        while True:
            try:
                cursor, keys = await self.client.scan(cursor, match=pattern, count=count)
            except CONNECTION_ERRORS as e:
                self._mark_disconnected(e)
                return
            except RedisError:
                logger.exception(f"Failed to scan keys with pattern {pattern}")
                return

            for key in keys:
                yield key.decode("utf-8") if isinstance(key, bytes) else key

            # If cursor is 0, iteration is complete
            if cursor == 0:
                break

    async def delete_pattern(self, pattern: str, batch_size: int = 1000) -> int:
        """
        Delete every key matching a glob pattern.

        Args:
            pattern: Redis glob pattern, e.g. ``cache:users:*``.
            batch_size: Number of keys removed per DEL command.

        Returns:
            Number of keys deleted.
        """
        deleted = 0
        batch: list[str] = []
        async for key in self.scan_iter(pattern):
            batch.append(key)
            if len(batch) >= batch_size:
                deleted += await self.delete(*batch)
                batch = []
        if batch:
            deleted += await self.delete(*batch)
        return deleted

    async def ping(self) -> bool:
        """Ping Redis server."""
        if self._redis is None or self.state is ConnectionState.CLOSED:
            return False
        try:
            ping_result = self.client.ping()
            result = await ping_result if isinstance(ping_result, Awaitable) else ping_result
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
            return False
        except RedisError:
            logger.exception("Failed to ping Redis")
            return False
        if result:
            self._set_state(ConnectionState.CONNECTED, "connect")
        return bool(result)

    async def info(self) -> dict[str, Any]:
        """Get Redis server info."""
        if not self.is_connected:
            return {}
        try:
            info = await self.client.info()
        except CONNECTION_ERRORS as e:
            self._mark_disconnected(e)
            return {}
        except RedisError:
            logger.exception("Failed to get server info")
            return {}
        return info if isinstance(info, dict) else {}

    async def health_check(self) -> dict[str, Any]:
        """Summarize the connection for the health endpoint."""
        reachable = await self.ping()
        info = await self.info() if reachable else {}
        return {
            "status": "connected" if reachable else "disconnected",
            "backend": "redis",
            "state": self.state.value,
            "version": info.get("redis_version"),
            "used_memory": info.get("used_memory_human"),
        }
