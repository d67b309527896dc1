# app/managers/cache_manager.py
"""Cache manager: key prefixing, namespaces and health on top of a cache client."""

from logging import DEBUG, getLogger
from typing import Any

from app.clients.memory_client import MemoryClient
from app.clients.protocols import CacheClientProtocol
from app.clients.redis_client import RedisClient
from app.configs import CacheConfig, file_logger, settings
from app.data import CacheStatistics

logger = file_logger(getLogger(__name__))


class CacheManager:
    """
    Namespaced cache operations over Redis or the in-memory client.

    Every key is stored as ``{prefix}:{namespace}:{key}`` so a whole collection
    can be invalidated by its namespace. The manager never raises on cache
    failures; reads degrade to misses and writes to no-ops.
    """

    def __init__(self, client: CacheClientProtocol | None = None) -> None:
        """Initialize cache manager, choosing the backend from settings unless one is given."""
        self.cache_config = CacheConfig()
        self.statistics = CacheStatistics()
        if client is not None:
            self._client = client
        elif settings.REDIS_ENABLED:
            self._client = RedisClient()
        else:
            self._client = MemoryClient()

    @property
    def client(self) -> CacheClientProtocol:
        """The underlying cache client."""
        return self._client

    @property
    def backend(self) -> str:
        """Human readable backend name."""
        return "redis" if isinstance(self._client, RedisClient) else "memory"

    async def initialize(self) -> bool:
        """
        Connect the cache client.

        A failed Redis connection is not fatal: the service keeps running and
        the client retries in the background of later operations.
        """
        connected = await self._client.connect()
        if connected:
            logger.info(f"Cache manager initialized with {self.backend} backend.")
        else:
            logger.warning("Cache unavailable at startup; requests will be served without caching.")
        return connected

    async def shutdown(self) -> None:
        """Shutdown cache manager by closing the client connection."""
        await self._client.disconnect()
        logger.info("Cache manager shutdown successfully.")

    def _build_key(self, key: str, namespace: str | None = None) -> str:
        """Build full cache key with prefix and namespace."""
        prefix = self.cache_config.key_prefix
        return f"{prefix}:{namespace}:{key}" if namespace else f"{prefix}:{key}"

    def _ttl(self, ttl: int | None) -> int:
        ttl = ttl if ttl is not None else self.cache_config.default_ttl
        return min(ttl, self.cache_config.max_ttl)

    async def get(self, key: str, namespace: str | None = None) -> object | None:
        """Get value from cache, `None` on miss or when the cache is unavailable."""
        full_key = self._build_key(key, namespace)
        if logger.isEnabledFor(DEBUG):
            logger.debug("Getting from cache: %s", full_key)
        value = await self._client.get(full_key)
        if value is None:
            self.statistics.record_miss()
        else:
            self.statistics.record_hit()
        return value

    async def set(
        self,
        key: str,
        value: object,
        ttl: int | None = None,
        namespace: str | None = None,
    ) -> bool:
        """Store value under the namespaced key with a bounded TTL."""
        stored = await self._client.set(self._build_key(key, namespace), value, ttl=self._ttl(ttl))
        if stored:
            self.statistics.record_set()
        return stored

    async def delete(self, *keys: str, namespace: str | None = None) -> int:
        """Delete keys from cache."""
        return await self._client.delete(*(self._build_key(key, namespace) for key in keys))

    async def exists(self, *keys: str, namespace: str | None = None) -> int:
        """Check if keys exist."""
        return await self._client.exists(*(self._build_key(key, namespace) for key in keys))

    async def ttl(self, key: str, namespace: str | None = None) -> int:
        """Get remaining time to live."""
        return await self._client.ttl(self._build_key(key, namespace))

    async def clear(self, namespace: str | None = None) -> int:
        """
        Invalidate every entry of a namespace, or the whole store without one.

        Args:
            namespace: Collection tag, e.g. ``users``.

        Returns:
            Number of keys deleted; ``0`` after a full flush.
        """
        self.statistics.record_invalidation()
        if namespace is None:
            flushed = await self._client.flush_all()
            logger.info(f"Cache flushed: {flushed}")
            return 0
        pattern = f"{self.cache_config.key_prefix}:{namespace}:*"
        deleted = await self._client.delete_pattern(pattern)
        logger.info("Cleared %d keys for pattern '%s'.", deleted, pattern)
        return deleted

    async def ping(self) -> bool:
        """Ping the cache server."""
        return await self._client.ping()

    async def health_check(self) -> dict[str, Any]:
        """
        Report backend status and statistics.

        Returns:
            Dictionary with health status and details.
        """
        result = await self._client.health_check()
        result["statistics"] = self.statistics.to_dict()
        return result


cache_manager = CacheManager()
