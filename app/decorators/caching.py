# app/decorators/caching.py
"""FastAPI decorators implementing cache-aside reads and namespace invalidation."""

from collections.abc import Callable
from functools import wraps
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fastapi import Request
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel
from starlette.responses import Response

from app.configs import file_logger
from app.errors import BASE_EXCEPTION
from app.utils.cache_keys import request_cache_key
from app.utils.helpers import iso_now

if TYPE_CHECKING:
    from app.managers.cache_manager import CacheManager

logger = file_logger(getLogger(__name__))


def _find_request(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Request | None:
    request = kwargs.get("request")
    if isinstance(request, Request):
        return request
    return next((arg for arg in args if isinstance(arg, Request)), None)


def _is_success(result: object) -> bool:
    """A plain return value is a success; a Response must carry a 2xx status."""
    if isinstance(result, Response):
        return 200 <= result.status_code < 300
    return True


def _to_payload(result: object) -> dict[str, Any] | None:
    """JSON-mode payload of a handler result, `None` when it cannot be cached."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    if isinstance(result, dict):
        return result
    return None


def cache_response(
    cache_manager: "CacheManager",
    ttl: int = 300,
    namespace: str = "users",
) -> Callable:
    """
    Cache-aside decorator for read endpoints.

    The key is the request path plus query string. A hit short-circuits the
    handler and is returned with ``_cached`` and ``_cacheTime`` markers; a miss
    runs the handler and stores its successful JSON payload for ``ttl`` seconds.
    Cache failures never reach the caller.

    Args:
        cache_manager: Cache manager instance.
        ttl: Time to live in seconds.
        namespace: Collection tag the entry belongs to.

    Returns:
        Decorated function.

    Example:
        @router.get("")
        @cache_response(cache_manager, ttl=300, namespace="users")
        async def list_users(request: Request) -> UserListResponse: ...
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> object:  # noqa: ANN401
            request = _find_request(args, kwargs)
            if request is None:
                return await func(*args, **kwargs)

            cache_key = request_cache_key(request)
            try:
                cached = await cache_manager.get(cache_key, namespace)
            except BASE_EXCEPTION as e:
                logger.warning(f"Cache retrieval failed: {e}")
                cached = None

            if isinstance(cached, dict):
                logger.debug(f"Cache hit for key: {cache_key}")
                return ORJSONResponse(content={**cached, "_cached": True, "_cacheTime": iso_now()})

            result = await func(*args, **kwargs)

            payload = _to_payload(result) if _is_success(result) else None
            if payload is not None:
                try:
                    if await cache_manager.set(cache_key, payload, ttl=ttl, namespace=namespace):
                        logger.debug(f"Cached result for key: {cache_key}")
                except BASE_EXCEPTION as e:
                    logger.warning(f"Cache store failed: {e}")

            return result

        return wrapper

    return decorator


def invalidate_cache(
    cache_manager: "CacheManager",
    namespace: str | None = "users",
) -> Callable:
    """
    Invalidate a cached collection after a successful mutation (POST, PUT, DELETE).

    Args:
        cache_manager: Cache manager instance.
        namespace: Collection tag to clear; ``None`` flushes the whole store.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> object:  # noqa: ANN401
            result = await func(*args, **kwargs)

            if _is_success(result):
                try:
                    deleted = await cache_manager.clear(namespace)
                    logger.debug(f"Cache invalidated {deleted} keys in namespace {namespace!r}")
                except BASE_EXCEPTION as e:
                    logger.warning(f"Cache invalidation failed: {e}")

            return result

        return wrapper

    return decorator
