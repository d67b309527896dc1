"""Custom exceptions for caching module.

These never reach API callers: the cache layer catches them and degrades to a
cache miss or a no-op.
"""

from starlette import status

from app.errors.base import BaseAppError


class CacheExceptionError(BaseAppError):
    """Base exception for cache operations."""

    def __init__(self, detail: str = "Cache exception occurred") -> None:
        super().__init__(
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class CacheSerializationError(CacheExceptionError):
    """Raised when cache serialization fails."""

    def __init__(self, detail: str = "Cannot serialize value") -> None:
        super().__init__(detail)


class CacheDeserializationError(CacheExceptionError):
    """Raised when cache deserialization fails."""

    def __init__(self, detail: str = "Cannot deserialize value") -> None:
        super().__init__(detail)
