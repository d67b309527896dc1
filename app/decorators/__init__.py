from app.decorators.caching import cache_response, invalidate_cache

__all__ = [
    "cache_response",
    "invalidate_cache",
]
