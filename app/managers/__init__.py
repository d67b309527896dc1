from app.managers.cache_manager import CacheManager, cache_manager
from app.managers.rate_limiter import limiter, rate_limit_exceeded_handler

__all__ = [
    "CacheManager",
    "cache_manager",
    "limiter",
    "rate_limit_exceeded_handler",
]
