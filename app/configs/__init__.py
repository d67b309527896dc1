from app.configs.settings import (
    APP_VERSION,
    CacheConfig,
    LimiterConfig,
    file_logger,
    pool_kwargs,
    settings,
)

__all__ = [
    "APP_VERSION",
    "CacheConfig",
    "LimiterConfig",
    "file_logger",
    "pool_kwargs",
    "settings",
]
