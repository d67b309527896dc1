"""Application settings and configuration constants.

This module contains application settings, constants, and configuration
values for the User Directory backend application.
"""

from logging import INFO, Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from pythonjsonlogger.json import JsonFormatter

ENV_FILE = Path(__file__).parent.parent.parent / ".env"

# --- Constants ---
APP_VERSION = "1.0.0"

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 15
MIN_AGE = 13
MAX_AGE = 120

DEFAULT_PAGE_SIZE = 6
MAX_PAGE_SIZE = 100
MAX_PAGE = 1_000_000

# Response constants
DEFAULT_ERROR_MESSAGE = "An unexpected server error occurred."
DUPLICATE_PHONE_MESSAGE = "Phone number already exists"
USER_NOT_FOUND_MESSAGE = "User not found"


class Settings(BaseSettings):
    """Application settings with validation and default values."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "User Directory API"
    DEBUG: bool = False

    # Environment
    ENVIRONMENT: str = "development"
    HOST: str = "127.0.0.1"
    PORT: int = 5001
    ALLOWED_ORIGINS: str = ""
    # Proxies whose X-Forwarded-For is believed, comma-separated
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE: str = "logs/app.log"

    # Database Configuration (required at startup)
    DATABASE_URL: str | None = None
    DATABASE_ECHO: bool = False
    POOL_SIZE: int = 10
    MAX_OVERFLOW: int = 20
    POOL_TIMEOUT: int = 30
    POOL_RECYCLE: int = 1800

    # Redis Configuration (optional)
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_RECONNECT_INTERVAL: float = 30.0

    # Cache
    CACHE_TTL_USERS: int = 300  # 5 minutes

    # Rate limiting
    RATE_LIMIT_DEFAULT: str = "100/15 minutes"
    RATE_LIMIT_STRICT: str = "20/minute"

    # Storage Configuration
    STORAGE_PROVIDER: Literal["local", "cloudinary"] = "local"
    UPLOADS_DIR: Path = Path("uploads")
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: SecretStr = SecretStr("")
    CLOUDINARY_FOLDER: str = "user_management"

    # User image upload
    USER_IMAGE_MAX_SIZE_MB: int = 5
    USER_IMAGE_MAX_DIMENSION: int = 500
    USER_IMAGE_ALLOWED_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    @property
    def is_production(self) -> bool:
        """Whether the service runs in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def allowed_origins(self) -> list[str]:
        """Split `ALLOWED_ORIGINS` into a list of origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()


class CacheConfig(BaseSettings):
    """Cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_", case_sensitive=False)

    default_ttl: int = 300  # 5 minutes
    max_ttl: int = 86400  # 24 hours
    key_prefix: str = "cache"


class LimiterConfig(BaseModel):
    """Keyword arguments for the slowapi `Limiter`."""

    storage_uri: str = settings.REDIS_URL if settings.REDIS_ENABLED else "memory://"
    strategy: str = "moving-window"
    default_limits: list[str] = [settings.RATE_LIMIT_DEFAULT]
    headers_enabled: bool = False
    swallow_errors: bool = True


pool_kwargs: dict[str, Any] = {
    "socket_timeout": 5.0,
    "socket_connect_timeout": 5.0,
    "socket_keepalive": True,
    "health_check_interval": 30,
    "max_connections": 50,
    "decode_responses": True,
    "encoding": "utf-8",
}


def file_logger(logger: Logger) -> Logger:
    """
    Attach a rotating file handler to `logger` when file logging is enabled.

    Args:
        logger: Logger to configure.

    Returns:
        The same logger, for inline use.
    """
    if not settings.LOG_TO_FILE:
        return logger

    log_file = Path(settings.LOG_FILE)
    if any(
        isinstance(handler, RotatingFileHandler)
        and Path(handler.baseFilename) == log_file.resolve()
        for handler in logger.handlers
    ):
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    handler.setLevel(INFO)
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger
