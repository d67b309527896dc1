from app.middleware.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from app.middleware.sanitize import InputSanitizationMiddleware

__all__ = [
    "InputSanitizationMiddleware",
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
    "configure_cors",
    "lifespan",
]
