# app/managers/rate_limiter.py

"""Rate limiter configuration using slowapi."""

from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from app.configs import LimiterConfig, file_logger
from app.errors.base import error_body
from app.utils.helpers import host

logger = file_logger(getLogger(__name__))

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def get_identifier(request: Request) -> str:
    """
    Get unique identifier for rate limiting.

    Args:
        request: FastAPI request object.

    Returns:
        The client IP address, namespaced.
    """
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(**LimiterConfig().model_dump(), key_func=get_identifier)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle rate limit exceeded exceptions.

    Args:
        request: FastAPI request object.
        exc: RateLimitExceeded exception.

    Returns:
        JSON response with error details.
    """
    http_exc = cast(RateLimitExceeded, exc)
    retry_after = http_exc.limit.limit.get_expiry()
    logger.warning(
        f"Rate limit exceeded for ip: {host(request)} on {request.method} {request.url.path}",
    )
    return ORJSONResponse(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        content=error_body(
            RATE_LIMIT_MESSAGE,
            allowed_requests=http_exc.detail,
            retry_after=f"{retry_after} seconds",
        ),
        headers={"Retry-After": str(retry_after)},
    )
