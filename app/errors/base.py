from collections.abc import Awaitable, Callable
from logging import Logger, getLogger

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR

from app.configs import file_logger, settings
from app.configs.settings import DEFAULT_ERROR_MESSAGE
from app.utils.helpers import host

logger = file_logger(getLogger(__name__))

BASE_EXCEPTION = (
    OSError,
    PermissionError,
    MemoryError,
    RuntimeError,
    ConnectionError,
    TimeoutError,
)


class BaseAppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail


def error_body(message: str, **extra: object) -> dict[str, object]:
    """Build the error envelope shared by every error response."""
    return {"success": False, "message": message, **extra}


def create_exception_handler(
    logger: Logger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        # Default values
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        detail = "Internal Server Error"

        # Extract from custom exception if available
        if hasattr(exc, "status_code"):
            status_code = exc.status_code
        if hasattr(exc, "detail"):
            detail = exc.detail

        logger.warning(f"{detail} for ip: {host(request)} for endpoint {request.url.path}")

        if status_code >= HTTP_500_INTERNAL_SERVER_ERROR and settings.is_production:
            return ORJSONResponse(content=error_body(DEFAULT_ERROR_MESSAGE), status_code=status_code)

        # Build response content with message and any additional exception attributes
        extra = {
            k: v for k, v in exc.__dict__.items() if k not in ("status_code", "detail", "args")
        }
        return ORJSONResponse(content=error_body(detail, **extra), status_code=status_code)

    return handler


async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Last-resort handler: log the error and return a 500, redacted in production."""
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path} from ip: {host(request)}",
        exc_info=exc,
    )
    message = DEFAULT_ERROR_MESSAGE if settings.is_production else str(exc) or DEFAULT_ERROR_MESSAGE
    return ORJSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(message),
    )


async def http_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Render framework HTTP errors (unknown routes, wrong methods) in the app envelope."""
    http_exc = exc if isinstance(exc, StarletteHTTPException) else None
    status_code = http_exc.status_code if http_exc else HTTP_500_INTERNAL_SERVER_ERROR
    if status_code == HTTP_404_NOT_FOUND:
        return ORJSONResponse(
            status_code=status_code,
            content=error_body("API endpoint not found", path=request.url.path),
        )
    detail = str(http_exc.detail) if http_exc else DEFAULT_ERROR_MESSAGE
    return ORJSONResponse(
        status_code=status_code,
        content=error_body(detail),
        headers=getattr(http_exc, "headers", None),
    )
