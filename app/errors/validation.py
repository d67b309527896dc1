"""Custom validation error handling for FastAPI."""

from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_400_BAD_REQUEST

from app.configs import file_logger
from app.errors.base import error_body
from app.utils.helpers import host

logger = file_logger(getLogger(__name__))

_VALUE_ERROR_PREFIX = "Value error, "

# Request sections that are dropped from the reported field path
_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def _field_name(loc: tuple[int | str, ...]) -> str:
    parts = [str(part) for part in loc if part not in _LOCATIONS]
    return ".".join(parts) or "request"


def _message(error: dict, field: str) -> str:
    if error.get("type") == "missing":
        return f"{field.rsplit('.', 1)[-1].capitalize()} is required"
    message = str(error.get("msg", "Invalid value"))
    return message.removeprefix(_VALUE_ERROR_PREFIX)


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Collapse every request validation failure into a single 400 response.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.

    Returns:
        ORJSONResponse listing one `{field, message}` entry per failing field.
    """
    exec_error = cast(RequestValidationError, exc)

    formatted_errors = []
    for error in exec_error.errors():
        field = _field_name(tuple(error.get("loc", ())))
        formatted_errors.append({"field": field, "message": _message(error, field)})

    logger.warning(
        f"Validation error for ip: {host(request)} at endpoint {request.url.path}: "
        f"{[e['field'] for e in formatted_errors]}",
    )

    return ORJSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", errors=formatted_errors),
    )
