# app/console/api.py
"""
Async HTTP client for the User Directory API.

Wraps an ``httpx.AsyncClient`` and maps every non-2xx response to `ApiError`
carrying the server message, so callers only deal with plain dictionaries.
"""

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from types import TracebackType
from typing import Any, Self

from httpx import AsyncClient, HTTPError, Response
from orjson import JSONDecodeError, loads

from app.configs import file_logger, settings

logger = file_logger(getLogger(__name__))

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."
FORM_FIELDS = ("name", "gender", "birthday", "occupation", "phone")
IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def default_base_url() -> str:
    return f"http://{settings.HOST}:{settings.PORT}/api"


class ApiError(Exception):
    """A request the API rejected or that never reached it."""

    def __init__(
        self,
        status_code: int,
        message: str = GENERIC_ERROR_MESSAGE,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class UserPage:
    """One page of users as returned by ``GET /users``."""

    users: list[dict[str, Any]]
    total_pages: int
    current_page: int
    total: int
    cached: bool = False


def _error_from(response: Response) -> ApiError:
    try:
        body = loads(response.content)
    except JSONDecodeError:
        body = None
    if not isinstance(body, dict):
        return ApiError(response.status_code)
    return ApiError(
        response.status_code,
        str(body.get("message") or GENERIC_ERROR_MESSAGE),
        body.get("errors") if isinstance(body.get("errors"), list) else None,
    )


def _form_data(data: dict[str, Any]) -> dict[str, str]:
    """Only the known form fields that carry a value are sent."""
    return {field: str(data[field]) for field in FORM_FIELDS if data.get(field) not in (None, "")}


def _image_file(image: Path | None) -> dict[str, tuple[str, bytes, str]] | None:
    if image is None:
        return None
    content_type = IMAGE_TYPES.get(image.suffix.lower(), "application/octet-stream")
    return {"image": (image.name, image.read_bytes(), content_type)}


class UserApiClient:
    """
    Client for the ``/users`` resource.

    Parameters
    ----------
    base_url : str | None
        API root, e.g. ``http://127.0.0.1:5001/api``.
    client : AsyncClient | None
        Pre-configured client, mainly for tests.
    timeout : float
        Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or AsyncClient(base_url=base_url or default_base_url(), timeout=timeout)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:  # noqa: ANN401
        try:
            response = await self._client.request(method, url, **kwargs)
        except HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise ApiError(0, GENERIC_ERROR_MESSAGE) from e

        if not response.is_success:
            error = _error_from(response)
            logger.info(f"{method} {url} -> {response.status_code}: {error.message}")
            raise error
        return loads(response.content)

    async def list_users(self, page: int = 1, limit: int = 6, search: str = "") -> UserPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        body = await self._request("GET", "/users", params=params)
        return UserPage(
            users=body.get("users", []),
            total_pages=body.get("totalPages", 0),
            current_page=body.get("currentPage", page),
            total=body.get("total", 0),
            cached=bool(body.get("_cached", False)),
        )

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/users/{user_id}")

    async def create_user(self, data: dict[str, Any], image: Path | None = None) -> dict[str, Any]:
        body = await self._request("POST", "/users", data=_form_data(data), files=_image_file(image))
        return body["user"]

    async def update_user(
        self,
        user_id: str,
        data: dict[str, Any],
        image: Path | None = None,
    ) -> dict[str, Any]:
        body = await self._request(
            "PUT",
            f"/users/{user_id}",
            data=_form_data(data),
            files=_image_file(image),
        )
        return body["user"]

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/users/{user_id}")
