from collections.abc import MutableMapping
from datetime import UTC, date, datetime
from math import ceil
from typing import Any

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute, Match, Route


def host(request: Request) -> str:
    """Return the host IP address."""
    return request.client.host if request.client else "unknown"


def today_str() -> str:
    """Return the current local time as a string."""
    return datetime.now(datetime.now().astimezone().tzinfo).strftime(
        "%Y-%m-%d %H:%M:%S",
    )


def utc_now() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def iso_now() -> str:
    """Return the current UTC time in ISO-8601 format."""
    return utc_now().isoformat().replace("+00:00", "Z")


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by backends without timezone support."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def age_on(birthday: date, today: date | None = None) -> int:
    """
    Compute the age in full years on a given day.

    Args:
        birthday: Date of birth.
        today: Reference day, defaults to the current UTC date.

    Returns:
        Age in completed years.
    """
    today = today or utc_now().date()
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show `total` items, `limit` per page."""
    return ceil(total / limit) if limit > 0 else 0


def get_summary(request: Request) -> str | None:
    """Extract route summary from request."""

    scope: MutableMapping[str, Any] = request.scope
    app: FastAPI = scope["app"]
    routes: list[BaseRoute] = app.routes

    summary = None
    for route in routes:
        is_api_route = type(route) is APIRoute
        is_route = type(route) is Route
        if is_api_route and route.matches(scope)[0] == Match.FULL:
            summary = route.summary
            break
        if is_route and route.matches(scope)[0] == Match.FULL:
            summary = route.name
            break

    return summary
