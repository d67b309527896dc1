"""Terminal client for the User Directory API."""

from app.console.api import ApiError, UserApiClient, UserPage
from app.console.queries import Debouncer, ListState, QueryClient, UserKeys, UserQueries

__all__ = [
    "ApiError",
    "Debouncer",
    "ListState",
    "QueryClient",
    "UserApiClient",
    "UserKeys",
    "UserPage",
    "UserQueries",
]
