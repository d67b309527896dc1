# app/console/queries.py
"""
Client-side query cache for the console.

Entries are keyed by tuples such as ``("users", "list", (page, limit, search))``
so a whole family can be invalidated by prefix. Mutations keep the cache in
step with the server: lists are marked stale, details are seeded or removed.
"""

from asyncio import CancelledError, Task, create_task, sleep
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from time import monotonic
from typing import Any

from app.configs import file_logger
from app.console.api import UserApiClient, UserPage

logger = file_logger(getLogger(__name__))

QueryKey = tuple[Hashable, ...]

SEARCH_DEBOUNCE_SECONDS = 0.5


class UserKeys:
    """Query key factory for the users resource."""

    @staticmethod
    def all() -> QueryKey:
        return ("users",)

    @staticmethod
    def lists() -> QueryKey:
        return ("users", "list")

    @staticmethod
    def list(page: int, limit: int, search: str) -> QueryKey:
        return ("users", "list", (page, limit, search))

    @staticmethod
    def details() -> QueryKey:
        return ("users", "detail")

    @staticmethod
    def detail(user_id: str) -> QueryKey:
        return ("users", "detail", user_id)


@dataclass
class QueryEntry:
    data: Any
    updated_at: float = field(default_factory=monotonic)
    stale: bool = False


class QueryClient:
    """
    In-process cache of query results.

    Parameters
    ----------
    stale_time : float | None
        Seconds an entry stays fresh; ``None`` keeps entries fresh until
        invalidated.
    """

    def __init__(self, stale_time: float | None = None) -> None:
        self.stale_time = stale_time
        self._entries: dict[QueryKey, QueryEntry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _matches(key: QueryKey, prefix: QueryKey) -> bool:
        return key[: len(prefix)] == prefix

    def get_query_data(self, key: QueryKey) -> Any | None:  # noqa: ANN401
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_query_data(self, key: QueryKey, data: Any) -> None:  # noqa: ANN401
        self._entries[key] = QueryEntry(data)

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return True
        return self.stale_time is not None and monotonic() - entry.updated_at > self.stale_time

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every entry under `prefix` stale; data stays available as a placeholder."""
        count = 0
        for key, entry in self._entries.items():
            if self._matches(key, prefix):
                entry.stale = True
                count += 1
        return count

    def remove_queries(self, prefix: QueryKey) -> int:
        keys = [key for key in self._entries if self._matches(key, prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    async def fetch_query(
        self,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[Any]],
    ) -> Any:  # noqa: ANN401
        """Return fresh cached data or run `fetcher` and store its result."""
        if not self.is_stale(key):
            return self._entries[key].data
        data = await fetcher()
        self.set_query_data(key, data)
        return data

    def clear(self) -> None:
        self._entries.clear()


@dataclass(frozen=True)
class ListState:
    """
    What a list view should display.

    ``is_placeholder`` is true while the requested page is still loading and
    ``data`` holds the previously shown page.
    """

    params: tuple[int, int, str]
    data: UserPage | None = None
    is_placeholder: bool = False


class UserQueries:
    """
    Queries and mutations for users on top of `UserApiClient` and `QueryClient`.

    Every list fetch takes a request token; only the response to the most
    recent token is applied, so a slow earlier page can never overwrite a
    later one.
    """

    def __init__(self, api: UserApiClient, client: QueryClient | None = None) -> None:
        self.api = api
        self.client = client or QueryClient()
        self.state: ListState | None = None
        self._latest_token = 0

    def _next_token(self) -> int:
        self._latest_token += 1
        return self._latest_token

    def is_latest(self, token: int) -> bool:
        return token == self._latest_token

    async def list(self, page: int = 1, limit: int = 6, search: str = "") -> ListState:
        """
        Load a page of users, keeping the previous page visible meanwhile.

        Returns
        -------
        ListState
            The state after this call; unchanged when a newer list request
            superseded this one.
        """
        params = (page, limit, search)
        key = UserKeys.list(page, limit, search)
        token = self._next_token()

        if not self.client.is_stale(key):
            self.state = ListState(params, self.client.get_query_data(key))
            return self.state

        previous = self.state.data if self.state else None
        self.state = ListState(params, self.client.get_query_data(key) or previous, is_placeholder=True)

        data = await self.api.list_users(page, limit, search)
        if not self.is_latest(token):
            logger.debug(f"Discarding stale list response for {params}")
            return self.state

        self.client.set_query_data(key, data)
        self.state = ListState(params, data)
        return self.state

    async def get(self, user_id: str) -> dict[str, Any]:
        return await self.client.fetch_query(
            UserKeys.detail(user_id),
            lambda: self.api.get_user(user_id),
        )

    async def create(self, data: dict[str, Any], image: Path | None = None) -> dict[str, Any]:
        user = await self.api.create_user(data, image)
        self.client.invalidate(UserKeys.lists())
        self.client.set_query_data(UserKeys.detail(user["id"]), user)
        return user

    async def update(
        self,
        user_id: str,
        data: dict[str, Any],
        image: Path | None = None,
    ) -> dict[str, Any]:
        user = await self.api.update_user(user_id, data, image)
        self.client.set_query_data(UserKeys.detail(user_id), user)
        self.client.invalidate(UserKeys.lists())
        return user

    async def delete(self, user_id: str) -> None:
        await self.api.delete_user(user_id)
        self.client.remove_queries(UserKeys.detail(user_id))
        self.client.invalidate(UserKeys.lists())


class Debouncer:
    """
    Collapse bursts of calls into one, issued `delay` seconds after the last.

    Example:
        debounce = Debouncer()
        for text in ("a", "ad", "ada"):
            task = debounce(queries.list, 1, 6, text)
        await task  # only ``queries.list(1, 6, "ada")`` ran
    """

    def __init__(self, delay: float = SEARCH_DEBOUNCE_SECONDS) -> None:
        self.delay = delay
        self._task: Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def __call__(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,  # noqa: ANN401
    ) -> Task:
        self.cancel()
        self._task = create_task(self._run(func, *args))
        return self._task

    async def _run(self, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:  # noqa: ANN401
        await sleep(self.delay)
        return await func(*args)

    def cancel(self) -> None:
        if self.pending and self._task is not None:
            self._task.cancel()

    async def flush(self) -> Any | None:  # noqa: ANN401
        """Wait for the pending call, if any, and return its result."""
        if self._task is None:
            return None
        try:
            return await self._task
        except CancelledError:
            return None
