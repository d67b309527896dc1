"""
Cache key builders for the application.

Read routes are cached under the full request path plus query string, so every
page/limit/search combination is a distinct entry of the collection namespace.
"""

from fastapi import Request


def request_cache_key(request: Request) -> str:
    """
    Build the cache key for a request.

    Examples
    --------
    ``GET /api/users?page=2&limit=6`` -> ``/api/users?page=2&limit=6``
    """
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path
