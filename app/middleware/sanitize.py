# app/middleware/sanitize.py
"""
Input sanitization middleware.

Strips markup from the query string and from JSON or urlencoded request bodies
before routing. Multipart forms are streamed untouched; their text fields are
sanitized by the form schemas.
"""

from logging import getLogger
from urllib.parse import parse_qsl, urlencode

from orjson import JSONDecodeError, dumps, loads
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.configs import file_logger
from app.utils.sanitize import sanitize

logger = file_logger(getLogger(__name__))

_JSON = "application/json"
_FORM = "application/x-www-form-urlencoded"


def _clean_query(query_string: bytes) -> bytes:
    if not query_string or (b"%3C" not in query_string.upper() and b"<" not in query_string):
        return query_string
    pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    return urlencode([(key, sanitize(value)) for key, value in pairs]).encode("latin-1")


def _clean_body(body: bytes, content_type: str) -> bytes:
    if content_type.startswith(_JSON):
        try:
            return dumps(sanitize(loads(body)))
        except JSONDecodeError:
            # Malformed JSON is rejected later by request validation
            return body
    pairs = parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True)
    return urlencode([(key, sanitize(value)) for key, value in pairs]).encode("utf-8")


class InputSanitizationMiddleware:
    """Pure ASGI middleware so the rewritten body reaches every downstream handler."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        scope["query_string"] = _clean_query(scope.get("query_string", b""))

        headers = dict(scope.get("headers") or [])
        content_type = headers.get(b"content-type", b"").decode("latin-1").lower()
        if not content_type.startswith((_JSON, _FORM)):
            await self.app(scope, receive, send)
            return

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body += message.get("body", b"")
            more_body = message.get("more_body", False)

        cleaned = _clean_body(body, content_type) if body else body
        scope["headers"] = [
            (key, value) for key, value in scope.get("headers", []) if key != b"content-length"
        ] + [(b"content-length", str(len(cleaned)).encode("latin-1"))]

        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": cleaned, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
