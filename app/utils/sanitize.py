"""Markup stripping for user-supplied strings."""

from logging import getLogger
from typing import Any

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

from app.configs import file_logger

logger = file_logger(getLogger(__name__))

# Elements whose content is dropped entirely, not just unwrapped
_DROPPED_TAGS = ("script", "style")


def strip_markup(value: str) -> str:
    """
    Remove HTML from a string and trim surrounding whitespace.

    ``<script>`` and ``<style>`` blocks are removed together with their content;
    any other tag is unwrapped so only its text survives.

    Examples
    --------
    >>> strip_markup("  <b>Ada</b><script>alert(1)</script> ")
    'Ada'
    """
    if "<" not in value:
        return value.strip()

    try:
        soup = BeautifulSoup(value, "html.parser")
    except ParserRejectedMarkup:
        logger.warning("Rejected markup while sanitizing input")
        return value.replace("<", "").replace(">", "").strip()

    for tag in soup.find_all(_DROPPED_TAGS):
        tag.decompose()
    return soup.get_text().strip()


def sanitize(value: Any) -> Any:  # noqa: ANN401
    """Recursively strip markup from every string inside dicts and lists."""
    if isinstance(value, str):
        return strip_markup(value)
    if isinstance(value, dict):
        return {key: sanitize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    return value
