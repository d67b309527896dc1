"""
Serialization utilities for caching.

Uses orjson for JSON serialization/deserialization of cached payloads.
"""

from logging import getLogger
from typing import Any

from orjson import OPT_NON_STR_KEYS, JSONDecodeError
from orjson import dumps as orjson_dumps
from orjson import loads as orjson_loads

from app.configs import file_logger
from app.errors.cache import CacheDeserializationError, CacheSerializationError

logger = file_logger(getLogger(__name__))


def serialize(value: object) -> str:
    """
    Serialize value to JSON string.

    Args:
        value: Value to serialize.

    Returns:
        JSON serialized string.

    Raises:
        CacheSerializationError: If serialization fails.
    """
    try:
        # orjson returns bytes, decode to string
        return orjson_dumps(value, default=str, option=OPT_NON_STR_KEYS).decode("utf-8")
    except (TypeError, ValueError) as e:
        logger.exception("Serialization failed")
        raise CacheSerializationError from e


def deserialize(value: str | bytes) -> Any:  # noqa: ANN401
    """
    Deserialize JSON string to value.

    Args:
        value: JSON string to deserialize.

    Returns:
        Deserialized value.

    Raises:
        CacheDeserializationError: If deserialization fails.
    """
    try:
        return orjson_loads(value)
    except (JSONDecodeError, TypeError) as e:
        logger.warning("Deserialization failed: %s", e)
        raise CacheDeserializationError from e
