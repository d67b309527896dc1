"""Database engine, sessions and lifecycle."""

from app.db.database import (
    check_db,
    close_db,
    get_engine,
    get_session,
    init_db,
    transaction,
)

__all__ = [
    "check_db",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "transaction",
]
