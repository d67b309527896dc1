from logging import getLogger

from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from app.configs import file_logger
from app.configs.settings import DUPLICATE_PHONE_MESSAGE, USER_NOT_FOUND_MESSAGE
from app.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class DatabaseError(BaseAppError):
    """Base exception for database errors."""

    def __init__(
        self,
        detail: str = "Database Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class DatabaseConnectionError(DatabaseError):
    """Exception raised when database connection fails."""

    def __init__(
        self,
        detail: str = "Failed to connect to the database",
    ) -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


class DatabaseConfigurationError(DatabaseError):
    """Exception raised when database configuration is invalid or missing."""

    def __init__(
        self,
        detail: str = "DATABASE_URL is not configured",
    ) -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


class DuplicateEntryError(DatabaseError):
    """Raised when a write violates a unique index (the user's phone number)."""

    def __init__(
        self,
        detail: str = DUPLICATE_PHONE_MESSAGE,
        field: str = "phone",
    ) -> None:
        super().__init__(detail, HTTP_409_CONFLICT)
        self.error = f"A user with this {field} number already exists"


class RecordNotFoundError(DatabaseError):
    """Exception raised when a record is not found."""

    def __init__(
        self,
        detail: str = USER_NOT_FOUND_MESSAGE,
    ) -> None:
        super().__init__(detail, HTTP_404_NOT_FOUND)


database_exception_handler = create_exception_handler(logger)
