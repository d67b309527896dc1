from app.errors.base import (
    BASE_EXCEPTION,
    BaseAppError,
    create_exception_handler,
    error_body,
    http_exception_handler,
    unhandled_exception_handler,
)
from app.errors.cache import (
    CacheDeserializationError,
    CacheExceptionError,
    CacheSerializationError,
)
from app.errors.database import (
    DatabaseConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    DuplicateEntryError,
    RecordNotFoundError,
    database_exception_handler,
)
from app.errors.upload import (
    ImageProcessingError,
    ImageTooLargeError,
    InvalidImageError,
    StorageError,
    UnsupportedImageTypeError,
    UploadError,
    upload_exception_handler,
)
from app.errors.validation import validation_exception_handler

__all__ = [
    "BASE_EXCEPTION",
    "BaseAppError",
    "CacheDeserializationError",
    "CacheExceptionError",
    "CacheSerializationError",
    "DatabaseConfigurationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DuplicateEntryError",
    "ImageProcessingError",
    "ImageTooLargeError",
    "InvalidImageError",
    "RecordNotFoundError",
    "StorageError",
    "UnsupportedImageTypeError",
    "UploadError",
    "create_exception_handler",
    "database_exception_handler",
    "error_body",
    "http_exception_handler",
    "unhandled_exception_handler",
    "upload_exception_handler",
    "validation_exception_handler",
]
