"""
User image service.

Validates avatar uploads (type, size, actual image content) and hands them to
the configured storage backend.
"""

from io import BytesIO
from logging import getLogger
from pathlib import PurePosixPath
from urllib.parse import urlparse
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from app.configs import file_logger
from app.configs.settings import settings
from app.errors.upload import (
    ImageTooLargeError,
    InvalidImageError,
    UnsupportedImageTypeError,
)
from app.services.storage import StorageService, get_storage_service

logger = file_logger(getLogger(__name__))


def image_id_from_url(url: str) -> str | None:
    """
    Recover the storage id from an image URL.

    Examples
    --------
    >>> image_id_from_url("/uploads/user_images/3f2a.png")
    '3f2a'
    """
    if not url:
        return None
    return PurePosixPath(urlparse(url).path).stem or None


class UserImageService:
    """Validate and store user avatars."""

    def __init__(self, storage: StorageService | None = None) -> None:
        """
        Initialize the image service.

        Args:
            storage: Optional storage backend; defaults to the configured one.
        """
        self.storage = storage or get_storage_service()
        self.max_size_bytes = settings.USER_IMAGE_MAX_SIZE_MB * 1024 * 1024
        self.allowed_types = settings.USER_IMAGE_ALLOWED_TYPES

    def validate_content_type(self, content_type: str | None) -> str:
        """Reject anything but the allowed image MIME types."""
        if not content_type or content_type not in self.allowed_types:
            raise UnsupportedImageTypeError(content_type=content_type or "unknown")
        return content_type

    def validate_file_size(self, file_data: bytes) -> None:
        """Reject empty files and files above the size limit."""
        if not file_data:
            mssg = "The uploaded image is empty."
            raise InvalidImageError(mssg)
        if len(file_data) > self.max_size_bytes:
            raise ImageTooLargeError(
                max_size_mb=settings.USER_IMAGE_MAX_SIZE_MB,
                actual_size_mb=len(file_data) / (1024 * 1024),
            )

    @staticmethod
    def validate_image_content(file_data: bytes) -> None:
        """Make sure the bytes decode as an image."""
        try:
            with Image.open(BytesIO(file_data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise InvalidImageError from e

    async def upload(self, file: UploadFile) -> str:
        """
        Validate and store an uploaded image.

        Args:
            file: Uploaded file from FastAPI

        Returns:
            str: URL of the stored image

        Raises:
            UnsupportedImageTypeError: If file type is not allowed
            ImageTooLargeError: If file is too large
            InvalidImageError: If file is not a valid image
            StorageError: If the backend fails
        """
        content_type = self.validate_content_type(file.content_type)
        file_data = await file.read()
        self.validate_file_size(file_data)
        self.validate_image_content(file_data)

        image_id = uuid4().hex
        url = await self.storage.upload_user_image(image_id, file_data, content_type)
        logger.info(f"Stored user image {image_id} ({len(file_data)} bytes)")
        return url

    async def delete(self, url: str) -> bool:
        """Best-effort removal of a previously stored image."""
        image_id = image_id_from_url(url)
        if image_id is None:
            return False
        removed = await self.storage.delete_user_image(image_id)
        if not removed:
            logger.warning(f"User image {image_id} was not found in storage")
        return removed
