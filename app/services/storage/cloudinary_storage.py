"""
Cloudinary storage implementation.

Images are uploaded to the configured folder and bounded to
``USER_IMAGE_MAX_DIMENSION`` pixels on each side without cropping.
"""

import asyncio
from functools import partial
from logging import getLogger

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from app.configs import file_logger
from app.configs.settings import settings
from app.errors.upload import StorageError

logger = file_logger(getLogger(__name__))


class CloudinaryStorage:
    """Store user images in Cloudinary with CDN delivery."""

    def __init__(self) -> None:
        """Initialize Cloudinary with configured credentials."""
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET.get_secret_value(),
            secure=True,
        )
        self.folder = settings.CLOUDINARY_FOLDER

    def _get_public_id(self, image_id: str) -> str:
        return f"{self.folder}/{image_id}"

    async def upload_user_image(
        self,
        image_id: str,
        file_data: bytes,
        content_type: str,
    ) -> str:
        """
        Upload a user image to Cloudinary.

        Args:
            image_id: Unique identifier for the stored image
            file_data: Raw image bytes
            content_type: MIME type of the image

        Returns:
            str: Secure Cloudinary URL

        Raises:
            StorageError: If Cloudinary rejects the upload
        """
        size = settings.USER_IMAGE_MAX_DIMENSION
        loop = asyncio.get_running_loop()
        try:
            # Cloudinary's SDK is blocking
            result = await loop.run_in_executor(
                None,
                partial(
                    cloudinary.uploader.upload,
                    file_data,
                    public_id=self._get_public_id(image_id),
                    overwrite=True,
                    resource_type="image",
                    transformation=[{"width": size, "height": size, "crop": "limit"}],
                ),
            )
        except cloudinary.exceptions.Error as e:
            logger.exception(f"Cloudinary upload failed for {content_type} image {image_id}")
            raise StorageError from e

        return result["secure_url"]

    async def delete_user_image(self, image_id: str) -> bool:
        """Delete an image from Cloudinary."""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                partial(cloudinary.uploader.destroy, self._get_public_id(image_id)),
            )
        except cloudinary.exceptions.Error:
            logger.exception(f"Cloudinary delete failed for image {image_id}")
            return False
        return result.get("result") == "ok"
