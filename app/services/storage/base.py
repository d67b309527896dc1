"""
Base storage protocol for user image storage.

Backends are interchangeable: the image service only needs to upload bytes
and get back a URL, and to remove an image again by its id.
"""

from abc import abstractmethod
from typing import Protocol


class StorageService(Protocol):
    """Interface every storage backend implements."""

    @abstractmethod
    async def upload_user_image(
        self,
        image_id: str,
        file_data: bytes,
        content_type: str,
    ) -> str:
        """
        Store a user image.

        Args:
            image_id: Unique identifier for the stored image
            file_data: Raw image bytes
            content_type: MIME type of the image

        Returns:
            str: Public URL of the stored image
        """
        ...

    @abstractmethod
    async def delete_user_image(self, image_id: str) -> bool:
        """
        Remove a stored user image.

        Args:
            image_id: Identifier used at upload time

        Returns:
            bool: True if an image was removed
        """
        ...
