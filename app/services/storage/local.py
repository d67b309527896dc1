"""
Local filesystem storage implementation.

Used for development and tests; files land under ``UPLOADS_DIR/user_images``
and are served by the API under ``/uploads``.
"""

from pathlib import Path

import aiofiles
import aiofiles.os

from app.configs.settings import settings

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

IMAGE_FOLDER = "user_images"


class LocalStorage:
    """Store user images on the local filesystem."""

    def __init__(self, uploads_dir: Path | None = None) -> None:
        """Initialize local storage with configured paths."""
        self.uploads_dir = uploads_dir or settings.UPLOADS_DIR
        self.base_path = self.uploads_dir / IMAGE_FOLDER
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, image_id: str, extension: str) -> Path:
        return self.base_path / f"{image_id}.{extension}"

    async def upload_user_image(
        self,
        image_id: str,
        file_data: bytes,
        content_type: str,
    ) -> str:
        """
        Write an image to the uploads directory.

        Returns:
            str: URL path under which the file is served
        """
        extension = EXTENSIONS.get(content_type, "jpg")
        file_path = self._get_file_path(image_id, extension)

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(file_data)

        return f"/uploads/{IMAGE_FOLDER}/{image_id}.{extension}"

    async def delete_user_image(self, image_id: str) -> bool:
        """Delete an image whatever its extension was."""
        for ext in EXTENSIONS.values():
            file_path = self._get_file_path(image_id, ext)
            if await aiofiles.os.path.exists(file_path):
                await aiofiles.os.remove(file_path)
                return True
        return False
