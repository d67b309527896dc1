"""Tests for app/services/user_image.py."""

from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.errors.upload import (
    ImageTooLargeError,
    InvalidImageError,
    StorageError,
    UnsupportedImageTypeError,
)
from app.services.storage.local import LocalStorage
from app.services.user_image import UserImageService, image_id_from_url


def upload_file(data: bytes, content_type: str, filename: str = "avatar.png") -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def service(tmp_path: Path) -> UserImageService:
    """Image service writing to a temporary uploads directory."""
    return UserImageService(storage=LocalStorage(uploads_dir=tmp_path))


class TestImageIdFromUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("/uploads/user_images/3f2a.png", "3f2a"),
            ("https://res.cloudinary.com/demo/image/upload/v1/user_management/abc123.jpg", "abc123"),
            ("", None),
        ],
    )
    def test_extracts_id(self, url: str, expected: str | None) -> None:
        assert image_id_from_url(url) == expected


class TestValidation:
    def test_rejects_unsupported_type(self, service: UserImageService) -> None:
        with pytest.raises(UnsupportedImageTypeError) as exc_info:
            service.validate_content_type("application/pdf")
        assert exc_info.value.status_code == 415

    def test_rejects_missing_type(self, service: UserImageService) -> None:
        with pytest.raises(UnsupportedImageTypeError):
            service.validate_content_type(None)

    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/png", "image/gif", "image/webp"])
    def test_accepts_allowed_types(self, service: UserImageService, content_type: str) -> None:
        assert service.validate_content_type(content_type) == content_type

    def test_rejects_oversized_file(self, service: UserImageService) -> None:
        with pytest.raises(ImageTooLargeError) as exc_info:
            service.validate_file_size(b"0" * (service.max_size_bytes + 1))
        assert exc_info.value.status_code == 413

    def test_rejects_empty_file(self, service: UserImageService) -> None:
        with pytest.raises(InvalidImageError):
            service.validate_file_size(b"")

    def test_rejects_non_image_content(self, service: UserImageService) -> None:
        with pytest.raises(InvalidImageError) as exc_info:
            service.validate_image_content(b"not a valid image content")
        assert exc_info.value.status_code == 400


class TestUploadAndDelete:
    @pytest.mark.asyncio
    async def test_upload_stores_file(
        self,
        service: UserImageService,
        tmp_path: Path,
        valid_png_bytes: bytes,
    ) -> None:
        url = await service.upload(upload_file(valid_png_bytes, "image/png"))

        assert url.startswith("/uploads/user_images/")
        assert url.endswith(".png")
        stored = tmp_path / "user_images" / url.rsplit("/", 1)[-1]
        assert stored.read_bytes() == valid_png_bytes

    @pytest.mark.asyncio
    async def test_upload_rejects_spoofed_content_type(self, service: UserImageService) -> None:
        """A text file labelled as JPEG is refused before it reaches storage."""
        with pytest.raises(InvalidImageError):
            await service.upload(upload_file(b"plain text", "image/jpeg", "fake.jpg"))

    @pytest.mark.asyncio
    async def test_delete_removes_file(
        self,
        service: UserImageService,
        tmp_path: Path,
        valid_jpeg_bytes: bytes,
    ) -> None:
        url = await service.upload(upload_file(valid_jpeg_bytes, "image/jpeg", "avatar.jpg"))

        assert await service.delete(url) is True
        assert list((tmp_path / "user_images").iterdir()) == []
        assert await service.delete(url) is False

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, valid_png_bytes: bytes) -> None:
        storage = AsyncMock()
        storage.upload_user_image.side_effect = StorageError()
        service = UserImageService(storage=storage)

        with pytest.raises(StorageError):
            await service.upload(upload_file(valid_png_bytes, "image/png"))
