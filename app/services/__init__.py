from app.services.user_image import UserImageService

__all__ = ["UserImageService"]
