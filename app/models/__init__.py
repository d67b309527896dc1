"""Database models for the application."""

from app.models.user import UserDB

__all__ = ["UserDB"]
