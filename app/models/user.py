"""User database model using SQLModel."""

from datetime import date, datetime
from typing import cast
from uuid import UUID, uuid4

from pydantic import ConfigDict
from sqlalchemy import Date, DateTime
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

from app.utils.helpers import utc_now


class UserDB(SQLModel, table=True):
    """
    User database model.

    One row per directory entry. ``phone`` carries a unique index, so a
    duplicate number is rejected by the database itself.
    """

    __tablename__ = cast("declared_attr[str]", "users")

    # Primary key
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
        description="User ID",
    )

    name: str = Field(
        sa_column=Column(String(50), nullable=False, index=True),
        description="Full name",
    )
    gender: str = Field(
        sa_column=Column(String(10), nullable=False),
        description="Male, Female or Other",
    )
    birthday: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date of birth",
    )
    occupation: str = Field(
        sa_column=Column(String(20), nullable=False),
        description="Student, Engineer, Teacher or Unemployed",
    )
    phone: str = Field(
        sa_column=Column(String(15), unique=True, nullable=False, index=True),
        description="Phone number (unique)",
    )
    image: str = Field(
        default="",
        sa_column=Column(String(500), nullable=False, server_default=""),
        description="Avatar URL, empty when no image was uploaded",
    )

    # Timestamps (timezone-aware)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Ada Lovelace",
                "gender": "Female",
                "birthday": "1995-12-10",
                "occupation": "Engineer",
                "phone": "+1 555 123 4567",
                "image": "",
            },
        },
    )
