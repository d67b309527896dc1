"""
User schemas.

Request models validate the multipart form sent by the directory frontend;
response models define the JSON envelope returned by the user routes.
"""

from datetime import date, datetime
from enum import StrEnum
from re import compile as re_compile
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.configs.settings import (
    MAX_AGE,
    MIN_AGE,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    PHONE_MAX_LENGTH,
    PHONE_MIN_LENGTH,
)
from app.utils.helpers import age_on, as_utc, iso_now
from app.utils.sanitize import strip_markup

NAME_PATTERN = re_compile(r"^[a-zA-Z\s]+$")
PHONE_PATTERN = re_compile(r"^\+?[\d\s\-()]+$")


class Gender(StrEnum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Occupation(StrEnum):
    STUDENT = "Student"
    ENGINEER = "Engineer"
    TEACHER = "Teacher"
    UNEMPLOYED = "Unemployed"


def _text(value: object, label: str) -> str:
    """Sanitize a raw form value and reject it when nothing is left."""
    cleaned = strip_markup(value) if isinstance(value, str) else value
    if cleaned is None or cleaned == "":
        mssg = f"{label} is required"
        raise ValueError(mssg)
    if not isinstance(cleaned, str):
        mssg = f"{label} must be a string"
        raise ValueError(mssg)
    return cleaned


def parse_birthday(value: object) -> date:
    """
    Parse an ISO-8601 date (or datetime) and enforce the allowed age range.

    The age is computed from the full date, so someone turning 13 tomorrow is
    still 12 today.
    """
    if isinstance(value, datetime):
        birthday = value.date()
    elif isinstance(value, date):
        birthday = value
    else:
        raw = _text(value, "Birthday")
        try:
            birthday = date.fromisoformat(raw)
        except ValueError:
            try:
                birthday = datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
            except ValueError as e:
                mssg = "Birthday must be a valid date"
                raise ValueError(mssg) from e

    if not MIN_AGE <= age_on(birthday) <= MAX_AGE:
        mssg = f"Age must be between {MIN_AGE} and {MAX_AGE} years"
        raise ValueError(mssg)
    return birthday


class UserUpdate(BaseModel):
    """
    Partial update form: every field is optional, only supplied fields change.

    Field rules are shared with `UserCreate`.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, description="Full name", examples=["Ada Lovelace"])
    gender: Gender | None = Field(default=None, description="Gender")
    birthday: date | None = Field(default=None, description="Date of birth (YYYY-MM-DD)")
    occupation: Occupation | None = Field(default=None, description="Occupation")
    phone: str | None = Field(default=None, description="Phone number", examples=["+1 555 123 4567"])

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: object) -> str:
        name = _text(value, "Name")
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            mssg = f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            raise ValueError(mssg)
        if not NAME_PATTERN.fullmatch(name):
            mssg = "Name can only contain letters and spaces"
            raise ValueError(mssg)
        return name

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, value: object) -> Gender:
        raw = _text(value, "Gender")
        if raw not in Gender:
            mssg = "Gender must be Male, Female, or Other"
            raise ValueError(mssg)
        return Gender(raw)

    @field_validator("birthday", mode="before")
    @classmethod
    def validate_birthday(cls, value: object) -> date:
        return parse_birthday(value)

    @field_validator("occupation", mode="before")
    @classmethod
    def validate_occupation(cls, value: object) -> Occupation:
        raw = _text(value, "Occupation")
        if raw not in Occupation:
            mssg = "Occupation must be Student, Engineer, Teacher, or Unemployed"
            raise ValueError(mssg)
        return Occupation(raw)

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value: object) -> str:
        phone = _text(value, "Phone")
        if not PHONE_PATTERN.fullmatch(phone):
            mssg = "Phone number format is invalid"
            raise ValueError(mssg)
        if not PHONE_MIN_LENGTH <= len(phone) <= PHONE_MAX_LENGTH:
            mssg = f"Phone number must be between {PHONE_MIN_LENGTH} and {PHONE_MAX_LENGTH} characters"
            raise ValueError(mssg)
        return phone


class UserCreate(UserUpdate):
    """Creation form: every field is required."""

    name: str = Field(..., description="Full name", examples=["Ada Lovelace"])
    gender: Gender = Field(..., description="Gender")
    birthday: date = Field(..., description="Date of birth (YYYY-MM-DD)")
    occupation: Occupation = Field(..., description="Occupation")
    phone: str = Field(..., description="Phone number", examples=["+1 555 123 4567"])


class UserResponse(BaseModel):
    """A user as returned by the API."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID = Field(..., description="User ID")
    name: str
    gender: Gender
    birthday: date
    occupation: Occupation
    phone: str
    image: str = Field(default="", description="Avatar URL, empty when none was uploaded")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class UserListResponse(BaseModel):
    """One page of the user directory."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    users: list[UserResponse]
    total_pages: int = Field(..., alias="totalPages")
    current_page: int = Field(..., alias="currentPage")
    total: int
    timestamp: str = Field(default_factory=iso_now)


class UserMutationResponse(BaseModel):
    """Envelope for create and update results."""

    success: bool = True
    message: str
    user: UserResponse
    timestamp: str = Field(default_factory=iso_now)


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str = Field(default_factory=iso_now)
