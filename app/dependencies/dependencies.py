# app/dependencies/dependencies.py

"""Application dependencies: repositories, services, query and form parsing."""

from dataclasses import dataclass
from functools import cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Form, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.configs.settings import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from app.db import get_session
from app.errors.database import RecordNotFoundError
from app.repositories import UserRepository
from app.schemas.user import UserCreate, UserUpdate
from app.services import UserImageService


def get_user_repository(session: Annotated[AsyncSession, Depends(get_session)]) -> UserRepository:
    """
    Resolve the `UserRepository` dependency.

    Parameters
    ----------
    session : AsyncSession
        Database session.

    Returns
    -------
    UserRepository
        Repository instance bound to the session.
    """
    return UserRepository(session)


UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]


@cache
def get_image_service() -> UserImageService:
    """Dependency to get the image service bound to the configured storage backend."""
    return UserImageService()


ImageServiceDep = Annotated[UserImageService, Depends(get_image_service)]


def parse_user_id(user_id: str) -> UUID:
    """
    Parse the path id; an id that cannot exist is reported as a missing user.

    Raises
    ------
    RecordNotFoundError
        If `user_id` is not a valid UUID.
    """
    try:
        return UUID(user_id)
    except ValueError as e:
        raise RecordNotFoundError from e


UserIdDep = Annotated[UUID, Depends(parse_user_id)]


@dataclass(frozen=True)
class UserListQuery:
    """
    Query container for user listing.

    Parameters
    ----------
    page : int
        1-based page number.
    limit : int
        Page size.
    search : str | None
        Case-insensitive substring filter.
    """

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    search: str | None = None


def get_user_list_query(
    page: Annotated[int, Query(ge=1, le=MAX_PAGE, description="Page number, starting at 1")] = 1,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_PAGE_SIZE, description="Maximum number of users per page"),
    ] = DEFAULT_PAGE_SIZE,
    search: Annotated[
        str | None,
        Query(max_length=100, description="Match against name, occupation or phone"),
    ] = None,
) -> UserListQuery:
    return UserListQuery(page=page, limit=limit, search=(search.strip() or None) if search else None)


UserQueryListDep = Annotated[UserListQuery, Depends(get_user_list_query)]


def _validate_form[FormT: BaseModel](model: type[FormT], **fields: str | None) -> FormT:
    """Validate submitted form fields, reporting every failure at once."""
    submitted = {key: value for key, value in fields.items() if value is not None}
    try:
        return model.model_validate(submitted)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e


def get_user_create_form(
    name: Annotated[str | None, Form()] = None,
    gender: Annotated[str | None, Form()] = None,
    birthday: Annotated[str | None, Form()] = None,
    occupation: Annotated[str | None, Form()] = None,
    phone: Annotated[str | None, Form()] = None,
) -> UserCreate:
    return _validate_form(
        UserCreate,
        name=name,
        gender=gender,
        birthday=birthday,
        occupation=occupation,
        phone=phone,
    )


def get_user_update_form(
    name: Annotated[str | None, Form()] = None,
    gender: Annotated[str | None, Form()] = None,
    birthday: Annotated[str | None, Form()] = None,
    occupation: Annotated[str | None, Form()] = None,
    phone: Annotated[str | None, Form()] = None,
) -> UserUpdate:
    return _validate_form(
        UserUpdate,
        name=name,
        gender=gender,
        birthday=birthday,
        occupation=occupation,
        phone=phone,
    )


UserCreateFormDep = Annotated[UserCreate, Depends(get_user_create_form)]
UserUpdateFormDep = Annotated[UserUpdate, Depends(get_user_update_form)]
