# app/routes/user.py

"""
User Routes.

CRUD endpoints for the user directory.

Summary
-------
Endpoints include:
  - List users (paginated, searchable, cached)
  - Get user by id
  - Create user (multipart, optional image)
  - Update user (multipart, partial, optional image)
  - Delete user

Caching
-------
The list endpoint is cached per path and query string in the ``users``
namespace; every successful mutation clears the whole namespace.

Rate Limiting
-------------
Reads use ``RATE_LIMIT_DEFAULT`` and mutations the stricter
``RATE_LIMIT_STRICT``, both per client IP.
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import ORJSONResponse
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED

from app.configs import file_logger, settings
from app.decorators.caching import cache_response, invalidate_cache
from app.dependencies import (
    ImageServiceDep,
    UserCreateFormDep,
    UserIdDep,
    UserQueryListDep,
    UserRepoDep,
    UserUpdateFormDep,
)
from app.errors.database import DatabaseError, RecordNotFoundError
from app.managers.cache_manager import cache_manager
from app.managers.rate_limiter import limiter
from app.schemas import (
    DeleteResponse,
    UserListResponse,
    UserMutationResponse,
    UserResponse,
)
from app.services import UserImageService
from app.utils.helpers import total_pages

router = APIRouter(prefix="/users", tags=["👤 Users"])

logger = file_logger(getLogger(__name__))

CACHE_NAMESPACE = "users"

ImageFile = Annotated[UploadFile | None, File(description="Optional avatar (JPEG, PNG, GIF or WebP, max 5MB)")]

_USER_EXAMPLE = {
    "id": "123e4567-e89b-12d3-a456-426614174000",
    "name": "Ada Lovelace",
    "gender": "Female",
    "birthday": "1995-12-10",
    "occupation": "Engineer",
    "phone": "+1 555 123 4567",
    "image": "",
    "createdAt": "2025-01-01T00:00:00Z",
    "updatedAt": "2025-01-01T00:00:00Z",
}
_NOT_FOUND = {
    "description": "User not found",
    "content": {"application/json": {"example": {"success": False, "message": "User not found"}}},
}
_CONFLICT = {
    "description": "Duplicate phone number",
    "content": {
        "application/json": {
            "example": {
                "success": False,
                "message": "Phone number already exists",
                "error": "A user with this phone number already exists",
            },
        },
    },
}
_VALIDATION = {
    "description": "Validation failed",
    "content": {
        "application/json": {
            "example": {
                "success": False,
                "message": "Validation failed",
                "errors": [{"field": "name", "message": "Name can only contain letters and spaces"}],
            },
        },
    },
}
_RATE_LIMITED = {
    "description": "Rate limit exceeded",
    "content": {
        "application/json": {
            "example": {
                "success": False,
                "message": "Too many requests from this IP, please try again later.",
            },
        },
    },
}


def has_upload(image: UploadFile | None) -> bool:
    """Browsers send an empty, nameless part when no file was picked."""
    return image is not None and bool(image.filename)


async def discard_upload(images: UserImageService, url: str | None) -> None:
    """Remove an image that ended up unused, without masking the original error."""
    if url:
        await images.delete(url)


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=UserListResponse,
    summary="List users",
    description="Paginated, newest-first listing with optional search.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "users": [_USER_EXAMPLE],
                        "totalPages": 1,
                        "currentPage": 1,
                        "total": 1,
                        "timestamp": "2025-01-01T00:00:00Z",
                    },
                },
            },
        },
        400: _VALIDATION,
        429: _RATE_LIMITED,
    },
    operation_id="users_list",
)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
@cache_response(cache_manager, ttl=settings.CACHE_TTL_USERS, namespace=CACHE_NAMESPACE)
async def list_users(
    request: Request,
    response: Response,
    query: UserQueryListDep,
    repo: UserRepoDep,
) -> UserListResponse:
    """
    List one page of users.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for middleware/decorators.
    query : UserListQuery
        ``page``, ``limit`` and ``search`` query parameters.
    repo : UserRepository
        Repository dependency.

    Returns
    -------
    UserListResponse
        Users on the page plus ``totalPages``, ``currentPage`` and ``total``.

    Examples
    --------
    Request
        GET /api/users?page=2&limit=6&search=eng
    Response
        200 OK
        {"success": true, "users": [...], "totalPages": 3, "currentPage": 2, "total": 14, ...}
    """
    users, total = await repo.list_paginated(query.page, query.limit, query.search)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total_pages=total_pages(total, query.limit),
        current_page=query.page,
        total=total,
    )


@router.get(
    "/{user_id}",
    response_class=ORJSONResponse,
    response_model=UserResponse,
    summary="Get a user",
    responses={200: {"content": {"application/json": {"example": _USER_EXAMPLE}}}, 404: _NOT_FOUND, 429: _RATE_LIMITED},
    operation_id="users_get",
)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
async def get_user(
    request: Request,
    response: Response,
    user_id: UserIdDep,
    repo: UserRepoDep,
) -> UserResponse:
    """
    Get a single user by id.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for middleware/decorators.
    user_id : UUID
        User id; malformed ids are reported as not found.
    repo : UserRepository
        Repository dependency.

    Returns
    -------
    UserResponse
        The user.

    Raises
    ------
    RecordNotFoundError
        If no user has this id.
    """
    user = await repo.get_by_id(user_id)
    if not user:
        raise RecordNotFoundError
    return UserResponse.model_validate(user)


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=UserMutationResponse,
    status_code=HTTP_201_CREATED,
    summary="Create a user",
    description="Create a user from a multipart form, optionally with an avatar image.",
    responses={
        201: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "User created successfully",
                        "user": _USER_EXAMPLE,
                        "timestamp": "2025-01-01T00:00:00Z",
                    },
                },
            },
        },
        400: _VALIDATION,
        409: _CONFLICT,
        429: _RATE_LIMITED,
    },
    operation_id="users_create",
)
@limiter.limit(settings.RATE_LIMIT_STRICT)
@invalidate_cache(cache_manager, namespace=CACHE_NAMESPACE)
async def create_user(
    request: Request,
    response: Response,
    form: UserCreateFormDep,
    repo: UserRepoDep,
    images: ImageServiceDep,
    image: ImageFile = None,
) -> UserMutationResponse:
    """
    Create a new user.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for middleware/decorators.
    form : UserCreate
        Validated and sanitized form fields.
    repo : UserRepository
        Repository dependency.
    images : UserImageService
        Image upload service.
    image : UploadFile | None
        Optional avatar file.

    Returns
    -------
    UserMutationResponse
        The created user.

    Raises
    ------
    DuplicateEntryError
        If the phone number is already registered.
    UploadError
        If the image is rejected or cannot be stored.
    """
    image_url = await images.upload(image) if has_upload(image) else None
    try:
        user = await repo.create(form, image=image_url or "")
    except DatabaseError:
        await discard_upload(images, image_url)
        raise

    logger.info(f"User created: {user.id}")
    return UserMutationResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
    )


@router.put(
    "/{user_id}",
    response_class=ORJSONResponse,
    response_model=UserMutationResponse,
    summary="Update a user",
    description="Partial update: only submitted fields change; the image is replaced only when a new file is sent.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "User updated successfully",
                        "user": _USER_EXAMPLE,
                        "timestamp": "2025-01-01T00:00:00Z",
                    },
                },
            },
        },
        400: _VALIDATION,
        404: _NOT_FOUND,
        409: _CONFLICT,
        429: _RATE_LIMITED,
    },
    operation_id="users_update",
)
@limiter.limit(settings.RATE_LIMIT_STRICT)
@invalidate_cache(cache_manager, namespace=CACHE_NAMESPACE)
async def update_user(
    request: Request,
    response: Response,
    user_id: UserIdDep,
    form: UserUpdateFormDep,
    repo: UserRepoDep,
    images: ImageServiceDep,
    image: ImageFile = None,
) -> UserMutationResponse:
    """
    Update an existing user.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for middleware/decorators.
    user_id : UUID
        User id.
    form : UserUpdate
        Submitted fields only.
    repo : UserRepository
        Repository dependency.
    images : UserImageService
        Image upload service.
    image : UploadFile | None
        Replacement avatar, if any.

    Returns
    -------
    UserMutationResponse
        The updated user.

    Raises
    ------
    RecordNotFoundError
        If no user has this id.
    DuplicateEntryError
        If the new phone number belongs to another user.
    """
    existing = await repo.get_by_id(user_id)
    if not existing:
        raise RecordNotFoundError
    previous_image = existing.image

    image_url = await images.upload(image) if has_upload(image) else None
    try:
        user = await repo.update(user_id, form, image=image_url)
    except DatabaseError:
        await discard_upload(images, image_url)
        raise
    if not user:
        await discard_upload(images, image_url)
        raise RecordNotFoundError

    if image_url and previous_image:
        await images.delete(previous_image)

    logger.info(f"User updated: {user.id}")
    return UserMutationResponse(
        message="User updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete(
    "/{user_id}",
    response_class=ORJSONResponse,
    response_model=DeleteResponse,
    summary="Delete a user",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "User deleted successfully",
                        "timestamp": "2025-01-01T00:00:00Z",
                    },
                },
            },
        },
        404: _NOT_FOUND,
        429: _RATE_LIMITED,
    },
    operation_id="users_delete",
)
@limiter.limit(settings.RATE_LIMIT_STRICT)
@invalidate_cache(cache_manager, namespace=CACHE_NAMESPACE)
async def delete_user(
    request: Request,
    response: Response,
    user_id: UserIdDep,
    repo: UserRepoDep,
    images: ImageServiceDep,
) -> DeleteResponse:
    """
    Delete a user and, best effort, their stored image.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for middleware/decorators.
    user_id : UUID
        User id.
    repo : UserRepository
        Repository dependency.
    images : UserImageService
        Image service, used to remove the avatar.

    Returns
    -------
    DeleteResponse
        Confirmation message.

    Raises
    ------
    RecordNotFoundError
        If no user has this id.
    """
    user = await repo.get_by_id(user_id)
    if not user:
        logger.warning(f"User not found for deletion: {user_id}")
        raise RecordNotFoundError

    image_url = user.image
    await repo.delete(user_id)
    if image_url:
        await images.delete(image_url)

    logger.info(f"User deleted: {user_id}")
    return DeleteResponse(message="User deleted successfully")
