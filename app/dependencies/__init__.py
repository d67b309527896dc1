# app/dependencies/__init__.py

from app.dependencies.dependencies import (
    ImageServiceDep,
    UserCreateFormDep,
    UserIdDep,
    UserListQuery,
    UserQueryListDep,
    UserRepoDep,
    UserUpdateFormDep,
    get_image_service,
    get_user_repository,
)

__all__ = [
    "ImageServiceDep",
    "UserCreateFormDep",
    "UserIdDep",
    "UserListQuery",
    "UserQueryListDep",
    "UserRepoDep",
    "UserUpdateFormDep",
    "get_image_service",
    "get_user_repository",
]
