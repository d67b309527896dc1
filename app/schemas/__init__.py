from app.schemas.health import HealthCheckResponse, ServicesStatus
from app.schemas.user import (
    DeleteResponse,
    Gender,
    Occupation,
    UserCreate,
    UserListResponse,
    UserMutationResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "DeleteResponse",
    "Gender",
    "HealthCheckResponse",
    "Occupation",
    "ServicesStatus",
    "UserCreate",
    "UserListResponse",
    "UserMutationResponse",
    "UserResponse",
    "UserUpdate",
]
