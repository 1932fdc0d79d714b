"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthPayload,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    UserPublic,
)
from app.schemas.common import DataResponse, ErrorResponse
from app.schemas.health import DatabaseHealthResponse, HealthResponse, VersionResponse
from app.schemas.users import UserCreate, UserUpdate, UserUpdated

__all__ = [
    "AuthPayload",
    "CurrentUser",
    "DataResponse",
    "DatabaseHealthResponse",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserCreate",
    "UserPublic",
    "UserUpdate",
    "UserUpdated",
    "VersionResponse",
]
