"""Pydantic request/response schemas."""

from auth_system.schemas.auth import (
    AuthPayload,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionStatus,
    TokenPair,
    TokensPayload,
    UpdateProfileRequest,
    UserPublic,
)
from auth_system.schemas.common import Envelope, ErrorDetail, ErrorResponse
from auth_system.schemas.health import HealthResponse
from auth_system.schemas.user import (
    Pagination,
    UpdateRoleRequest,
    UpdateStatusRequest,
    UserListPayload,
)

__all__ = [
    "AuthPayload",
    "ChangePasswordRequest",
    "Envelope",
    "ErrorDetail",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "Pagination",
    "RefreshTokenRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionStatus",
    "TokenPair",
    "TokensPayload",
    "UpdateProfileRequest",
    "UpdateRoleRequest",
    "UpdateStatusRequest",
    "UserListPayload",
    "UserPublic",
]
