"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator, model_validator

from auth_system.core.roles import Role
from auth_system.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from auth_system.schemas.common import ApiModel


def check_password_strength(value: str) -> str:
    """Passwords need at least one letter and one digit (length is checked by Field)."""
    if not any(c.isalpha() for c in value) or not any(c.isdigit() for c in value):
        raise ValueError("Password must contain at least one letter and one number")
    return value


def normalize_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("Name must not be blank")
    return name


def normalize_email(value: str) -> str:
    return value.strip().lower()


class RegisterRequest(ApiModel):
    """Self-service registration. Only the default 'user' role may be requested."""

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.USER

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v != Role.USER:
            raise ValueError("Elevated roles are assigned by an administrator")
        return v


class LoginRequest(ApiModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class RefreshTokenRequest(ApiModel):
    """Body for refresh-token and logout: {"refreshToken": "..."}."""

    refresh_token: str = Field(..., min_length=1, max_length=1024)


class UpdateProfileRequest(ApiModel):
    name: str | None = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: EmailStr | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return None if v is None else normalize_email(v)

    @model_validator(mode="after")
    def require_one_field(self) -> "UpdateProfileRequest":
        if self.name is None and self.email is None:
            raise ValueError("Provide at least one of name or email")
        return self


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password_strength(v)


class ForgotPasswordRequest(ApiModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(ApiModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class TokenPair(ApiModel):
    """Access + refresh token pair. Send the access token as: Bearer <accessToken>."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token (single use)")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class UserPublic(ApiModel):
    """User as returned by the API (never includes the password hash)."""

    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    email_verified: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AuthPayload(ApiModel):
    """Register/login payload; tokens is null when email verification is required first."""

    user: UserPublic
    tokens: TokenPair | None = None


class TokensPayload(ApiModel):
    tokens: TokenPair


class SessionStatus(ApiModel):
    """Whether the request carried a usable access token, and for whom."""

    authenticated: bool
    user: UserPublic | None = None
