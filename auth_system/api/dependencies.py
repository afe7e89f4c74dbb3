"""
Shared API dependencies.

Bearer authentication (required and optional) and role gates. Every role
comparison goes through the ordered Role enum.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from auth_system.core.config import get_settings
from auth_system.core.database import get_db
from auth_system.core.errors import ForbiddenError, UnauthorizedError
from auth_system.core.roles import Role
from auth_system.models import User
from auth_system.services.auth import AuthService
from auth_system.services.email import EmailService

# auto_error=False: a missing or non-Bearer Authorization header yields None.
security = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_email_service() -> EmailService:
    return EmailService(get_settings())


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[EmailService, Depends(get_email_service)],
) -> AuthService:
    return AuthService(db, get_settings(), email)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Dependency: require a valid Bearer access token and return its user. Raises 401 otherwise."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers=BEARER_CHALLENGE,
        )
    try:
        return service.authenticate_access_token(credentials.credentials)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers=BEARER_CHALLENGE,
        ) from e


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> User | None:
    """Dependency: like get_current_user, but any failure means an anonymous request."""
    if credentials is None:
        return None
    try:
        return service.authenticate_access_token(credentials.credentials)
    except UnauthorizedError:
        return None


def require_roles(*roles: Role) -> Callable[..., User]:
    """Dependency factory: allow only the listed roles (403 otherwise)."""
    allowed = frozenset(roles)

    def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role_enum not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return dependency


def require_minimum_role(minimum: Role) -> Callable[..., User]:
    """Dependency factory: allow ``minimum`` and every role above it."""

    def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if not current_user.role_enum.at_least(minimum):
            raise ForbiddenError(f"Access denied. Minimum role required: {minimum.value}")
        return current_user

    return dependency


def own_resource_or_roles(*roles: Role) -> Callable[..., User]:
    """
    Dependency factory for /users/{user_id} routes: the subject may act on its
    own record, anyone else needs one of ``roles``.
    """
    allowed = frozenset(roles)

    def dependency(
        user_id: str,
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.id == user_id or current_user.role_enum in allowed:
            return current_user
        raise ForbiddenError("Access denied. You can only access your own resources.")

    return dependency


admin_only = require_roles(Role.ADMIN)
admin_or_moderator = require_roles(Role.ADMIN, Role.MODERATOR)
own_resource_or_staff = own_resource_or_roles(Role.ADMIN, Role.MODERATOR)
