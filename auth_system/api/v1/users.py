"""Admin user management endpoints (RBAC-gated)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth_system.api.dependencies import admin_only, admin_or_moderator, own_resource_or_staff
from auth_system.core.database import get_db
from auth_system.core.roles import Role
from auth_system.models import User
from auth_system.schemas.auth import UserPublic
from auth_system.schemas.common import Envelope
from auth_system.schemas.user import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Pagination,
    UpdateRoleRequest,
    UpdateStatusRequest,
    UserListPayload,
)
from auth_system.services import users as users_service

router = APIRouter()

Db = Annotated[Session, Depends(get_db)]


@router.get("", response_model=Envelope[UserListPayload])
def list_users(
    _staff: Annotated[User, Depends(admin_or_moderator)],
    db: Db,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    role: Role | None = None,
    is_active: Annotated[bool | None, Query(alias="isActive")] = None,
) -> Envelope[UserListPayload]:
    """List non-deleted users, newest first, optionally filtered by role and isActive."""
    users, total, pages = users_service.list_users(db, page, limit, role=role, is_active=is_active)
    return Envelope(
        message="Users retrieved",
        data=UserListPayload(
            users=[UserPublic.model_validate(u) for u in users],
            pagination=Pagination(page=page, limit=limit, total=total, pages=pages),
        ),
    )


@router.get("/{user_id}", response_model=Envelope[UserPublic])
def get_user(
    user_id: str,
    _caller: Annotated[User, Depends(own_resource_or_staff)],
    db: Db,
) -> Envelope[UserPublic]:
    """Fetch one user: yourself, or anyone if you are a moderator or admin."""
    user = users_service.get_user(db, user_id)
    return Envelope(message="User retrieved", data=UserPublic.model_validate(user))


@router.patch("/{user_id}/role", response_model=Envelope[UserPublic])
def update_role(
    user_id: str,
    body: UpdateRoleRequest,
    admin: Annotated[User, Depends(admin_only)],
    db: Db,
) -> Envelope[UserPublic]:
    user = users_service.update_role(db, admin, user_id, body.role)
    return Envelope(message="User role updated", data=UserPublic.model_validate(user))


@router.patch("/{user_id}/status", response_model=Envelope[UserPublic])
def update_status(
    user_id: str,
    body: UpdateStatusRequest,
    admin: Annotated[User, Depends(admin_only)],
    db: Db,
) -> Envelope[UserPublic]:
    """Activate or deactivate a user. Deactivation revokes the user's refresh tokens."""
    user = users_service.update_status(db, admin, user_id, body.is_active)
    message = "User activated" if user.is_active else "User deactivated"
    return Envelope(message=message, data=UserPublic.model_validate(user))


@router.delete("/{user_id}", response_model=Envelope[None])
def delete_user(
    user_id: str,
    admin: Annotated[User, Depends(admin_only)],
    db: Db,
    hard: bool = False,
) -> Envelope[None]:
    """Soft-delete a user (default) or remove the record entirely with ?hard=true."""
    users_service.delete_user(db, admin, user_id, hard=hard)
    return Envelope(message="User deleted successfully")
