"""Admin user management: listing, role and status changes, deletion."""

import logging
import math

from sqlalchemy.orm import Session

from auth_system.core.errors import ConflictError, NotFoundError
from auth_system.core.roles import Role
from auth_system.models import User
from auth_system.services.sessions import RefreshTokenRegistry

logger = logging.getLogger(__name__)


def list_users(
    session: Session,
    page: int,
    limit: int,
    role: Role | None = None,
    is_active: bool | None = None,
) -> tuple[list[User], int, int]:
    """Return (users on this page, total matching, page count); deleted users are excluded."""
    query = session.query(User).filter(User.is_deleted.is_(False))
    if role is not None:
        query = query.filter(User.role == role.value)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pages = math.ceil(total / limit) if total else 0
    return users, total, pages


def get_user(session: Session, user_id: str) -> User:
    """Fetch a non-deleted user or raise NotFoundError."""
    user = session.get(User, user_id)
    if user is None or user.is_deleted:
        raise NotFoundError("User not found")
    return user


def update_role(session: Session, actor: User, user_id: str, role: Role) -> User:
    """Change another user's role. Admins cannot change their own role."""
    if actor.id == user_id:
        raise ConflictError("You cannot change your own role")
    user = get_user(session, user_id)
    previous = user.role
    user.role = role.value
    session.commit()
    session.refresh(user)
    logger.info(
        "Role changed",
        extra={"actor_id": actor.id, "user_id": user.id, "from_role": previous, "to_role": role.value},
    )
    return user


def update_status(session: Session, actor: User, user_id: str, is_active: bool) -> User:
    """Activate or deactivate another user; deactivation revokes all their refresh tokens."""
    if actor.id == user_id:
        raise ConflictError("You cannot change your own account status")
    user = get_user(session, user_id)
    user.is_active = is_active
    session.commit()
    if not is_active:
        RefreshTokenRegistry(session, user.id).remove_all()
    session.refresh(user)
    logger.info(
        "Account status changed",
        extra={"actor_id": actor.id, "user_id": user.id, "is_active": is_active},
    )
    return user


def delete_user(session: Session, actor: User, user_id: str, hard: bool = False) -> None:
    """
    Delete another user.

    Soft delete (default) keeps the row with is_deleted set and revokes its
    sessions; hard delete removes the row and, by cascade, its refresh tokens,
    and also purges accounts that were soft-deleted earlier.
    """
    if actor.id == user_id:
        raise ConflictError("You cannot delete your own account from the admin API")
    if hard:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        session.delete(user)
        session.commit()
    else:
        user = get_user(session, user_id)
        user.is_deleted = True
        user.is_active = False
        session.commit()
        RefreshTokenRegistry(session, user.id).remove_all()
    logger.info(
        "User deleted",
        extra={"actor_id": actor.id, "user_id": user_id, "hard": hard},
    )
