"""ORM model for application users (auth and RBAC)."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from auth_system.core.roles import Role
from auth_system.models.base import Base, as_utc, utcnow


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'user', 'moderator' or 'admin'. Emails are stored lower-cased so the
    unique index is effectively case-insensitive. The one-time verification and
    reset columns hold SHA-256 digests, never the emailed token itself.
    """

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)

    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    email_verified = Column(Boolean, nullable=False, default=False)
    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expires = Column(DateTime(timezone=True), nullable=True)

    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="RefreshToken.issued_at",
    )

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    @property
    def can_authenticate(self) -> bool:
        """Deactivated and deleted accounts are rejected whatever the credentials."""
        return bool(self.is_active) and not self.is_deleted

    def changed_password_after(self, token_issued_at: int | float) -> bool:
        """True if the password changed after a token with this ``iat`` was issued."""
        changed_at = as_utc(self.password_changed_at)
        if changed_at is None:
            return False
        return changed_at.timestamp() > float(token_issued_at)
