"""ORM model for issued refresh tokens (the per-user session registry)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from auth_system.models.base import Base, utcnow


class RefreshToken(Base):
    """
    One currently valid refresh token belonging to a user.

    The token column is unique: a token string lives in at most one user's
    registry. Rows are removed on logout, rotation and revocation, and
    expired rows are pruned by ``python -m auth_system.prune_sessions``.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(String(1024), nullable=False, unique=True)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")
