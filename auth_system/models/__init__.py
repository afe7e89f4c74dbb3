"""SQLAlchemy ORM models."""

from auth_system.models.base import Base
from auth_system.models.refresh_token import RefreshToken
from auth_system.models.user import User

__all__ = ["Base", "RefreshToken", "User"]
