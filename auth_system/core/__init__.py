"""Core app configuration, database and security primitives."""

from auth_system.core.config import get_settings, settings
from auth_system.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
