"""Role hierarchy used for every authorization comparison."""

from enum import Enum


class Role(str, Enum):
    """User roles, declared lowest to highest: user < moderator < admin."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def level(self) -> int:
        """Position in the hierarchy (user=1, moderator=2, admin=3)."""
        return _ORDER.index(self) + 1

    def at_least(self, minimum: "Role") -> bool:
        """True if this role is equal to or above ``minimum``."""
        return self.level >= minimum.level


_ORDER: tuple[Role, ...] = tuple(Role)
