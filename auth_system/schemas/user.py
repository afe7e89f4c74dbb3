"""Request/response schemas for admin user management."""

from pydantic import Field, StrictBool

from auth_system.core.roles import Role
from auth_system.schemas.auth import UserPublic
from auth_system.schemas.common import ApiModel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class UpdateRoleRequest(ApiModel):
    role: Role = Field(..., description="New role: user, moderator or admin")


class UpdateStatusRequest(ApiModel):
    """{"isActive": false} deactivates the account and revokes its refresh tokens."""

    is_active: StrictBool


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class UserListPayload(ApiModel):
    """Response for GET /users (admin or moderator)."""

    users: list[UserPublic]
    pagination: Pagination
