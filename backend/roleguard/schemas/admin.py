# roleguard/schemas/admin.py
"""
Pydantic schemas for admin user management endpoints.
Defines request/response models for user listing, creation and password reset.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


# ========== Common return model ==========
class AdminUserBase(BaseModel):
    """
    Base user model for admin endpoints.
    Represents user information returned in admin API responses.
    """
    id: str  # User unique identifier
    username: str  # User login name
    email: Optional[str] = None  # User email address (optional)
    roles: List[str] = []  # Role names held by the user, highest rank first
    createdAt: Optional[str] = Field(default=None, alias="created_at")  # ISO timestamp

    class Config:
        """Pydantic configuration: allow both field name and alias for population."""
        populate_by_name = True


class AdminUserListOut(BaseModel):
    """
    Response model for paginated user list endpoint.
    Returns a list of users with pagination metadata.
    """
    items: List[AdminUserBase]
    offset: int
    limit: int
    total: int


class AdminUserDetailOut(BaseModel):
    """
    Response model for single user detail endpoint.
    """
    user: AdminUserBase


# ========== Input model ==========
class AdminUserCreateIn(BaseModel):
    """
    Request model for admin-created accounts.
    New accounts receive the User role; further roles go through role assignment.
    """
    username: str = Field(min_length=1, max_length=256)
    email: Optional[str] = Field(default=None, max_length=256)
    password: str = Field(min_length=6)


class AdminResetPasswordIn(BaseModel):
    """
    Request model for admin-initiated password reset.
    """
    newPassword: str = Field(min_length=6)  # New password (minimum 6 characters)
