# roleguard/schemas/role.py
"""
Pydantic schemas for role and user-role endpoints.
"""
from typing import Optional

from pydantic import BaseModel, Field


class RoleOut(BaseModel):
    id: str
    name: str
    normalizedName: str
    description: Optional[str] = None
    isSystem: bool


class RoleCreateIn(BaseModel):
    """
    Request model for creating a custom role.
    Name length (3-50) is validated by the identity store so the error
    carries the ROLE_NAME_INVALID code.
    """
    name: str
    description: Optional[str] = Field(default=None, max_length=256)


class AssignRoleIn(BaseModel):
    userId: str  # Target user UUID
    roleId: str  # Role UUID to assign
