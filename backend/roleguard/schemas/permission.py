# roleguard/schemas/permission.py
"""
Pydantic schemas for the permission catalogue and permission grants.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class PermissionOut(BaseModel):
    id: str
    name: str  # "<resource>:<action>"
    normalizedName: str
    description: Optional[str] = None


class RolePermissionsOut(BaseModel):
    roleId: str
    roleName: str
    normalizedRoleName: str
    description: Optional[str] = None
    permissions: List[PermissionOut] = []


class UserPermissionsOut(BaseModel):
    userId: str
    username: str
    email: Optional[str] = None
    permissions: List[PermissionOut] = []


class EffectivePermissionsOut(BaseModel):
    """
    Direct grants, per-role grants and their union for a single user.
    """
    userId: str
    username: str
    email: Optional[str] = None
    directPermissions: List[PermissionOut] = []
    rolePermissions: List[RolePermissionsOut] = []
    effectivePermissions: List[PermissionOut] = []


class ModifyPermissionsIn(BaseModel):
    """
    Request model for granting or revoking permissions.
    Names are matched case-insensitively; blanks and duplicates are ignored.
    """
    permissionNames: List[str] = Field(min_length=1)
