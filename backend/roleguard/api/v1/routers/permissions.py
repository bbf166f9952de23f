# roleguard/api/v1/routers/permissions.py
import logging
from typing import Iterable

from fastapi import APIRouter, Depends

from roleguard.api.v1.deps import require_capability
from roleguard.models.permission import Permission
from roleguard.models.role import Role
from roleguard.models.user import User
from roleguard.schemas.permission import (
    EffectivePermissionsOut,
    ModifyPermissionsIn,
    PermissionOut,
    RolePermissionsOut,
    UserPermissionsOut,
)
from roleguard.services import permission_store

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/admin", tags=["admin-permissions"])


# ==============================================================================
# Permission catalogue and grants
#     /api/v1/admin/permissions
#     /api/v1/admin/roles/{role_id}/permissions
#     /api/v1/admin/users/{user_id}/permissions
# ==============================================================================
def _permission_out(p: Permission) -> PermissionOut:
    return PermissionOut(id=str(p.id), name=p.name, normalizedName=p.normalized_name, description=p.description)


def _role_permissions_out(role: Role, permissions: Iterable[Permission]) -> RolePermissionsOut:
    return RolePermissionsOut(
        roleId=str(role.id),
        roleName=role.name,
        normalizedRoleName=role.normalized_name,
        description=role.description,
        permissions=[_permission_out(p) for p in permissions],
    )


def _user_permissions_out(user: User, permissions: Iterable[Permission]) -> UserPermissionsOut:
    return UserPermissionsOut(
        userId=str(user.id),
        username=user.username,
        email=user.email,
        permissions=[_permission_out(p) for p in permissions],
    )


@router.get("/permissions")
async def list_permissions(actor: User = Depends(require_capability("permissions.view"))):
    """
    List the permission catalogue, ordered by name.
    """
    permissions = await permission_store.list_permissions()
    return {"success": True, "data": [_permission_out(p).model_dump() for p in permissions]}


# ---------- Role permissions ----------
@router.get("/roles/{role_id}/permissions")
async def get_role_permissions(role_id: str, actor: User = Depends(require_capability("role_permissions.view"))):
    """
    Raises:
        NotFound (404): ROLE_NOT_FOUND
    """
    role, permissions = await permission_store.get_role_permissions(role_id)
    return {"success": True, "data": _role_permissions_out(role, permissions).model_dump()}


@router.post("/roles/{role_id}/permissions")
async def assign_role_permissions(
    role_id: str,
    body: ModifyPermissionsIn,
    actor: User = Depends(require_capability("role_permissions.assign")),
):
    """
    Grant permissions to a role (SuperAdmin only).

    Raises:
        NotFound (404): ROLE_NOT_FOUND
        ValidationError (400): UNKNOWN_PERMISSION / PERMISSION_NAMES_REQUIRED
        ConflictError (409): PERMISSIONS_ALREADY_ASSIGNED
    """
    role, permissions = await permission_store.assign_permissions_to_role(role_id, body.permissionNames)
    logger.info("[admin] %s granted permissions to role %s", actor.id, role.name)
    return {
        "success": True,
        "data": _role_permissions_out(role, permissions).model_dump(),
        "message": "Permissions assigned to role successfully",
    }


@router.delete("/roles/{role_id}/permissions")
async def remove_role_permissions(
    role_id: str,
    body: ModifyPermissionsIn,
    actor: User = Depends(require_capability("role_permissions.remove")),
):
    """
    Revoke permissions from a role (SuperAdmin only).

    Raises:
        NotFound (404): ROLE_NOT_FOUND / PERMISSIONS_NOT_ASSIGNED
        ValidationError (400): UNKNOWN_PERMISSION / PERMISSION_NAMES_REQUIRED
    """
    role, permissions = await permission_store.remove_permissions_from_role(role_id, body.permissionNames)
    logger.info("[admin] %s revoked permissions from role %s", actor.id, role.name)
    return {
        "success": True,
        "data": _role_permissions_out(role, permissions).model_dump(),
        "message": "Permissions removed from role successfully",
    }


# ---------- User permissions ----------
@router.get("/users/{user_id}/permissions/direct")
async def get_direct_user_permissions(
    user_id: str,
    actor: User = Depends(require_capability("user_permissions.view")),
):
    """
    Permissions granted to the user directly, excluding role grants.

    Raises:
        NotFound (404): USER_NOT_FOUND
    """
    user, permissions = await permission_store.get_user_permissions(user_id)
    return {"success": True, "data": _user_permissions_out(user, permissions).model_dump()}


@router.get("/users/{user_id}/permissions/effective")
async def get_effective_user_permissions(
    user_id: str,
    actor: User = Depends(require_capability("user_permissions.view")),
):
    """
    Direct grants, grants per held role, and their union.

    Raises:
        NotFound (404): USER_NOT_FOUND
    """
    result = await permission_store.get_effective_permissions(user_id)
    out = EffectivePermissionsOut(
        userId=str(result.user.id),
        username=result.user.username,
        email=result.user.email,
        directPermissions=[_permission_out(p) for p in result.direct],
        rolePermissions=[_role_permissions_out(role, perms) for role, perms in result.by_role],
        effectivePermissions=[_permission_out(p) for p in result.effective],
    )
    return {"success": True, "data": out.model_dump()}


@router.post("/users/{user_id}/permissions")
async def assign_user_permissions(
    user_id: str,
    body: ModifyPermissionsIn,
    actor: User = Depends(require_capability("user_permissions.assign")),
):
    """
    Grant permissions directly to a user (SuperAdmin only).

    Raises:
        NotFound (404): USER_NOT_FOUND
        ValidationError (400): UNKNOWN_PERMISSION / PERMISSION_NAMES_REQUIRED
        ConflictError (409): PERMISSIONS_ALREADY_ASSIGNED
    """
    user, permissions = await permission_store.assign_permissions_to_user(user_id, body.permissionNames)
    logger.info("[admin] %s granted permissions to user %s", actor.id, user.id)
    return {
        "success": True,
        "data": _user_permissions_out(user, permissions).model_dump(),
        "message": "Permissions assigned to user successfully",
    }


@router.delete("/users/{user_id}/permissions")
async def remove_user_permissions(
    user_id: str,
    body: ModifyPermissionsIn,
    actor: User = Depends(require_capability("user_permissions.remove")),
):
    """
    Revoke direct permissions from a user (SuperAdmin only).

    Raises:
        NotFound (404): USER_NOT_FOUND / PERMISSIONS_NOT_ASSIGNED
        ValidationError (400): UNKNOWN_PERMISSION / PERMISSION_NAMES_REQUIRED
    """
    user, permissions = await permission_store.remove_permissions_from_user(user_id, body.permissionNames)
    logger.info("[admin] %s revoked permissions from user %s", actor.id, user.id)
    return {
        "success": True,
        "data": _user_permissions_out(user, permissions).model_dump(),
        "message": "Permissions removed from user successfully",
    }
