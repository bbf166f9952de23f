# roleguard/api/v1/routers/user_roles.py
from fastapi import APIRouter, Depends

from roleguard.api.v1.deps import require_capability
from roleguard.api.v1.routers.roles import role_to_dict
from roleguard.models.role import Role
from roleguard.models.user import User
from roleguard.schemas.role import AssignRoleIn
from roleguard.services import identity_store

router = APIRouter(prefix="/admin/user-roles", tags=["admin-user-roles"])


@router.get("/{user_id}")
async def get_user_roles(user_id: str, actor: User = Depends(require_capability("user_roles.view"))):
    """
    List the roles currently held by a user.

    Raises:
        NotFound (404): USER_NOT_FOUND
    """
    user = await identity_store.get_user(user_id)
    names = await identity_store.get_role_names(user)
    roles = {r.name: r for r in await Role.filter(name__in=names)}
    return {"success": True, "data": [role_to_dict(roles[n]) for n in names]}


@router.post("/assign")
async def assign_role(body: AssignRoleIn, actor: User = Depends(require_capability("user_roles.assign"))):
    """
    Assign a role to a user.

    SuperAdmin may assign any role; Administrator may assign Manager, User
    and Guest only.

    Raises:
        NotFound (404): USER_NOT_FOUND / ROLE_NOT_FOUND
        PolicyDenied (400): ROLE_ASSIGNMENT_FORBIDDEN
        ConflictError (409): ROLE_ALREADY_ASSIGNED
    """
    await identity_store.assign_role(actor, body.userId, body.roleId)
    return {"success": True, "data": {"ok": True}, "message": "Role assigned successfully"}


@router.delete("/{user_id}/roles/{role_id}")
async def remove_role(
    user_id: str,
    role_id: str,
    actor: User = Depends(require_capability("user_roles.remove")),
):
    """
    Remove a role from a user.

    Raises:
        NotFound (404): USER_NOT_FOUND / ROLE_NOT_FOUND / ROLE_NOT_ASSIGNED
        PolicyDenied (400): LAST_SUPERADMIN / SELF_DEMOTION
        PolicyDenied (403): INSUFFICIENT_PRIVILEGE
        InvariantViolation (409): Commit-time SuperAdmin check failed; retryable
    """
    await identity_store.remove_role(actor, user_id, role_id)
    return {"success": True, "data": {"ok": True}, "message": "Role removed successfully"}
