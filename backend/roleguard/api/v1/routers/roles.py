# roleguard/api/v1/routers/roles.py
from fastapi import APIRouter, Depends, status

from roleguard.api.v1.deps import require_capability
from roleguard.models.role import Role
from roleguard.models.user import User
from roleguard.schemas.role import RoleCreateIn, RoleOut
from roleguard.services import identity_store

router = APIRouter(prefix="/admin/roles", tags=["admin-roles"])


def role_to_dict(r: Role) -> dict:
    return RoleOut(
        id=str(r.id),
        name=r.name,
        normalizedName=r.normalized_name,
        description=r.description,
        isSystem=r.is_system,
    ).model_dump()


@router.get("")
async def list_roles(actor: User = Depends(require_capability("roles.view"))):
    """
    List all roles, system roles first in rank order, then custom roles.
    """
    roles = await identity_store.list_roles()
    return {"success": True, "data": [role_to_dict(r) for r in roles]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_role(body: RoleCreateIn, actor: User = Depends(require_capability("roles.create"))):
    """
    Create a custom role (SuperAdmin, Administrator).

    Raises:
        ValidationError (400): ROLE_NAME_INVALID when the name is not 3-50 characters
        ConflictError (409): ROLE_EXISTS when the name is taken (case-insensitive)
    """
    role = await identity_store.create_role(body.name, body.description)
    return {"success": True, "data": role_to_dict(role)}
