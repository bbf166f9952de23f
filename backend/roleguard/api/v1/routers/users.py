# roleguard/api/v1/routers/users.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from roleguard.api.v1.deps import require_capability
from roleguard.core.roles import role_rank
from roleguard.models.user import User
from roleguard.schemas.admin import (
    AdminUserListOut,
    AdminUserDetailOut,
    AdminUserCreateIn,
    AdminResetPasswordIn,
)
from roleguard.services import identity_store

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/admin/users", tags=["admin-users"])


# ==============================================================================
# User Management Interface
#     Prefix: /api/v1/admin/users
# ==============================================================================
def _user_to_dict(u: User, roles: list[str]) -> dict:
    """
    Convert User model instance to dictionary format for API responses.

    Args:
        u: User model instance
        roles: Role names held by the user

    Returns:
        dict: Dictionary containing user fields formatted for API response
    """
    return {
        "id": str(u.id),
        "username": u.username,
        "email": u.email,
        "roles": roles,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


def _prefetched_roles(u: User) -> list[str]:
    names = [ur.role.name for ur in u.user_roles]
    return sorted(names, key=lambda n: (-role_rank(n), n))


@router.get("", response_model=AdminUserListOut)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by username/email"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    actor: User = Depends(require_capability("users.view")),
):
    """
    Get paginated list of users (SuperAdmin, Administrator, Manager).

    Results are ordered by creation date (newest first).

    Args:
        q: Optional search query for fuzzy matching username or email
        offset: Number of items to skip (for pagination)
        limit: Maximum number of items to return (1-100)

    Returns:
        AdminUserListOut: Response containing paginated user list
    """
    rows, total = await identity_store.list_users(offset=offset, limit=limit, q=q)
    items = [_user_to_dict(u, _prefetched_roles(u)) for u in rows]
    return {"items": items, "offset": offset, "limit": limit, "total": total}


@router.get("/{user_id}", response_model=AdminUserDetailOut)
async def get_user_detail(
    user_id: str,
    actor: User = Depends(require_capability("users.view")),
):
    """
    Get detailed information about a specific user.

    Raises:
        NotFound (404): If user not found
    """
    u = await identity_store.get_user(user_id)
    return {"user": _user_to_dict(u, await identity_store.get_role_names(u))}


@router.post("", response_model=AdminUserDetailOut)
async def create_user(
    body: AdminUserCreateIn,
    actor: User = Depends(require_capability("users.create")),
):
    """
    Create a user account with the User role.

    Raises:
        ConflictError (409): USERNAME_EXISTS / EMAIL_EXISTS
    """
    u = await identity_store.create_user(body.username, body.email, body.password, assigned_by=actor.id)
    logger.info("[admin] %s created user %s (%s)", actor.id, u.username, u.id)
    return {"user": _user_to_dict(u, await identity_store.get_role_names(u))}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    actor: User = Depends(require_capability("users.delete")),
):
    """
    Delete a user account (SuperAdmin, Administrator).

    Raises:
        NotFound (404): If user not found
        PolicyDenied (400): SELF_DELETION or LAST_SUPERADMIN
        InvariantViolation (409): Commit-time SuperAdmin check failed; retryable
    """
    await identity_store.delete_user(actor, user_id)
    return {"success": True, "data": {"ok": True}}


@router.post("/{user_id}/reset-password")
async def reset_user_password(
    user_id: str,
    body: AdminResetPasswordIn,
    actor: User = Depends(require_capability("users.reset_password")),
):
    """
    Reset a user's password without knowing the current one.

    Raises:
        NotFound (404): If user not found
        PolicyDenied (403): Target outranks a non-SuperAdmin actor
    """
    await identity_store.reset_password(actor, user_id, body.newPassword)
    logger.info("[admin] %s reset password of user %s", actor.id, user_id)
    return {"success": True, "data": {"ok": True}}
