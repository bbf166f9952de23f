"""
Permission Store

Persistence for the permission catalogue and for permission grants, both on
roles and directly on users. A user's effective permissions are the union of
their direct grants and the grants of every role they hold.

Grant and revoke calls take permission names, match them case-insensitively
against the catalogue and apply all of them in one transaction.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Type

from tortoise import models
from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.transactions import in_transaction

from roleguard.core.errors import ConflictError, NotFound, ValidationError
from roleguard.core.permissions import PERMISSION_CATALOG, normalize_permission_name, normalize_permission_names
from roleguard.models.permission import Permission, RolePermission, UserPermission
from roleguard.models.role import Role
from roleguard.models.user import User
from roleguard.services.identity_store import get_role, get_role_names, get_user

logger = logging.getLogger("uvicorn.error")


@dataclass
class EffectivePermissions:
    user: User
    direct: List[Permission] = field(default_factory=list)
    by_role: List[Tuple[Role, List[Permission]]] = field(default_factory=list)
    effective: List[Permission] = field(default_factory=list)


def _sorted(permissions: Iterable[Permission]) -> List[Permission]:
    return sorted(permissions, key=lambda p: p.name.lower())


# ------------------------------------------------------------------------------
# Catalogue
# ------------------------------------------------------------------------------
async def ensure_permission_catalog(conn: Optional[BaseDBAsyncClient] = None) -> int:
    """
    Create any missing catalogue entry. Idempotent.

    Returns:
        Number of permissions created by this call
    """
    created = 0
    for name, description in PERMISSION_CATALOG.items():
        normalized = normalize_permission_name(name)
        qs = Permission.filter(normalized_name=normalized)
        if conn is not None:
            qs = qs.using_db(conn)
        if await qs.exists():
            continue
        await Permission.create(name=name, normalized_name=normalized, description=description, using_db=conn)
        created += 1
    if created:
        logger.info("[permissions] Seeded %d permission(s)", created)
    return created


async def list_permissions() -> List[Permission]:
    return _sorted(await Permission.all())


async def _resolve(names: Iterable[str], conn: BaseDBAsyncClient) -> List[Permission]:
    normalized = normalize_permission_names(names)
    if not normalized:
        raise ValidationError("At least one permission name is required", code="PERMISSION_NAMES_REQUIRED")
    found = {
        p.normalized_name: p
        for p in await Permission.filter(normalized_name__in=normalized).using_db(conn)
    }
    missing = [n for n in normalized if n not in found]
    if missing:
        raise ValidationError(
            f"The following permissions do not exist: {', '.join(missing)}",
            code="UNKNOWN_PERMISSION",
        )
    return [found[n] for n in normalized]


# ------------------------------------------------------------------------------
# Grants
# ------------------------------------------------------------------------------
async def _granted(link_model: Type[models.Model], owner_field: str, owner_id, conn=None) -> List[Permission]:
    qs = link_model.filter(**{f"{owner_field}_id": owner_id}).prefetch_related("permission")
    if conn is not None:
        qs = qs.using_db(conn)
    return _sorted(link.permission for link in await qs)


async def _grant(link_model, owner_field: str, owner, names, conn) -> List[Permission]:
    requested = await _resolve(names, conn)
    held = {p.id for p in await _granted(link_model, owner_field, owner.id, conn)}
    new = [p for p in requested if p.id not in held]
    if not new:
        raise ConflictError(
            "All requested permissions are already assigned",
            code="PERMISSIONS_ALREADY_ASSIGNED",
        )
    for permission in new:
        await link_model.create(**{owner_field: owner, "permission": permission}, using_db=conn)
    return new


async def _revoke(link_model, owner_field: str, owner, names, conn) -> List[Permission]:
    requested = await _resolve(names, conn)
    held = {p.id for p in await _granted(link_model, owner_field, owner.id, conn)}
    doomed = [p for p in requested if p.id in held]
    if not doomed:
        raise NotFound(
            "None of the requested permissions are currently assigned",
            code="PERMISSIONS_NOT_ASSIGNED",
        )
    await link_model.filter(
        **{f"{owner_field}_id": owner.id, "permission_id__in": [p.id for p in doomed]}
    ).using_db(conn).delete()
    return doomed


async def get_role_permissions(role_id) -> Tuple[Role, List[Permission]]:
    role = await get_role(role_id)
    return role, await _granted(RolePermission, "role", role.id)


async def assign_permissions_to_role(role_id, names: Iterable[str]) -> Tuple[Role, List[Permission]]:
    """
    Grant catalogue permissions to a role.

    Raises:
        NotFound: role does not exist
        ValidationError: empty list or unknown permission names
        ConflictError: every requested permission is already granted
    """
    async with in_transaction() as conn:
        role = await get_role(role_id, conn)
        added = await _grant(RolePermission, "role", role, names, conn)
        permissions = await _granted(RolePermission, "role", role.id, conn)
    logger.info("[permissions] Granted %s to role %s", [p.name for p in added], role.name)
    return role, permissions


async def remove_permissions_from_role(role_id, names: Iterable[str]) -> Tuple[Role, List[Permission]]:
    """
    Revoke permissions from a role. Names the role does not hold are ignored
    as long as at least one requested permission is revoked.

    Raises:
        NotFound: role does not exist, or it holds none of the permissions
        ValidationError: empty list or unknown permission names
    """
    async with in_transaction() as conn:
        role = await get_role(role_id, conn)
        removed = await _revoke(RolePermission, "role", role, names, conn)
        permissions = await _granted(RolePermission, "role", role.id, conn)
    logger.info("[permissions] Revoked %s from role %s", [p.name for p in removed], role.name)
    return role, permissions


async def get_user_permissions(user_id) -> Tuple[User, List[Permission]]:
    """Permissions granted directly to a user (role grants excluded)."""
    user = await get_user(user_id)
    return user, await _granted(UserPermission, "user", user.id)


async def assign_permissions_to_user(user_id, names: Iterable[str]) -> Tuple[User, List[Permission]]:
    async with in_transaction() as conn:
        user = await get_user(user_id, conn)
        added = await _grant(UserPermission, "user", user, names, conn)
        permissions = await _granted(UserPermission, "user", user.id, conn)
    logger.info("[permissions] Granted %s to user %s", [p.name for p in added], user.id)
    return user, permissions


async def remove_permissions_from_user(user_id, names: Iterable[str]) -> Tuple[User, List[Permission]]:
    async with in_transaction() as conn:
        user = await get_user(user_id, conn)
        removed = await _revoke(UserPermission, "user", user, names, conn)
        permissions = await _granted(UserPermission, "user", user.id, conn)
    logger.info("[permissions] Revoked %s from user %s", [p.name for p in removed], user.id)
    return user, permissions


async def get_effective_permissions(user_id) -> EffectivePermissions:
    """
    Union of a user's direct grants and the grants of every role they hold.
    """
    user = await get_user(user_id)
    direct = await _granted(UserPermission, "user", user.id)

    names = await get_role_names(user)
    roles_by_name = {r.name: r for r in await Role.filter(name__in=names)}
    roles = [roles_by_name[n] for n in names]
    by_role = [(role, await _granted(RolePermission, "role", role.id)) for role in roles]

    union = {p.id: p for p in direct}
    for _, permissions in by_role:
        union.update((p.id, p) for p in permissions)

    return EffectivePermissions(user=user, direct=direct, by_role=by_role, effective=_sorted(union.values()))
