"""
Identity Store

Owns User / Role / UserRole persistence and runs every guarded mutation
(assign role, remove role, delete user) inside one transaction together with
its policy check. The SuperAdmin role row is locked with SELECT ... FOR UPDATE
before counting holders, so two concurrent removals cannot both observe
"more than one SuperAdmin" and leave the system with none.
"""
import logging
import uuid
from typing import Iterable, List, Optional, Tuple

from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from roleguard.core.errors import ConflictError, InvariantViolation, NotFound, ValidationError
from roleguard.core.roles import SystemRole, normalize_role_name, role_rank
from roleguard.core.security import hash_password
from roleguard.models.permission import UserPermission
from roleguard.models.role import (
    ROLE_DESCRIPTION_MAX_LENGTH,
    ROLE_NAME_MAX_LENGTH,
    ROLE_NAME_MIN_LENGTH,
    Role,
    UserRole,
)
from roleguard.models.user import EMAIL_MAX_LENGTH, USERNAME_MAX_LENGTH, User
from roleguard.services.role_policy import (
    can_assign_role,
    can_delete_user,
    can_remove_role,
    can_reset_password,
)

logger = logging.getLogger("uvicorn.error")

SUPER_ADMIN_KEY = normalize_role_name(SystemRole.SUPER_ADMIN.value)


def _parse_id(raw, kind: str) -> uuid.UUID:
    try:
        return raw if isinstance(raw, uuid.UUID) else uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise NotFound(f"{kind.capitalize()} with ID {raw} not found", code=f"{kind.upper()}_NOT_FOUND")


def _on(qs, conn: Optional[BaseDBAsyncClient]):
    return qs.using_db(conn) if conn is not None else qs


def _check_max_length(field: str, value: Optional[str], limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValidationError(f"{field} must be at most {limit} characters", code="FIELD_TOO_LONG")


# ------------------------------------------------------------------------------
# Lookups
# ------------------------------------------------------------------------------
async def get_user(user_id, conn: Optional[BaseDBAsyncClient] = None) -> User:
    """Fetch a user by id or raise NotFound(USER_NOT_FOUND)."""
    uid = _parse_id(user_id, "user")
    user = await _on(User.filter(id=uid), conn).first()
    if not user:
        raise NotFound(f"User with ID {user_id} not found", code="USER_NOT_FOUND")
    return user


async def get_role(role_id, conn: Optional[BaseDBAsyncClient] = None) -> Role:
    """Fetch a role by id or raise NotFound(ROLE_NOT_FOUND)."""
    rid = _parse_id(role_id, "role")
    role = await _on(Role.filter(id=rid), conn).first()
    if not role:
        raise NotFound(f"Role with ID {role_id} not found", code="ROLE_NOT_FOUND")
    return role


async def get_role_by_name(name: str, conn: Optional[BaseDBAsyncClient] = None) -> Role:
    role = await _on(Role.filter(normalized_name=normalize_role_name(name)), conn).first()
    if not role:
        raise NotFound(f"Role '{name}' not found", code="ROLE_NOT_FOUND")
    return role


async def get_role_names(user: User, conn: Optional[BaseDBAsyncClient] = None) -> List[str]:
    """Names of the roles currently held by `user`."""
    names = await _on(UserRole.filter(user_id=user.id), conn).values_list("role__name", flat=True)
    return sorted(names, key=lambda n: (-role_rank(n), n))


async def user_has_role(user_id, role_id, conn: Optional[BaseDBAsyncClient] = None) -> bool:
    return await _on(UserRole.filter(user_id=user_id, role_id=role_id), conn).exists()


async def count_super_admins(conn: Optional[BaseDBAsyncClient] = None) -> int:
    """Live count of users holding SuperAdmin. Never cached."""
    return await _on(UserRole.filter(role__normalized_name=SUPER_ADMIN_KEY), conn).count()


async def _lock_super_admin_role(conn: BaseDBAsyncClient) -> Optional[Role]:
    # Serializes every check-then-write on SuperAdmin membership (no-op on SQLite)
    return await Role.filter(normalized_name=SUPER_ADMIN_KEY).select_for_update().using_db(conn).first()


async def list_users(offset: int = 0, limit: int = 20, q: Optional[str] = None) -> Tuple[List[User], int]:
    """Page of users, newest first, with their roles prefetched."""
    qs = User.all().order_by("-created_at")
    if q:
        qs = qs.filter(Q(username__icontains=q) | Q(email__icontains=q))
    total = await qs.count()
    rows = await qs.offset(offset).limit(limit).prefetch_related("user_roles__role")
    return list(rows), total


async def list_roles() -> List[Role]:
    roles = await Role.all()
    return sorted(roles, key=lambda r: (-role_rank(r.name), r.name))


# ------------------------------------------------------------------------------
# Unguarded writes (account and role creation)
# ------------------------------------------------------------------------------
async def create_role(name: str, description: Optional[str] = None) -> Role:
    """
    Create a custom role.

    Raises:
        ValidationError: name shorter than 3 or longer than 50 characters,
            or a description longer than 256
        ConflictError: a role with the same (case-insensitive) name exists
    """
    name = (name or "").strip()
    if not ROLE_NAME_MIN_LENGTH <= len(name) <= ROLE_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Role name must be between {ROLE_NAME_MIN_LENGTH} and {ROLE_NAME_MAX_LENGTH} characters",
            code="ROLE_NAME_INVALID",
        )
    _check_max_length("Description", description, ROLE_DESCRIPTION_MAX_LENGTH)
    normalized = normalize_role_name(name)
    if await Role.filter(normalized_name=normalized).exists():
        raise ConflictError(f"Role '{name}' already exists", code="ROLE_EXISTS")
    try:
        role = await Role.create(name=name, normalized_name=normalized, description=description, is_system=False)
    except IntegrityError:
        raise ConflictError(f"Role '{name}' already exists", code="ROLE_EXISTS")
    logger.info("[identity] Created role %s (%s)", role.name, role.id)
    return role


async def create_user(
    username: str,
    email: Optional[str],
    password: str,
    role_names: Optional[Iterable[str]] = None,
    assigned_by: Optional[uuid.UUID] = None,
    conn: Optional[BaseDBAsyncClient] = None,
) -> User:
    """
    Create a user account and attach its initial roles (default: User).

    Raises:
        ValidationError: missing username or password, or an over-long username/email
        ConflictError: username or email already taken
        NotFound: one of `role_names` does not exist
    """
    if not username or not password:
        raise ValidationError("username/password required", code="BAD_REQUEST")
    _check_max_length("Username", username, USERNAME_MAX_LENGTH)
    _check_max_length("Email", email, EMAIL_MAX_LENGTH)
    if await _on(User.filter(username=username), conn).exists():
        raise ConflictError("Username already exists", code="USERNAME_EXISTS")
    if email and await _on(User.filter(email=email), conn).exists():
        raise ConflictError("Email already registered", code="EMAIL_EXISTS")

    names = list(role_names) if role_names is not None else [SystemRole.USER.value]
    roles = [await get_role_by_name(n, conn) for n in names]

    user = await User.create(
        username=username,
        email=email or None,
        password_hash=hash_password(password),
        using_db=conn,
    )
    for role in roles:
        await UserRole.create(user=user, role=role, assigned_by=assigned_by, using_db=conn)
    return user


async def reset_password(actor: User, user_id, new_password: str) -> User:
    """
    Set a new password for `user_id` on behalf of `actor`.

    Raises:
        NotFound: user does not exist
        PolicyDenied: target outranks (or equals) a non-SuperAdmin actor
    """
    user = await get_user(user_id)
    decision = can_reset_password(
        actor.id, await get_role_names(actor), user.id, await get_role_names(user)
    )
    decision.raise_for_denial()
    user.password_hash = hash_password(new_password)
    await user.save()
    return user


# ------------------------------------------------------------------------------
# Guarded writes: policy check and mutation commit together or not at all
# ------------------------------------------------------------------------------
async def assign_role(actor: User, user_id, role_id) -> UserRole:
    """
    Assign a role to a user on behalf of `actor`.

    Raises:
        NotFound: user or role does not exist
        PolicyDenied: actor may not assign this role
        ConflictError: the user already holds the role
    """
    async with in_transaction() as conn:
        user = await get_user(user_id, conn)
        role = await get_role(role_id, conn)
        actor_roles = await get_role_names(actor, conn)

        can_assign_role(actor_roles, role.name).raise_for_denial()

        if await user_has_role(user.id, role.id, conn):
            raise ConflictError(
                f"User '{user.username}' already has the role '{role.name}'",
                code="ROLE_ALREADY_ASSIGNED",
            )
        try:
            user_role = await UserRole.create(user=user, role=role, assigned_by=actor.id, using_db=conn)
        except IntegrityError:
            raise ConflictError(
                f"User '{user.username}' already has the role '{role.name}'",
                code="ROLE_ALREADY_ASSIGNED",
            )

    logger.info("[identity] %s assigned role %s to user %s", actor.id, role.name, user.id)
    return user_role


async def remove_role(actor: User, user_id, role_id) -> None:
    """
    Remove a role from a user on behalf of `actor`.

    Raises:
        NotFound: user or role does not exist, or the user does not hold the role
        PolicyDenied: last SuperAdmin, self-demotion, or insufficient privilege
        InvariantViolation: the removal would leave zero SuperAdmins at commit
    """
    async with in_transaction() as conn:
        user = await get_user(user_id, conn)
        role = await get_role(role_id, conn)
        if not await user_has_role(user.id, role.id, conn):
            raise NotFound(
                f"User '{user.username}' does not have the role '{role.name}'",
                code="ROLE_NOT_ASSIGNED",
            )

        await _lock_super_admin_role(conn)
        super_admins = await count_super_admins(conn)
        actor_roles = await get_role_names(actor, conn)

        can_remove_role(actor.id, actor_roles, user.id, role.name, super_admins).raise_for_denial()

        await UserRole.filter(user_id=user.id, role_id=role.id).using_db(conn).delete()

        if role.normalized_name == SUPER_ADMIN_KEY and await count_super_admins(conn) < 1:
            raise InvariantViolation("Removal would leave the system without a SuperAdmin; retry the request")

    logger.info("[identity] %s removed role %s from user %s", actor.id, role.name, user.id)


async def delete_user(actor: User, user_id) -> None:
    """
    Delete a user account on behalf of `actor`.

    Raises:
        NotFound: user does not exist
        PolicyDenied: self-deletion, last SuperAdmin, or insufficient privilege
        InvariantViolation: the deletion would leave zero SuperAdmins at commit
    """
    async with in_transaction() as conn:
        user = await get_user(user_id, conn)

        super_admin_role = await _lock_super_admin_role(conn)
        is_super_admin = bool(super_admin_role) and await user_has_role(user.id, super_admin_role.id, conn)
        only_super_admin = is_super_admin and await count_super_admins(conn) <= 1
        actor_roles = await get_role_names(actor, conn)

        can_delete_user(actor.id, actor_roles, user.id, only_super_admin).raise_for_denial()

        await UserRole.filter(user_id=user.id).using_db(conn).delete()
        await UserPermission.filter(user_id=user.id).using_db(conn).delete()
        await user.delete(using_db=conn)

        if is_super_admin and await count_super_admins(conn) < 1:
            raise InvariantViolation("Deletion would leave the system without a SuperAdmin; retry the request")

    logger.info("[identity] %s deleted user %s (%s)", actor.id, user.username, user_id)
