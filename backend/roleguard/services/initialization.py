"""
System initialization

Seeds the five system roles and creates the first SuperAdmin. This path
bypasses the role policy engine on purpose: it only runs while no SuperAdmin
exists yet.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.transactions import in_transaction

from roleguard.core.errors import ConflictError
from roleguard.core.roles import SYSTEM_ROLE_DESCRIPTIONS, SystemRole, normalize_role_name
from roleguard.models.role import Role
from roleguard.services.identity_store import count_super_admins, create_user

logger = logging.getLogger("uvicorn.error")


@dataclass
class InitializationResult:
    roles_created: bool
    roles_count: int
    user_id: str
    message: str


async def is_initialized(conn: Optional[BaseDBAsyncClient] = None) -> bool:
    """The system counts as initialized once any user holds SuperAdmin."""
    return await count_super_admins(conn) > 0


async def ensure_system_roles(conn: Optional[BaseDBAsyncClient] = None) -> int:
    """
    Create any missing system role. Idempotent.

    Returns:
        Number of roles created by this call
    """
    created = 0
    for role in SystemRole:
        normalized = normalize_role_name(role.value)
        qs = Role.filter(normalized_name=normalized)
        if conn is not None:
            qs = qs.using_db(conn)
        if await qs.exists():
            continue
        await Role.create(
            name=role.value,
            normalized_name=normalized,
            description=SYSTEM_ROLE_DESCRIPTIONS[role],
            is_system=True,
            using_db=conn,
        )
        created += 1
    if created:
        logger.info("[init] Seeded %d system role(s)", created)
    return created


async def initialize_system(username: str, email: Optional[str], password: str) -> InitializationResult:
    """
    First-run bootstrap: system roles + one SuperAdmin user, atomically.

    Raises:
        ConflictError: SYSTEM_ALREADY_INITIALIZED when a SuperAdmin exists,
            or USERNAME_EXISTS / EMAIL_EXISTS for clashing credentials
    """
    async with in_transaction() as conn:
        if await is_initialized(conn):
            raise ConflictError("System is already initialized", code="SYSTEM_ALREADY_INITIALIZED")

        created = await ensure_system_roles(conn)
        user = await create_user(username, email, password, [SystemRole.SUPER_ADMIN.value], conn=conn)
        roles_count = await Role.filter(is_system=True).using_db(conn).count()

    logger.info("[init] System initialized: %d roles, SuperAdmin %s (%s)", roles_count, user.username, user.id)
    return InitializationResult(
        roles_created=created > 0,
        roles_count=roles_count,
        user_id=str(user.id),
        message=f"System initialized successfully. Created {roles_count} roles and super admin user.",
    )
