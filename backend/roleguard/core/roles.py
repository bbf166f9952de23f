# roleguard/core/roles.py
"""
Fixed role hierarchy and admin capability matrix.

The five system roles and their rank are plain data: an ordered enumeration,
a rank table and a few lookup sets. The permission matrix for admin endpoints
lives in ADMIN_POLICIES so it can be audited in one place.
"""
from enum import Enum
from typing import Iterable, Optional


class SystemRole(str, Enum):
    """The five predefined roles, highest trust first."""
    SUPER_ADMIN = "SuperAdmin"
    ADMINISTRATOR = "Administrator"
    MANAGER = "Manager"
    USER = "User"
    GUEST = "Guest"


ROLE_RANK: dict[SystemRole, int] = {
    SystemRole.SUPER_ADMIN: 4,
    SystemRole.ADMINISTRATOR: 3,
    SystemRole.MANAGER: 2,
    SystemRole.USER: 1,
    SystemRole.GUEST: 1,
}

SYSTEM_ROLE_DESCRIPTIONS: dict[SystemRole, str] = {
    SystemRole.SUPER_ADMIN: "Full unrestricted management rights",
    SystemRole.ADMINISTRATOR: "Manages users and non-elevated role assignments",
    SystemRole.MANAGER: "Views users and roles, creates user accounts",
    SystemRole.USER: "Standard authenticated user",
    SystemRole.GUEST: "Limited read-only access",
}

ELEVATED_ROLES = frozenset({SystemRole.SUPER_ADMIN, SystemRole.ADMINISTRATOR})

# Roles an Administrator (without SuperAdmin) may assign or remove
ADMINISTRATOR_ASSIGNABLE = frozenset({SystemRole.MANAGER, SystemRole.USER, SystemRole.GUEST})

_BY_NORMALIZED = {role.value.upper(): role for role in SystemRole}


def normalize_role_name(name: str) -> str:
    """Case-insensitive comparison key for a role name."""
    return name.strip().upper()


def to_system_role(role) -> Optional[SystemRole]:
    """
    Resolve a role name (or SystemRole) to its SystemRole member.

    Returns None for custom roles.
    """
    if isinstance(role, SystemRole):
        return role
    if role is None:
        return None
    return _BY_NORMALIZED.get(normalize_role_name(str(role)))


def to_system_roles(roles: Iterable) -> frozenset[SystemRole]:
    """Resolve a collection of role names, dropping custom roles."""
    resolved = (to_system_role(r) for r in roles)
    return frozenset(r for r in resolved if r is not None)


def role_rank(role) -> int:
    """Rank of a role; custom roles rank 0."""
    system_role = to_system_role(role)
    return ROLE_RANK.get(system_role, 0) if system_role else 0


# ==============================================================================
# Admin capability matrix
# ==============================================================================
_ADMIN_TIER = frozenset({SystemRole.SUPER_ADMIN, SystemRole.ADMINISTRATOR, SystemRole.MANAGER})
_SUPER_ADMIN_ONLY = frozenset({SystemRole.SUPER_ADMIN})

ADMIN_POLICIES: dict[str, frozenset[SystemRole]] = {
    "admin.access": _ADMIN_TIER,
    "roles.view": _ADMIN_TIER,
    "roles.create": ELEVATED_ROLES,
    "users.view": _ADMIN_TIER,
    "users.create": _ADMIN_TIER,
    "users.delete": ELEVATED_ROLES,
    "users.reset_password": ELEVATED_ROLES,
    "user_roles.view": _ADMIN_TIER,
    "user_roles.assign": ELEVATED_ROLES,
    "user_roles.remove": ELEVATED_ROLES,
    "permissions.view": _ADMIN_TIER,
    "role_permissions.view": _ADMIN_TIER,
    "role_permissions.assign": _SUPER_ADMIN_ONLY,
    "role_permissions.remove": _SUPER_ADMIN_ONLY,
    "user_permissions.view": _ADMIN_TIER,
    "user_permissions.assign": _SUPER_ADMIN_ONLY,
    "user_permissions.remove": _SUPER_ADMIN_ONLY,
}


def has_capability(role_names: Iterable, capability: str) -> bool:
    """
    Check whether any of the given roles grants an admin capability.

    Raises:
        KeyError: If the capability is not declared in ADMIN_POLICIES
    """
    allowed = ADMIN_POLICIES[capability]
    return not allowed.isdisjoint(to_system_roles(role_names))
