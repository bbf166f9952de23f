"""
Role Policy Engine

Decides whether an actor may assign a role, remove a role or delete a user.
All three checks are pure functions over explicit inputs: callers supply the
actor's roles, the target and any live counts. Nothing here touches storage.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from roleguard.core.errors import PolicyDenied
from roleguard.core.roles import (
    ADMINISTRATOR_ASSIGNABLE,
    ELEVATED_ROLES,
    SystemRole,
    role_rank,
    to_system_role,
    to_system_roles,
)

# Denial codes
INSUFFICIENT_PRIVILEGE = "INSUFFICIENT_PRIVILEGE"
ROLE_ASSIGNMENT_FORBIDDEN = "ROLE_ASSIGNMENT_FORBIDDEN"
LAST_SUPERADMIN = "LAST_SUPERADMIN"
SELF_DEMOTION = "SELF_DEMOTION"
SELF_DELETION = "SELF_DELETION"


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check: Allow, or Deny with a code and reason."""
    allowed: bool
    code: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, code: str, reason: str) -> "Decision":
        return cls(allowed=False, code=code, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_for_denial(self) -> None:
        """Raise PolicyDenied if this decision is a Deny."""
        if not self.allowed:
            raise PolicyDenied(self.reason, code=self.code)


def _same_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def can_assign_role(actor_roles: Iterable, target_role) -> Decision:
    """
    Check whether an actor may assign `target_role` to some user.

    - SuperAdmin may assign any role.
    - Administrator may assign Manager, User or Guest only.
    - Anyone else may not assign roles.
    """
    held = to_system_roles(actor_roles)
    if SystemRole.SUPER_ADMIN in held:
        return Decision.allow()
    if SystemRole.ADMINISTRATOR in held:
        if to_system_role(target_role) in ADMINISTRATOR_ASSIGNABLE:
            return Decision.allow()
        return Decision.deny(ROLE_ASSIGNMENT_FORBIDDEN, "only SuperAdmin can assign this role")
    return Decision.deny(INSUFFICIENT_PRIVILEGE, "insufficient privilege to assign roles")


def can_remove_role(
    actor_id,
    actor_roles: Iterable,
    target_user_id,
    target_role,
    current_super_admin_count: int,
) -> Decision:
    """
    Check whether an actor may remove `target_role` from a user.

    Rules are evaluated in order; the first match wins:
      1. the last SuperAdmin can never lose the role, whoever asks
      2. nobody removes their own SuperAdmin or Administrator role
      3. SuperAdmin may remove anything else
      4. Administrator may remove Manager, User or Guest
      5. everything else is denied

    `current_super_admin_count` must be a fresh count taken inside the same
    transaction that performs the removal.
    """
    role = to_system_role(target_role)
    held = to_system_roles(actor_roles)

    if role is SystemRole.SUPER_ADMIN and current_super_admin_count <= 1:
        return Decision.deny(LAST_SUPERADMIN, "cannot remove last SuperAdmin")
    if _same_id(actor_id, target_user_id) and role in ELEVATED_ROLES:
        return Decision.deny(SELF_DEMOTION, "cannot remove your own privileged role")
    if SystemRole.SUPER_ADMIN in held:
        return Decision.allow()
    if SystemRole.ADMINISTRATOR in held and role in ADMINISTRATOR_ASSIGNABLE:
        return Decision.allow()
    return Decision.deny(INSUFFICIENT_PRIVILEGE, "insufficient privilege to remove this role")


def can_reset_password(actor_id, actor_roles: Iterable, target_user_id, target_roles: Iterable) -> Decision:
    """
    Check whether an actor may reset another user's password.

    Non-SuperAdmins may only reset passwords of users ranked strictly below
    them, so an Administrator cannot take over a peer or a SuperAdmin account.
    """
    held = to_system_roles(actor_roles)
    if SystemRole.SUPER_ADMIN in held or _same_id(actor_id, target_user_id):
        return Decision.allow()
    actor_rank = max((role_rank(r) for r in held), default=0)
    target_rank = max((role_rank(r) for r in target_roles), default=0)
    if SystemRole.ADMINISTRATOR in held and target_rank < actor_rank:
        return Decision.allow()
    return Decision.deny(INSUFFICIENT_PRIVILEGE, "insufficient privilege to reset this password")


def can_delete_user(
    actor_id,
    actor_roles: Iterable,
    target_user_id,
    target_user_is_only_super_admin: bool,
) -> Decision:
    """
    Check whether an actor may delete a user account.

    Self-deletion and deleting the only SuperAdmin are refused before the
    actor's privilege is even considered.
    """
    if _same_id(actor_id, target_user_id):
        return Decision.deny(SELF_DELETION, "cannot delete your own account")
    if target_user_is_only_super_admin:
        return Decision.deny(LAST_SUPERADMIN, "cannot delete the last SuperAdmin")
    if not ELEVATED_ROLES.isdisjoint(to_system_roles(actor_roles)):
        return Decision.allow()
    return Decision.deny(INSUFFICIENT_PRIVILEGE, "insufficient privilege to delete users")
