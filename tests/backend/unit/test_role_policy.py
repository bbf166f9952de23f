"""
Unit tests for services.role_policy module.
The policy functions are pure, so every role combination is checked directly.
"""
import itertools
import uuid

import pytest

from roleguard.core.errors import PolicyDenied
from roleguard.core.roles import SystemRole
from roleguard.services.role_policy import (
    Decision,
    INSUFFICIENT_PRIVILEGE,
    LAST_SUPERADMIN,
    ROLE_ASSIGNMENT_FORBIDDEN,
    SELF_DELETION,
    SELF_DEMOTION,
    can_assign_role,
    can_delete_user,
    can_remove_role,
    can_reset_password,
)

SA = SystemRole.SUPER_ADMIN
ADMIN = SystemRole.ADMINISTRATOR
MANAGER = SystemRole.MANAGER
USER = SystemRole.USER
GUEST = SystemRole.GUEST

ALL_ROLES = list(SystemRole)
NON_ELEVATED = [MANAGER, USER, GUEST]


def _role_sets(pool):
    """Every subset of `pool`, including the empty set."""
    for size in range(len(pool) + 1):
        for combo in itertools.combinations(pool, size):
            yield frozenset(combo)


NON_PRIVILEGED_ACTOR_SETS = list(_role_sets(NON_ELEVATED))
ACTOR = uuid.uuid4()
TARGET = uuid.uuid4()


class TestDecision:
    def test_allow_is_truthy(self):
        assert Decision.allow()
        assert Decision.allow().reason is None

    def test_deny_is_falsy_and_carries_reason(self):
        d = Decision.deny("SOME_CODE", "some reason")
        assert not d
        assert d.code == "SOME_CODE"
        assert d.reason == "some reason"

    def test_raise_for_denial(self):
        Decision.allow().raise_for_denial()
        with pytest.raises(PolicyDenied) as exc_info:
            Decision.deny(SELF_DEMOTION, "cannot remove your own privileged role").raise_for_denial()
        assert exc_info.value.code == SELF_DEMOTION
        assert exc_info.value.message == "cannot remove your own privileged role"


class TestCanAssignRole:
    @pytest.mark.parametrize("target", ALL_ROLES)
    def test_super_admin_assigns_anything(self, target):
        assert can_assign_role({SA}, target)

    def test_super_admin_assigns_custom_role(self):
        assert can_assign_role({SA}, "Auditors")

    @pytest.mark.parametrize("target", NON_ELEVATED)
    def test_administrator_assigns_non_elevated(self, target):
        assert can_assign_role({ADMIN}, target)

    @pytest.mark.parametrize("target", [SA, ADMIN, "Auditors"])
    def test_administrator_cannot_assign_elevated_or_custom(self, target):
        d = can_assign_role({ADMIN}, target)
        assert not d
        assert d.code == ROLE_ASSIGNMENT_FORBIDDEN
        assert d.reason == "only SuperAdmin can assign this role"

    @pytest.mark.parametrize("actor_roles", NON_PRIVILEGED_ACTOR_SETS)
    @pytest.mark.parametrize("target", ALL_ROLES)
    def test_non_privileged_always_denied(self, actor_roles, target):
        d = can_assign_role(actor_roles, target)
        assert not d
        assert d.code == INSUFFICIENT_PRIVILEGE

    def test_role_names_are_case_insensitive(self):
        assert can_assign_role(["administrator"], "manager")
        assert not can_assign_role(["ADMINISTRATOR"], "superadmin")

    def test_scenario_administrator_assigns_manager_then_administrator(self):
        assert can_assign_role({ADMIN}, MANAGER)
        d = can_assign_role({ADMIN}, ADMIN)
        assert not d
        assert d.reason == "only SuperAdmin can assign this role"


class TestCanRemoveRole:
    @pytest.mark.parametrize("actor_roles", list(_role_sets(ALL_ROLES)))
    def test_last_super_admin_always_protected(self, actor_roles):
        d = can_remove_role(ACTOR, actor_roles, TARGET, SA, current_super_admin_count=1)
        assert not d
        assert d.code == LAST_SUPERADMIN
        assert d.reason == "cannot remove last SuperAdmin"

    def test_last_super_admin_check_fires_at_zero_too(self):
        assert can_remove_role(ACTOR, {SA}, TARGET, SA, 0).code == LAST_SUPERADMIN

    @pytest.mark.parametrize("actor_roles", list(_role_sets(ALL_ROLES)))
    @pytest.mark.parametrize("target", [SA, ADMIN])
    def test_self_demotion_denied_regardless_of_count(self, actor_roles, target):
        d = can_remove_role(ACTOR, actor_roles, ACTOR, target, current_super_admin_count=5)
        assert not d
        assert d.code == SELF_DEMOTION
        assert d.reason == "cannot remove your own privileged role"

    def test_self_demotion_matches_string_and_uuid_ids(self):
        assert can_remove_role(ACTOR, {SA}, str(ACTOR), ADMIN, 2).code == SELF_DEMOTION

    @pytest.mark.parametrize("target", NON_ELEVATED)
    def test_self_removal_of_non_elevated_role_allowed(self, target):
        assert can_remove_role(ACTOR, {ADMIN, target}, ACTOR, target, 1)

    @pytest.mark.parametrize("target", ALL_ROLES)
    def test_super_admin_removes_from_others(self, target):
        assert can_remove_role(ACTOR, {SA}, TARGET, target, current_super_admin_count=2)

    @pytest.mark.parametrize("target", NON_ELEVATED)
    def test_administrator_removes_non_elevated(self, target):
        assert can_remove_role(ACTOR, {ADMIN}, TARGET, target, 3)

    @pytest.mark.parametrize("target", [SA, ADMIN])
    def test_administrator_cannot_remove_elevated(self, target):
        d = can_remove_role(ACTOR, {ADMIN}, TARGET, target, current_super_admin_count=3)
        assert not d
        assert d.code == INSUFFICIENT_PRIVILEGE

    def test_administrator_cannot_remove_custom_role(self):
        d = can_remove_role(ACTOR, {ADMIN}, TARGET, "Auditors", 3)
        assert d.code == INSUFFICIENT_PRIVILEGE
        assert d.reason == "insufficient privilege to remove this role"

    @pytest.mark.parametrize("actor_roles", NON_PRIVILEGED_ACTOR_SETS)
    @pytest.mark.parametrize("target", ALL_ROLES)
    def test_non_privileged_always_denied(self, actor_roles, target):
        assert not can_remove_role(ACTOR, actor_roles, TARGET, target, current_super_admin_count=3)

    def test_scenario_super_admin_removes_second_super_admin(self):
        assert can_remove_role(ACTOR, {SA}, TARGET, SA, current_super_admin_count=2)

    def test_scenario_sole_super_admin_removes_own_role(self):
        d = can_remove_role(ACTOR, {SA}, ACTOR, SA, current_super_admin_count=1)
        assert not d
        assert d.code in (LAST_SUPERADMIN, SELF_DEMOTION)


class TestCanDeleteUser:
    @pytest.mark.parametrize("actor_roles", list(_role_sets(ALL_ROLES)))
    @pytest.mark.parametrize("only_super_admin", [True, False])
    def test_self_deletion_always_denied(self, actor_roles, only_super_admin):
        d = can_delete_user(ACTOR, actor_roles, ACTOR, only_super_admin)
        assert not d
        assert d.code == SELF_DELETION
        assert d.reason == "cannot delete your own account"

    @pytest.mark.parametrize("actor_roles", [{SA}, {ADMIN}, {SA, ADMIN}])
    def test_only_super_admin_cannot_be_deleted(self, actor_roles):
        d = can_delete_user(ACTOR, actor_roles, TARGET, True)
        assert not d
        assert d.code == LAST_SUPERADMIN
        assert d.reason == "cannot delete the last SuperAdmin"

    @pytest.mark.parametrize("actor_roles", [{SA}, {ADMIN}, {ADMIN, USER}])
    def test_elevated_actor_deletes(self, actor_roles):
        assert can_delete_user(ACTOR, actor_roles, TARGET, False)

    @pytest.mark.parametrize("actor_roles", NON_PRIVILEGED_ACTOR_SETS)
    def test_non_privileged_always_denied(self, actor_roles):
        d = can_delete_user(ACTOR, actor_roles, TARGET, False)
        assert not d
        assert d.code == INSUFFICIENT_PRIVILEGE


class TestCanResetPassword:
    def test_super_admin_resets_anyone(self):
        assert can_reset_password(ACTOR, {SA}, TARGET, {SA})

    def test_administrator_resets_lower_ranked_user(self):
        assert can_reset_password(ACTOR, {ADMIN}, TARGET, {MANAGER, USER})
        assert can_reset_password(ACTOR, {ADMIN}, TARGET, [])

    @pytest.mark.parametrize("target_roles", [{SA}, {ADMIN}, {USER, ADMIN}])
    def test_administrator_cannot_reset_peer_or_superior(self, target_roles):
        d = can_reset_password(ACTOR, {ADMIN}, TARGET, target_roles)
        assert d.code == INSUFFICIENT_PRIVILEGE

    def test_manager_cannot_reset(self):
        assert not can_reset_password(ACTOR, {MANAGER}, TARGET, {GUEST})
