# roleguard/models/role.py
"""
Database models for roles and role membership.
- Role: a named role, either one of the five system roles or a custom one
- UserRole: (user, role) association, unique per pair
"""
import uuid
from tortoise import fields, models

ROLE_NAME_MIN_LENGTH = 3
ROLE_NAME_MAX_LENGTH = 50
ROLE_DESCRIPTION_MAX_LENGTH = 256


class Role(models.Model):
    """
    Role database model.

    - name: display name, unique
    - normalized_name: upper-cased name, unique (case-insensitive uniqueness)
    - is_system: True for SuperAdmin/Administrator/Manager/User/Guest
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=ROLE_NAME_MAX_LENGTH, unique=True)
    normalized_name = fields.CharField(max_length=ROLE_NAME_MAX_LENGTH, unique=True, index=True)
    description = fields.CharField(max_length=ROLE_DESCRIPTION_MAX_LENGTH, null=True)
    is_system = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "roles"


class UserRole(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user: fields.ForeignKeyRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="user_roles", on_delete=fields.CASCADE
    )
    role: fields.ForeignKeyRelation[Role] = fields.ForeignKeyField(
        "models.Role", related_name="user_roles", on_delete=fields.CASCADE
    )
    assigned_at = fields.DatetimeField(auto_now_add=True)
    assigned_by = fields.UUIDField(null=True)  # Actor who made the assignment; None for bootstrap

    class Meta:
        table = "user_roles"
        unique_together = (("user", "role"),)
