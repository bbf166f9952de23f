# roleguard/models/permission.py
"""
Database models for permissions.
- Permission: an entry of the permission catalogue
- RolePermission: (role, permission) grant, unique per pair
- UserPermission: (user, permission) direct grant, unique per pair
"""
import uuid
from tortoise import fields, models


class Permission(models.Model):
    """
    Permission database model.

    - name: "<resource>:<action>", unique
    - normalized_name: upper-cased name used for lookups
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=128, unique=True)
    normalized_name = fields.CharField(max_length=128, unique=True, index=True)
    description = fields.CharField(max_length=256, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "permissions"


class RolePermission(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    role: fields.ForeignKeyRelation["Role"] = fields.ForeignKeyField(
        "models.Role", related_name="role_permissions", on_delete=fields.CASCADE
    )
    permission: fields.ForeignKeyRelation[Permission] = fields.ForeignKeyField(
        "models.Permission", related_name="role_permissions", on_delete=fields.CASCADE
    )
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "role_permissions"
        unique_together = (("role", "permission"),)


class UserPermission(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user: fields.ForeignKeyRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="user_permissions", on_delete=fields.CASCADE
    )
    permission: fields.ForeignKeyRelation[Permission] = fields.ForeignKeyField(
        "models.Permission", related_name="user_permissions", on_delete=fields.CASCADE
    )
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "user_permissions"
        unique_together = (("user", "permission"),)
