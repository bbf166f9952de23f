# roleguard/models/user.py
"""
Database model for users.
Represents a user account: login credentials and profile information.
Role membership lives in the UserRole association (see models/role.py).
"""
import uuid
from tortoise import fields, models

USERNAME_MAX_LENGTH = 256
EMAIL_MAX_LENGTH = 256


class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many UserRoles (one-to-many, via related_name="user_roles")
    - Has many UserPermissions (one-to-many, via related_name="user_permissions")

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username must be unique across all users
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=USERNAME_MAX_LENGTH, unique=True, index=True)
    email = fields.CharField(max_length=EMAIL_MAX_LENGTH, null=True)
    password_hash = fields.CharField(max_length=255)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"
