# roleguard/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: User account and authentication model
- Role: System or custom role
- UserRole: User-Role membership (unique per pair)
- Permission: Permission catalogue entry
- RolePermission / UserPermission: Permission grants (unique per pair)
"""
from .user import User
from .role import Role, UserRole
from .permission import Permission, RolePermission, UserPermission
