"""
Services Module

- role_policy: pure authorization decisions for role and account changes
- identity_store: transactional persistence of users, roles and memberships
- initialization: first-run seeding of system roles and the SuperAdmin
- permission_store: permission catalogue, role/user grants and effective permissions
"""
