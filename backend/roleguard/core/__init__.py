# roleguard/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: System role seeding and default SuperAdmin creation
- db: Database configuration and connection management
- errors: Domain error taxonomy and its FastAPI handler
- permissions: Permission catalogue and name normalisation
- roles: Fixed role hierarchy and admin capability matrix
- security: Password hashing and JWT tokens
"""
