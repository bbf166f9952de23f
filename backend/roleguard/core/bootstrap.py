# roleguard/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds the system roles and the permission catalogue on every startup and,
on first run, creates the default SuperAdmin from environment variables.
"""
import logging

from roleguard.config import settings
from roleguard.core.errors import ConflictError
from roleguard.services.initialization import ensure_system_roles, initialize_system, is_initialized
from roleguard.services.permission_store import ensure_permission_catalog

logger = logging.getLogger("uvicorn.error")


async def ensure_default_superadmin() -> None:
    """
    Seed system roles and permissions, then create a default SuperAdmin if none exists.

    The SuperAdmin is only created when ADMIN_PASSWORD is set, to avoid a
    default weak password. Environment variables:
      ADMIN_USERNAME (default: "superadmin")
      ADMIN_EMAIL    (default: "superadmin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    await ensure_system_roles()
    await ensure_permission_catalog()

    if await is_initialized():
        return

    if not settings.admin_password:
        logger.warning("[bootstrap] No SuperAdmin present, but ADMIN_PASSWORD not set -> skip creating default SuperAdmin.")
        return

    try:
        result = await initialize_system(settings.admin_username, settings.admin_email, settings.admin_password)
    except ConflictError as exc:
        # Username/email clash with an existing account; leave it to POST /admin/initialization/initialize
        logger.warning("[bootstrap] Could not create default SuperAdmin: %s", exc.message)
        return
    logger.warning("[bootstrap] Created default SuperAdmin -> username=%s id=%s",
                   settings.admin_username, result.user_id)
