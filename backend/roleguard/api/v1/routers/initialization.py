# roleguard/api/v1/routers/initialization.py
import logging

from fastapi import APIRouter

from roleguard.schemas.initialization import InitializationOut, InitializeSystemIn
from roleguard.services.initialization import initialize_system, is_initialized

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/admin/initialization", tags=["initialization"])


@router.get("/status")
async def initialization_status():
    """
    Report whether the system has been initialized (a SuperAdmin exists).
    """
    return {"success": True, "data": {"initialized": await is_initialized()}}


@router.post("/initialize")
async def initialize(body: InitializeSystemIn):
    """
    First-run setup: seed system roles and create the SuperAdmin account.

    Anonymous on purpose; refuses to run once a SuperAdmin exists.

    Raises:
        ConflictError (409): SYSTEM_ALREADY_INITIALIZED, USERNAME_EXISTS, EMAIL_EXISTS
    """
    logger.info("[init] System initialization requested for user: %s", body.username)
    result = await initialize_system(body.username, body.email, body.password)
    out = InitializationOut(
        rolesCreated=result.roles_created,
        rolesCount=result.roles_count,
        userId=result.user_id,
        message=result.message,
    )
    return {"success": True, "data": out.model_dump()}
