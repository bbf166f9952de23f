# roleguard/core/errors.py
"""
Error taxonomy for identity and role management.

Every error carries a machine-readable code and a human-readable message.
The FastAPI handler at the bottom renders them as
{"detail": {"code": ..., "message": ...}}, the same shape the routers use
for HTTPException details.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("uvicorn.error")


class RoleGuardError(Exception):
    """Base class for all domain errors."""
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "BAD_REQUEST"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(RoleGuardError):
    """Malformed input, e.g. a role name outside the allowed length."""
    default_code = "VALIDATION_ERROR"


class PolicyDenied(RoleGuardError):
    """
    A named policy rule rejected the action.

    Business-rule denials map to 400; a plain lack of privilege maps to 403.
    """
    default_code = "POLICY_DENIED"
    capability_codes = frozenset({"INSUFFICIENT_PRIVILEGE"})

    def __init__(self, message: str, code: str | None = None, rule: str | None = None):
        super().__init__(message, code)
        self.rule = rule or self.code

    @property
    def status_code(self) -> int:
        if self.code in self.capability_codes:
            return status.HTTP_403_FORBIDDEN
        return status.HTTP_400_BAD_REQUEST

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["rule"] = self.rule
        return detail


class NotFound(RoleGuardError):
    """A referenced user, role or assignment does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictError(RoleGuardError):
    """Duplicate entity, e.g. a repeated (user, role) pair or role name."""
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class InvariantViolation(ConflictError):
    """
    A commit would have broken a system invariant (zero SuperAdmins).

    Raised inside the storage transaction so nothing is committed; callers
    may retry the request.
    """
    default_code = "INVARIANT_VIOLATION"
    retryable = True

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["retryable"] = True
        return detail


async def roleguard_error_handler(request: Request, exc: RoleGuardError) -> JSONResponse:
    """Render a domain error as a JSON response."""
    if isinstance(exc, InvariantViolation):
        logger.error("[errors] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.warning("[errors] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})
