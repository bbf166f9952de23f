# roleguard/api/v1/deps.py
import uuid

from fastapi import Depends, Header, HTTPException, Request, status

from roleguard.core.roles import ADMIN_POLICIES, has_capability
from roleguard.core.security import decode_access_token
from roleguard.models.user import User
from roleguard.services.identity_store import get_role_names


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
):
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    The user's current role names are loaded from the identity store and
    attached as `user.role_names`; role claims inside the token are ignored
    for authorization.

    Raises:
        HTTPException (401): AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_USER_NOT_FOUND
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    user.role_names = await get_role_names(user)
    return user


def require_capability(capability: str):
    """
    Build a dependency that admits only users holding an admin capability.

    Every capability also implies the base `admin.access` requirement
    (SuperAdmin, Administrator or Manager).

    Usage:
        @router.delete("/users/{user_id}")
        async def delete_user(actor: User = Depends(require_capability("users.delete"))):
            ...
    """
    if capability not in ADMIN_POLICIES:
        raise KeyError(f"Unknown admin capability: {capability}")

    async def _dependency(current: User = Depends(get_current_user)) -> User:
        if not has_capability(current.role_names, "admin.access"):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
        if not has_capability(current.role_names, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": f"Missing capability: {capability}"},
            )
        return current

    return _dependency
