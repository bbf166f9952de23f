# roleguard/api/v1/routers/auth.py
from fastapi import APIRouter, HTTPException, Response, status, Depends

from roleguard.api.v1.deps import get_current_user
from roleguard.core.errors import RoleGuardError
from roleguard.core.security import verify_password, create_access_token, hash_password
from roleguard.models.user import User
from roleguard.schemas.auth import ChangePasswordIn, LoginRequest, LoginResponse, RegisterIn, UserOut
from roleguard.services.identity_store import create_user, get_role_names

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_out(user: User, roles: list[str]) -> dict:
    return UserOut(id=str(user.id), username=user.username, email=user.email, roles=roles).model_dump()


@router.post("/register")
async def register(body: RegisterIn):
    """
    Register a new user account with the User role.

    Args:
        body: Request body containing username, optional email and password

    Returns:
        dict: Success response with user data, or error response:
            - success: bool
            - data: dict with user id, username, email, roles (if success)
            - error: dict with error code and message (if failure)

    Error codes:
        - BAD_REQUEST: Missing username or password
        - USERNAME_EXISTS: Username already taken
        - EMAIL_EXISTS: Email already registered
        - ROLE_NOT_FOUND: System roles have not been seeded yet
    """
    try:
        u = await create_user(body.username, body.email, body.password)
    except RoleGuardError as exc:
        return {"success": False, "error": exc.to_detail()}
    return {"success": True, "data": _user_out(u, await get_role_names(u))}


@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate user and create access token.

    The token is returned in the response body and also set as an HttpOnly
    cookie for browser-based clients.

    Raises:
        HTTPException (401): If credentials are invalid
    """
    user = await User.get_or_none(username=payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Incorrect username or password"})
    roles = await get_role_names(user)
    token = create_access_token(str(user.id), roles)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": LoginResponse(user=_user_out(user, roles), accessToken=token).model_dump()}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Get current authenticated user information, including live role names.

    Raises:
        HTTPException (401): If user is not authenticated
    """
    return {"success": True, "data": _user_out(user, user.role_names)}


@router.post("/logout")
async def logout(response: Response):
    """
    Log out the current user by clearing the access token cookie.

    Note:
        The JWT itself remains valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}


@router.post("/change-password")
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change password for the currently authenticated user.

    Raises:
        HTTPException (401): If user is not authenticated
    """
    user.password_hash = hash_password(body.newPassword)
    await user.save()
    return {"success": True, "data": {"ok": True}}
