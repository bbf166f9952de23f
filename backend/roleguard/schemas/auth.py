# roleguard/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request/response models for registration, login and user information.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    username: str  # User login name
    password: str  # User password (plain text, will be hashed server-side)


class RegisterIn(BaseModel):
    username: str = Field(min_length=1, max_length=256)
    email: Optional[str] = Field(default=None, max_length=256)
    password: str


class ChangePasswordIn(BaseModel):
    newPassword: str = Field(min_length=6)


class UserOut(BaseModel):
    """
    User information model returned in authentication responses.
    Contains basic user details without sensitive information.
    """
    id: str  # User unique identifier
    username: str  # User login name
    email: Optional[str] = None
    roles: List[str] = []  # Role names, highest rank first


class LoginResponse(BaseModel):
    """
    Response model for successful login.
    Returns user information and access token for authenticated requests.
    """
    user: UserOut
    accessToken: str  # JWT access token for API authentication
