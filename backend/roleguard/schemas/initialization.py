# roleguard/schemas/initialization.py
"""
Pydantic schemas for the first-run initialization endpoint.
"""
from typing import Optional

from pydantic import BaseModel, Field


class InitializeSystemIn(BaseModel):
    """
    Credentials for the first SuperAdmin account.
    """
    username: str = Field(min_length=1, max_length=256)
    email: Optional[str] = Field(default=None, max_length=256)
    password: str = Field(min_length=8)


class InitializationOut(BaseModel):
    rolesCreated: bool
    rolesCount: int
    userCreated: bool = True
    userId: str
    message: str
