# roleguard/core/security.py
"""
Security module for authentication.
Handles password hashing, JWT token creation/validation, and cryptographic operations.
"""
import datetime as dt
from typing import Iterable

import jwt  # PyJWT
from passlib.context import CryptContext

from roleguard.config import settings

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# JWT configuration
JWT_SECRET = settings.jwt_secret
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes
JWT_ALG = "HS256"  # HMAC SHA-256


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: str, roles: Iterable[str]) -> str:
    """
    Create a JWT access token for user authentication.

    The role names are embedded for clients that want to render role-aware
    UI. The server never authorizes from these claims alone: the current
    role set is re-read from the identity store on every request.

    Args:
        user_id: Unique user identifier (UUID string)
        roles: Names of the roles held by the user at login time

    Returns:
        Encoded JWT token string

    Token payload includes:
        - sub: Subject (user ID)
        - roles: List of role names
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "roles": sorted(roles),
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload dictionary containing sub, roles, iat, exp

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
