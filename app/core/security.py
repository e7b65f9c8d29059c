"""
Password hashing and JWT helpers.

Tokens carry `userId`, `name` and `role` and are signed with the configured
secret. They are only a hint: every request re-reads the user row.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import bcrypt
import jwt

from app.config import get_settings


class InvalidTokenError(Exception):
    """Token is malformed, tampered with, or expired."""
    pass


def hash_password(password: str) -> str:
    settings = get_settings()
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str, name: str, role: str) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id: Primary key of the user
        name: Display name
        role: "user" or "admin"

    Returns:
        Encoded JWT valid for `jwt_expire_hours`
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "name": name,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt_expire_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a token and return its payload.

    Raises:
        InvalidTokenError: Signature, expiry or payload check failed
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e

    if not payload.get("userId"):
        raise InvalidTokenError("Token has no userId")
    return payload
