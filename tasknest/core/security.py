"""
Security utilities.

Password hashing, JWT token creation/validation, invite codes.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt as _bcrypt
from jose import JWTError, jwt

from tasknest.core.config import settings


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt (cost=12)."""
    password_bytes = password.encode("utf-8")[:72]
    salt = _bcrypt.gensalt(rounds=12)
    return _bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    password_bytes = plain_password.encode("utf-8")[:72]
    return _bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))


# ---------------------------------------------------------------------------
# JWT tokens
# ---------------------------------------------------------------------------

def create_access_token(user_id: str, jti: str | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: The user's UUID as string.
        jti: Optional JWT ID. Generated if not provided.

    Returns:
        Signed JWT string.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "jti": jti or str(uuid.uuid4()),
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        JWTError: If the token is invalid, expired, tampered or of the wrong type.
    """
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    return payload


def token_ttl_seconds(payload: dict[str, Any]) -> int:
    """Seconds left before the token in ``payload`` expires (never below 1)."""
    remaining = int(payload.get("exp", 0)) - int(datetime.now(UTC).timestamp())
    return max(remaining, 1)


# ---------------------------------------------------------------------------
# Redis key helpers
# ---------------------------------------------------------------------------

def blacklist_redis_key(jti: str) -> str:
    """Redis key for a blacklisted access token JTI. Format: blacklist:{jti}"""
    return f"blacklist:{jti}"


# ---------------------------------------------------------------------------
# Invite codes
# ---------------------------------------------------------------------------

def generate_invite_code() -> str:
    """
    Generate a shareable invite code of the form ``xxxx-xxxx-xxxx``.

    Twelve lowercase hex digits drawn from 6 random bytes.
    """
    raw = secrets.token_hex(6)
    return f"{raw[0:4]}-{raw[4:8]}-{raw[8:12]}"
