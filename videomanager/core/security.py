# videomanager/core/security.py
from __future__ import annotations

"""
Video Manager — Authentication & Security Helpers
=================================================
- User registry from `USER_<n>` env entries (`username:bcrypt-hash`)
- bcrypt password verification (passlib)
- Access token creation (iss/aud/iat/nbf/jti)
- FastAPI dependency guarding every catalog route (the access gate)

Decoding is delegated to `videomanager.core.jwt`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import Request
from jose import jwt
from passlib.context import CryptContext

from videomanager.core.config import settings
from videomanager.core.jwt import get_token_payload

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger("videomanager.security")

# Verified against when the username is unknown, so both paths cost one bcrypt round.
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted hash using Passlib's bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify of a plaintext password against a stored hash.

    Malformed stored hashes verify as False instead of raising.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def authenticate_user(username: str, password: str, users: Optional[Dict[str, str]] = None) -> bool:
    """True when `username` is registered and `password` matches its hash."""
    registry = settings.users if users is None else users
    hashed = registry.get(username)
    if hashed is None:
        verify_password(password, _DUMMY_HASH)
        return False
    return verify_password(password, hashed)


# ───────────────────────────────────────────────
# 🪪 JWT — Access Token Generation
# ───────────────────────────────────────────────
def create_access_token(username: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed **access token** for `username`."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload: Dict[str, Any] = {
        "sub": username,
        "exp": expire,
        "iat": now,
        "nbf": now,
        "jti": str(uuid4()),
    }
    if settings.JWT_ISSUER:
        payload["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


# ───────────────────────────────────────────────
# 👤 Dependency — Get Current User
# ───────────────────────────────────────────────
async def get_current_user(request: Request) -> str:
    """Authenticate the caller from the presented bearer token.

    Returns the username and records it on `request.state` (rate-limit keying).
    Missing token → 401, invalid/expired token → 403.
    """
    payload = get_token_payload(request)
    username = str(payload["sub"])
    request.state.username = username
    logger.debug("[Auth] Authenticated user=%s", username)
    return username


__all__ = [
    "pwd_context",
    "get_password_hash",
    "verify_password",
    "authenticate_user",
    "create_access_token",
    "get_current_user",
]
