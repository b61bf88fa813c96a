# videomanager/core/jwt.py
from __future__ import annotations

"""
Video Manager — JWT helpers
===========================
- `decode_token` with optional issuer/audience enforcement
- Case-insensitive Bearer token extraction
- Convenience to decode directly from a FastAPI `Request`

Notes
-----
- Token *creation* lives in `videomanager.core.security`.
- Status codes follow the access gate contract: a **missing** token is 401,
  a present but invalid/expired token is 403.
- No `leeway` is passed to python-jose (unsupported); standard `exp`/`nbf`/`iat` checks apply.
"""

from typing import Any, Dict, Optional
import logging

from fastapi import Request, status
from jose import ExpiredSignatureError, JWTError, jwt

from videomanager.core.config import settings
from videomanager.core.exceptions import InvalidTokenException

logger = logging.getLogger("videomanager.auth")


# ─────────────────────────────────────────────────────────────
# 🔧 Internal helpers
# ─────────────────────────────────────────────────────────────

def _get_expected_issuer() -> Optional[str]:
    return settings.JWT_ISSUER or None


def _get_expected_audience() -> Optional[str]:
    return settings.JWT_AUDIENCE or None


def _forbidden(message: str) -> InvalidTokenException:
    return InvalidTokenException(message, status_code=status.HTTP_403_FORBIDDEN)


# ─────────────────────────────────────────────────────────────
# 🔓 Decode JWT Token
# ─────────────────────────────────────────────────────────────
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token.

    Security checks
    ---------------
    1) Verify signature and standard claims (exp/nbf/iat)
    2) Enforce issuer/audience when configured
    3) Require a `sub` (the username)

    Raises
    ------
    InvalidTokenException
      - 403 for invalid/expired tokens or a missing subject
    """
    issuer = _get_expected_issuer()
    audience = _get_expected_audience()
    options: Dict[str, Any] = {"verify_aud": bool(audience)}

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
            audience=audience,
            issuer=issuer,
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise _forbidden("Token has expired")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise _forbidden("Invalid token")

    if not payload.get("sub"):
        logger.warning("Missing sub in token payload.")
        raise _forbidden("Invalid token")

    return payload


# ─────────────────────────────────────────────────────────────
# 📥 Extract Bearer Token from Authorization Header
# ─────────────────────────────────────────────────────────────
def get_bearer_token(request: Request) -> str:
    """Extract a Bearer token from the `Authorization` header (case-insensitive)."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise InvalidTokenException("Access token required")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Malformed Authorization header")
        raise InvalidTokenException("Access token required")

    token = parts[1].strip()
    if not token:
        raise InvalidTokenException("Access token required")
    return token


def get_token_payload(request: Request) -> Dict[str, Any]:
    """Decode a JWT directly from a `Request`'s Authorization header."""
    payload = decode_token(get_bearer_token(request))
    logger.debug("Decoded JWT payload: sub=%s", payload.get("sub"))
    return payload


__all__ = ["decode_token", "get_bearer_token", "get_token_payload"]
