# videomanager/api/v1/routers/auth.py
from __future__ import annotations

"""
Authentication API — Video Manager
==================================

Endpoints
---------
POST /auth/login
    Username+password sign-in against the `USER_<n>` registry. Returns a
    signed access token.

GET /auth/verify
    Confirms the presented bearer token is valid.

Security & DX
-------------
- **Route rate limit** on login.
- **Sensitive cache headers** on token-issuing routes (no-store).
- Neutral error message for unknown user and wrong password alike.

Notes
-----
- We return Pydantic models directly so headers set on `response` (e.g.,
  `Cache-Control: no-store`) are preserved by FastAPI.
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Request, Response

from videomanager.core.config import settings
from videomanager.core.exceptions import AppException, ValidationError
from videomanager.core.limiter import rate_limit
from videomanager.core.security import authenticate_user, create_access_token, get_current_user
from videomanager.schemas.auth import LoginRequest, LoginResponse, VerifyResponse
from videomanager.security_headers import set_sensitive_cache

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────
# 🔐 POST /auth/login — Username + Password
# ──────────────────────────────────────────────────────────────
@router.post("/login", response_model=LoginResponse, summary="Username + password login")
@rate_limit("10/minute")
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest = Body(...),
) -> LoginResponse:
    """Authenticate with username/password and issue an access token."""
    # [Step 0] Cache hardening
    set_sensitive_cache(response)

    # [Step 1] Required fields
    username = payload.username.strip()
    if not username or not payload.password:
        raise ValidationError("Username and password are required")

    # [Step 2] bcrypt verify off the event loop
    ok = await asyncio.to_thread(authenticate_user, username, payload.password)
    if not ok:
        logger.warning("Login failed for user=%s", username)
        raise AppException("Invalid credentials", status_code=401, kind="InvalidCredentials")

    # [Step 3] Mint token
    token = create_access_token(username)
    logger.info("Login succeeded for user=%s", username)
    return LoginResponse(
        token=token,
        username=username,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ──────────────────────────────────────────────────────────────
# ✅ GET /auth/verify — Token check
# ──────────────────────────────────────────────────────────────
@router.get("/verify", response_model=VerifyResponse, summary="Verify the bearer token")
async def verify(response: Response, username: str = Depends(get_current_user)) -> VerifyResponse:
    set_sensitive_cache(response)
    return VerifyResponse(valid=True, username=username)


__all__ = ["router", "login", "verify"]
