# tests/test_auth/test_login.py

from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt

from tests.fixtures.auth import TEST_PASSWORD, TEST_USERNAME
from videomanager.core.config import settings
from videomanager.core.security import authenticate_user, create_access_token, get_password_hash, verify_password

LOGIN_URL = "/api/auth/login"
VERIFY_URL = "/api/auth/verify"


# ─────────────────────────────────────────────────────────────
# 🔐 Password helpers
# ─────────────────────────────────────────────────────────────
def test_password_hash_roundtrip_and_bad_hash():
    hashed = get_password_hash("s3cret")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_authenticate_user_with_explicit_registry():
    users = {"zed": get_password_hash("pw")}
    assert authenticate_user("zed", "pw", users)
    assert not authenticate_user("zed", "nope", users)
    assert not authenticate_user("ghost", "pw", users)


def test_access_token_claims():
    token = create_access_token("admin")
    claims = jwt.decode(token, settings.JWT_SECRET_KEY.get_secret_value(), algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == "admin"
    assert claims["exp"] - claims["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert claims["jti"]


# ─────────────────────────────────────────────────────────────
# 🌐 POST /auth/login
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_login_success_returns_token(async_client: AsyncClient):
    resp = await async_client.post(LOGIN_URL, json={"username": TEST_USERNAME, "password": TEST_PASSWORD})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["username"] == TEST_USERNAME
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert resp.headers["Cache-Control"] == "no-store"

    verify = await async_client.get(VERIFY_URL, headers={"Authorization": f"Bearer {body['token']}"})
    assert verify.status_code == 200
    assert verify.json() == {"valid": True, "username": TEST_USERNAME}


@pytest.mark.anyio
@pytest.mark.parametrize(
    "username, password",
    [(TEST_USERNAME, "wrong-password"), ("nobody", TEST_PASSWORD)],
)
async def test_login_failures_are_indistinguishable(async_client: AsyncClient, username, password):
    resp = await async_client.post(LOGIN_URL, json={"username": username, "password": password})

    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["kind"] == "InvalidCredentials"
    assert body["detail"] == "Invalid credentials"


@pytest.mark.anyio
@pytest.mark.parametrize("payload", [{}, {"username": "  ", "password": "x"}, {"username": "admin"}])
async def test_login_requires_both_fields(async_client: AsyncClient, payload):
    resp = await async_client.post(LOGIN_URL, json=payload)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"


# ─────────────────────────────────────────────────────────────
# 🚧 Access gate
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_missing_token_is_401(async_client: AsyncClient):
    resp = await async_client.get("/api/folders")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Access token required"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.anyio
async def test_malformed_header_is_401(async_client: AsyncClient):
    resp = await async_client.get("/api/folders", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_invalid_token_is_403(async_client: AsyncClient):
    resp = await async_client.get("/api/folders", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid token"


@pytest.mark.anyio
async def test_expired_token_is_403(async_client: AsyncClient):
    token = create_access_token("admin", expires_delta=timedelta(seconds=-5))
    resp = await async_client.get(VERIFY_URL, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Token has expired"


@pytest.mark.anyio
async def test_token_signed_with_other_secret_is_403(async_client: AsyncClient):
    forged = jwt.encode({"sub": "admin"}, "some-other-secret", algorithm="HS256")
    resp = await async_client.get(VERIFY_URL, headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 403
