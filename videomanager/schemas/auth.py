# videomanager/schemas/auth.py

from pydantic import BaseModel


# ──────────────── Login ────────────────
class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str
    username: str
    expires_in: int
    token_type: str = "bearer"


# ──────────────── Verify ────────────────
class VerifyResponse(BaseModel):
    valid: bool = True
    username: str
