# videomanager/core/config.py
from __future__ import annotations

"""
# Video Manager — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Storage and CDN are optional so imports never crash in dev/tests.
- Login users come from `USER_1`, `USER_2`, ... (`username:bcrypt-hash`),
  scanned contiguously until the first missing index.

## Usage
    from videomanager.core.config import settings
"""

import logging
import os
from typing import Annotated, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()


ConflictPolicy = Literal["overwrite", "reject"]


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_url_like(v: str | None) -> str:
    """Normalize to an https URL string without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Notes:
        - `AWS_BUCKET_NAME` also accepts the legacy `AWS_S3_BUCKET` name.
        - Conflict policies decide what `rename`/`restore` do when the
          destination key is already taken (`move` always rejects).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Video Manager API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(..., validation_alias=AliasChoices("JWT_SECRET_KEY", "JWT_SECRET"))
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(24 * 60, ge=5, le=7 * 24 * 60)
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None

    # ── CORS ──────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )

    # ── Object storage / CDN ──────────────────────────────────
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_SESSION_TOKEN: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-1"
    AWS_BUCKET_NAME: Optional[str] = Field(
        None, validation_alias=AliasChoices("AWS_BUCKET_NAME", "AWS_S3_BUCKET")
    )
    AWS_S3_ENDPOINT_URL: Optional[str] = None
    CLOUDFRONT_DOMAIN: Optional[str] = None  # cdn.example.com or https://cdn.example.com
    PRESIGN_TTL_SECONDS: int = Field(900, ge=60, le=7 * 24 * 60 * 60)

    # ── Catalog policy ────────────────────────────────────────
    VIDEO_EXTENSIONS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["mp4", "webm", "mov", "avi", "mkv"])
    MAX_UPLOAD_BYTES: int = Field(500 * 1024 * 1024, ge=1)
    RENAME_CONFLICT_POLICY: ConflictPolicy = "overwrite"
    RESTORE_CONFLICT_POLICY: ConflictPolicy = "overwrite"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("VIDEO_EXTENSIONS", mode="before")
    @classmethod
    def _assemble_video_extensions(cls, v: str | List[str]):
        items = _split_csv(v) if isinstance(v, str) else list(v or [])
        return [str(x).strip().lstrip(".").lower() for x in items if str(x).strip()]

    @field_validator("CLOUDFRONT_DOMAIN", mode="before")
    @classmethod
    def _normalize_cdn_domain(cls, v: str | None) -> str | None:
        """
        Accepts either 'cdn.example.com' or 'https://cdn.example.com' and
        normalizes to 'https://cdn.example.com' (no trailing slash).
        """
        return _normalize_url_like(v) or None

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def public_base_url(self) -> str:
        """Origin used for public video links (CDN when configured, else S3 website host)."""
        return self.public_origin_for(self.AWS_BUCKET_NAME, self.AWS_REGION)

    def public_origin_for(self, bucket: str | None, region: str | None) -> str:
        """Public origin for an explicit bucket/region; `CLOUDFRONT_DOMAIN` wins when set."""
        if self.CLOUDFRONT_DOMAIN:
            return self.CLOUDFRONT_DOMAIN
        return f"https://{bucket}.s3.{region or self.AWS_REGION}.amazonaws.com"

    @property
    def users(self) -> Dict[str, str]:
        """Login users as `{username: bcrypt_hash}` from `USER_<n>` env vars."""
        return load_users(os.environ)


def load_users(environ) -> Dict[str, str]:
    """
    Read `USER_1`, `USER_2`, ... until the first gap.

    Each value is `username:hash`. The hash itself may contain ':' so only
    the first separator splits. Malformed entries are skipped.
    """
    users: Dict[str, str] = {}
    i = 1
    while environ.get(f"USER_{i}"):
        raw = environ[f"USER_{i}"]
        username, sep, hashed = raw.partition(":")
        if sep and username.strip() and hashed.strip():
            users[username.strip()] = hashed.strip()
        else:
            log.warning("Ignoring malformed USER_%d entry", i)
        i += 1
    return users


settings = Settings()

__all__ = ["Settings", "settings", "load_users", "ConflictPolicy"]
