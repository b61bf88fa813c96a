"""
🧭✨ Video Manager • API Router Aggregator
=========================================

Exports the **combined `router`** (ready to include under `API_V1_STR`) and a
`build_v1_router()` factory. Observability probes live in `ops` and are
mounted at the root by the app factory, not here.

Quick usage
-----------
    from videomanager.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api")

Security notes
--------------
- 🔐 This layer is a pure aggregator; **auth & rate limits live in child routers**.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .folders import router as folders_router
from .videos import router as videos_router


def build_v1_router() -> APIRouter:
    """
    Compose the catalog API into a single `APIRouter`.

    Includes:
      • Authentication (`/auth/login`, `/auth/verify`)
      • Folders (`/folders...`)
      • Videos (`/videos...`, `/upload`)
    """
    r = APIRouter()
    r.include_router(auth_router)
    r.include_router(folders_router)
    r.include_router(videos_router)
    return r


router = build_v1_router()

__all__ = ["router", "build_v1_router", "auth_router", "folders_router", "videos_router"]
