# videomanager/security_headers.py
from __future__ import annotations

"""
# Video Manager — CORS & Cache Headers

- **CORS installer**: strict allow-list from `settings.BACKEND_CORS_ORIGINS`
  (browser client origins), methods and headers the client actually uses.
- **Cache helper**: `set_sensitive_cache()` so listings and mutation results
  are never cached by proxies (the browser keeps its own display cache and
  drops it wholesale after any mutation).

## Quick start
    from videomanager.security_headers import configure_cors, set_sensitive_cache

    app = FastAPI()
    configure_cors(app)
"""

from typing import Iterable, Optional

from fastapi import Response
from starlette.middleware.cors import CORSMiddleware

from videomanager.core.config import settings

EXPOSE_HEADERS = ("X-Request-ID", "Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining")


def configure_cors(app, origins: Optional[Iterable[str]] = None) -> None:
    """Install CORS for the browser client (credentials allowed, explicit origins only)."""
    allow = [o.rstrip("/") for o in (origins if origins is not None else settings.BACKEND_CORS_ORIGINS)]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=list(EXPOSE_HEADERS),
    )


def set_sensitive_cache(response: Response, *, seconds: int = 0) -> None:
    """
    Mark a response as sensitive for caching.

    `seconds > 0` enables a short **private** cache and adds
    `Vary: Authorization` to prevent proxy leakage.
    """
    if seconds <= 0:
        response.headers["Cache-Control"] = "no-store"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    else:
        response.headers["Cache-Control"] = f"private, max-age={int(seconds)}"
        response.headers["Vary"] = "Authorization"


__all__ = ["configure_cors", "set_sensitive_cache"]
