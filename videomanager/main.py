# videomanager/main.py
from __future__ import annotations

"""
# Video Manager API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the video catalog backend
(folders, uploads, rename/move, Recycle Bin) over a single S3 bucket.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**:
  1) request id → 2) CORS → 3) gzip → 4) rate limits → 5) strip `Server` header.
- Centralized problem+json exception handling.
- Graceful local/dev behavior: a missing bucket setting never crashes import;
  storage routes answer 503 until it is configured.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (bucket HEAD).
- `/metrics` — Prometheus exposition.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import logging

from fastapi import FastAPI, Request
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from videomanager.core import logger as _logsetup  # noqa: F401

from videomanager.api.v1.routers import router as api_v1_router
from videomanager.api.v1.routers.ops import router as ops_router
from videomanager.core.config import settings
from videomanager.core.exception_handlers import install_exception_handlers
from videomanager.core.limiter import install_rate_limiter
from videomanager.middleware.request_id import RequestIDMiddleware
from videomanager.security_headers import configure_cors

logger = logging.getLogger("videomanager")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Log a startup banner with the bucket and CDN origin.
        - Warn when no login users or no bucket are configured.
    """
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)
    if not settings.AWS_BUCKET_NAME:
        logger.warning("AWS_BUCKET_NAME is not set; storage routes will answer 503")
    else:
        logger.info("Bucket=%s public_base=%s", settings.AWS_BUCKET_NAME, settings.public_base_url)
    if not settings.users:
        logger.warning("No USER_<n> entries configured; nobody can log in")
    try:
        yield
    finally:
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and probes.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)  # 1) Correlation ID
    configure_cors(app)  # 2) CORS allow-list
    app.add_middleware(GZipMiddleware, minimum_size=1024)  # 3) GZip

    # 4) Rate limiter (SlowAPI middleware + 429 handler)
    install_rate_limiter(app)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # 5) Strip the `Server` header at the end of the chain
    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers ──────────────────────────────────────────────────
    install_exception_handlers(app)

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)
    app.include_router(ops_router)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse({"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn videomanager.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("videomanager.main:app", host="0.0.0.0", port=3001, reload=False)
