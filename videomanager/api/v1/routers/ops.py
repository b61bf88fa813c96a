# videomanager/api/v1/routers/ops.py
# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ 🧩 Video Manager · Observability                                           ║
# ║                                                                            ║
# ║ Endpoints                                                                  ║
# ║  - GET /healthz   → Liveness (no external checks)                          ║
# ║  - GET /readyz    → Readiness (bucket HEAD)                                ║
# ║  - GET /metrics   → Prometheus exposition                                  ║
# ╠────────────────────────────────────────────────────────────────────────────╣
# ║ Probes are mounted at the root (not under the API prefix), exempt from     ║
# ║ rate limits, and never cached.                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from videomanager.core.limiter import rate_limit_exempt
from videomanager.dependencies.storage import get_store
from videomanager.utils.aws import S3Client

router = APIRouter(tags=["Observability"])


def _no_store_json(payload: Any, status_code: int = 200) -> JSONResponse:
    """Return a JSONResponse with strict no-store caching."""
    resp = JSONResponse(payload, status_code=status_code)
    resp.headers["Cache-Control"] = "no-store, max-age=0"
    resp.headers["Pragma"] = "no-cache"
    return resp


@router.get("/healthz")
@rate_limit_exempt()
async def healthz() -> JSONResponse:
    """Liveness probe: the process is responsive."""
    return _no_store_json({"ok": True})


@router.get("/readyz")
@rate_limit_exempt()
async def readyz(store: S3Client = Depends(get_store)) -> JSONResponse:
    """Readiness probe: the bucket answers HEAD. 503 when it does not."""
    storage_ok = await asyncio.to_thread(store.ping)
    return _no_store_json(
        {"ready": storage_ok, "checks": {"storage": storage_ok}},
        status_code=200 if storage_ok else 503,
    )


@router.get("/metrics")
@rate_limit_exempt()
def metrics() -> Response:
    """📈 Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router"]
