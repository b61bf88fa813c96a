from __future__ import annotations

"""
Video Manager — HTTP Rate Limiting (SlowAPI)
============================================

Highlights
----------
- **User/IP aware** keying: per-user once the access gate sets
  `request.state.username`, else per client IP (XFF / X-Real-IP / client.host).
- **Exemptions**: health/docs/metrics paths, trusted IPs.
- **Test/CI friendly**: `RATE_LIMIT_ENABLED=false` builds a disabled limiter,
  `RATE_LIMIT_TEST_BYPASS` exempts every request, `RATE_LIMIT_NAMESPACE`
  prefixes keys.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "300/minute"
RATELIMIT_STORAGE_URI        default: "memory://"
RATE_LIMIT_SKIP_PATHS        default: "/healthz,/readyz,/metrics,/docs,/openapi.json"
RATE_LIMIT_TRUSTED_IPS       default: "" (comma separated)
RATE_LIMIT_NAMESPACE         default: ""
RATE_LIMIT_TEST_BYPASS       default: ""

Usage
-----
    @router.post("/auth/login")
    @rate_limit("10/minute")
    async def login(request: Request, response: Response, ...): ...
"""

import os
from typing import Callable, List, Optional, Set

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() == "true"
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "300/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip() or "memory://"
SKIP_PATHS: List[str] = [
    p.strip()
    for p in os.getenv("RATE_LIMIT_SKIP_PATHS", "/healthz,/readyz,/metrics,/docs,/openapi.json").split(",")
    if p.strip()
]
TRUSTED_IPS: Set[str] = {ip.strip() for ip in os.getenv("RATE_LIMIT_TRUSTED_IPS", "").split(",") if ip.strip()}
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()


# ──────────────────────────────────────────────────────────────
# 🧠 Keying & exemptions
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def _with_namespace(key: str) -> str:
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def get_rate_limit_key(request: Request) -> str:
    """`user:<username>` when authenticated, else `ip:<addr>`."""
    username = getattr(request.state, "username", None)
    if username:
        return _with_namespace(f"user:{username}")
    return _with_namespace(f"ip:{_client_ip(request)}")


def should_exempt_request(request: Optional[Request]) -> bool:
    # Env is re-read per request so tests can toggle without re-importing.
    if os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in _TRUTHY:
        return True
    if request is None:
        return False
    path = request.url.path
    if any(path == p or path.startswith(p.rstrip("/") + "/") for p in SKIP_PATHS):
        return True
    return _client_ip(request) in TRUSTED_IPS


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance
# ──────────────────────────────────────────────────────────────
def _default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=_default_limits(),
    headers_enabled=True,
    storage_uri=STORAGE_URI,
    enabled=RATE_LIMIT_ENABLED,
)


def _exempt_when(request: Optional[Request] = None) -> bool:
    return should_exempt_request(request)


# ──────────────────────────────────────────────────────────────
# 🎛 Decorators
# ──────────────────────────────────────────────────────────────
def rate_limit(*limits: str) -> Callable:
    """Apply per-route limits with our exemptions, e.g. `@rate_limit("10/minute")`."""
    selected = list(limits) if limits else _default_limits()
    decorators = [limiter.limit(value, exempt_when=_exempt_when) for value in selected]

    def _apply(fn: Callable) -> Callable:
        for deco in reversed(decorators):
            fn = deco(fn)
        return fn

    return _apply


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from default limits."""
    return limiter.exempt


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
def install_rate_limiter(app) -> None:
    """Attach SlowAPI state/middleware; no-op when disabled by env."""
    app.state.limiter = limiter
    if not RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by env; middleware not installed")
        return
    app.add_middleware(SlowAPIMiddleware)
    logger.info("SlowAPI middleware installed | default={} | storage={}", _default_limits(), STORAGE_URI)


__all__ = [
    "limiter",
    "rate_limit",
    "rate_limit_exempt",
    "install_rate_limiter",
    "get_rate_limit_key",
    "should_exempt_request",
]
