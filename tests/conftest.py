# tests/conftest.py
"""
Global test bootstrap
- Seeds a deterministic environment (JWT secret, bucket, one login user)
- Makes SlowAPI rate-limiting test-friendly (disabled + bypassed)
- Pulls in the store / app / auth fixtures
"""

from __future__ import annotations

import os
import random

import pytest

from tests.fixtures.auth import user_entry

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env
#   NOTE: These are set BEFORE importing the app so `settings` and the limiter
#   (both read at import time) take them into account.
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-entropy-0123456789")
os.environ.setdefault("AWS_BUCKET_NAME", "test-bucket")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")
os.environ.setdefault("USER_1", user_entry())

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.app import *         # noqa: F401,F403,E402
from tests.fixtures.auth import *        # noqa: F401,F403,E402


@pytest.fixture
def anyio_backend():
    return "asyncio"
