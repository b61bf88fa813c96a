# tests/test_obs/test_readyz.py
import importlib

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.fixtures.mocks.s3 import InMemoryS3
from videomanager.core.exception_handlers import install_exception_handlers
from videomanager.core.exceptions import StoreError


def _mk_app(monkeypatch, store_dep):
    mod = importlib.import_module("videomanager.api.v1.routers.ops")

    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_TEST_BYPASS", "1")

    app = FastAPI()
    install_exception_handlers(app)
    app.include_router(mod.router)
    app.dependency_overrides[mod.get_store] = store_dep
    return app, TestClient(app), mod


def test_readyz_bucket_reachable_returns_200_and_no_store(monkeypatch):
    store = InMemoryS3()
    app, client, mod = _mk_app(monkeypatch, lambda: store)

    r = client.get("/readyz")
    assert r.status_code == 200, r.text
    assert r.json() == {"ready": True, "checks": {"storage": True}}
    assert r.headers.get("Cache-Control", "").startswith("no-store")
    assert r.headers.get("Pragma") == "no-cache"


def test_readyz_bucket_unreachable_returns_503(monkeypatch):
    store = InMemoryS3()
    store.reachable = False
    app, client, mod = _mk_app(monkeypatch, lambda: store)

    r = client.get("/readyz")
    assert r.status_code == 503
    assert r.json() == {"ready": False, "checks": {"storage": False}}
    assert r.headers.get("Cache-Control", "").startswith("no-store")


def test_readyz_storage_not_configured_is_503(monkeypatch):
    def _unconfigured():
        raise StoreError("AWS_BUCKET_NAME not configured")

    app, client, mod = _mk_app(monkeypatch, _unconfigured)

    r = client.get("/readyz")
    assert r.status_code == 503
    assert r.json()["kind"] == "StoreError"
