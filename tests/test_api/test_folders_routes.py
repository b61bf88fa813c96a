# tests/test_api/test_folders_routes.py

import pytest
from httpx import AsyncClient

from tests.fixtures.mocks.s3 import InMemoryS3
from videomanager.utils.aws import S3StorageError

BASE = "/api/folders"


@pytest.mark.anyio
async def test_list_folders(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/2024/a.mp4")
    store.seed("Work/.keep")

    resp = await async_client.get(BASE, headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json() == {"folders": ["Uncategorized", "Recycle Bin", "Trips", "Trips/2024", "Work"]}
    assert resp.headers["Cache-Control"] == "no-store"


@pytest.mark.anyio
async def test_create_folder(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(BASE, json={"folderName": "Trips/2024"}, headers=auth_headers)

    assert resp.status_code == 201, resp.text
    assert resp.json() == {"success": True, "folder": "Trips/2024"}
    assert store.keys() == ["Trips/2024/.keep"]


@pytest.mark.anyio
async def test_create_folder_twice_conflicts(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/.keep")
    resp = await async_client.post(BASE, json={"folder_name": "Trips"}, headers=auth_headers)

    assert resp.status_code == 409
    body = resp.json()
    assert body["kind"] == "FolderAlreadyExists"
    assert body["details"] == {"folder": "Trips"}
    assert body["request_id"] == resp.headers["X-Request-ID"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload, status, kind",
    [
        ({}, 400, "ValidationError"),
        ({"folderName": "Recycle Bin"}, 403, "ReservedFolder"),
        ({"folderName": "a/../b"}, 400, "InvalidPath"),
    ],
)
async def test_create_folder_rejections(async_client: AsyncClient, store: InMemoryS3, auth_headers, payload, status, kind):
    resp = await async_client.post(BASE, json=payload, headers=auth_headers)
    assert resp.status_code == status
    assert resp.json()["kind"] == kind
    assert store.calls == []


@pytest.mark.anyio
async def test_rename_folder(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/.keep")
    store.seed("Trips/a.mp4")

    resp = await async_client.put(
        f"{BASE}/rename", json={"oldName": "Trips", "newName": "Holidays"}, headers=auth_headers
    )

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "folder": "Holidays", "moved": 2}
    assert store.keys() == ["Holidays/.keep", "Holidays/a.mp4"]


@pytest.mark.anyio
async def test_rename_folder_requires_new_name(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/a.mp4")
    resp = await async_client.put(f"{BASE}/rename", json={"oldName": "Trips"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "NewNameRequired"


@pytest.mark.anyio
async def test_rename_folder_partial_failure_is_500(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    for key in ("Trips/a.mp4", "Trips/b.mp4"):
        store.seed(key)
    store.fail_on("copy", 2)

    resp = await async_client.put(
        f"{BASE}/rename", json={"oldName": "Trips", "newName": "Holidays"}, headers=auth_headers
    )

    assert resp.status_code == 500
    body = resp.json()
    assert body["kind"] == "PartialApplication"
    assert body["details"]["completed"] == 1
    assert body["details"]["total"] == 2
    assert body["details"]["failed_key"] == "Trips/b.mp4"


@pytest.mark.anyio
async def test_delete_folder(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/2024/.keep", b"")

    resp = await async_client.delete(f"{BASE}/Trips/2024", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "folder": "Trips/2024", "deleted": 1}
    assert store.keys() == []


@pytest.mark.anyio
async def test_delete_folder_with_videos_is_refused(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/.keep", b"")
    store.seed("Trips/2024/a.webm")

    resp = await async_client.delete(f"{BASE}/Trips", headers=auth_headers)

    assert resp.status_code == 409
    assert resp.json()["kind"] == "FolderNotEmpty"
    assert resp.json()["details"]["video_count"] == 1
    assert len(store.keys()) == 2


@pytest.mark.anyio
async def test_delete_unknown_folder(async_client: AsyncClient, auth_headers):
    resp = await async_client.delete(f"{BASE}/Ghost", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["kind"] == "FolderNotFound"


@pytest.mark.anyio
async def test_store_outage_is_503(async_client: AsyncClient, store: InMemoryS3, auth_headers, monkeypatch):
    def down(*a, **k):
        raise S3StorageError("connection refused")

    monkeypatch.setattr(store, "list_objects", down)
    resp = await async_client.get(BASE, headers=auth_headers)

    assert resp.status_code == 503
    assert resp.json()["kind"] == "StoreError"
