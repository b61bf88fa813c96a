# tests/test_api/test_videos_routes.py

from urllib.parse import quote

import pytest
from httpx import AsyncClient

from tests.fixtures.mocks.s3 import BASE_URL, InMemoryS3
from videomanager.core.config import settings


# ─────────────────────────────────────────────────────────────
# 📄 Listing
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_list_videos_in_folder(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/.keep", b"")
    store.seed("Trips/a.mp4", b"12345")
    store.seed("Trips/2024/b.mp4")

    resp = await async_client.get("/api/videos", params={"folder": "Trips"}, headers=auth_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["folder"] == "Trips"
    [video] = body["videos"]
    assert video["key"] == "Trips/a.mp4"
    assert video["name"] == "a.mp4"
    assert video["size"] == 5
    assert video["folder"] == "Trips"
    assert video["url"] == f"{BASE_URL}/Trips/a.mp4"
    assert resp.headers["Cache-Control"] == "no-store"


@pytest.mark.anyio
async def test_list_videos_defaults_to_uncategorized(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("root.mp4")
    store.seed("Trips/a.mp4")

    resp = await async_client.get("/api/videos", headers=auth_headers)

    assert resp.json()["folder"] == "Uncategorized"
    assert [v["key"] for v in resp.json()["videos"]] == ["root.mp4"]


@pytest.mark.anyio
async def test_list_videos_recursive(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/a.mp4")
    store.seed("Trips/2024/b.mp4")

    resp = await async_client.get("/api/videos", params={"folder": "Trips", "recursive": "true"}, headers=auth_headers)

    assert [v["key"] for v in resp.json()["videos"]] == ["Trips/2024/b.mp4", "Trips/a.mp4"]


# ─────────────────────────────────────────────────────────────
# ⬆️ Uploads
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_upload_video(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(
        "/api/upload",
        files={"video": ("clip one.mp4", b"\x00\x01data", "video/mp4")},
        data={"folder": "Trips/2024"},
        headers=auth_headers,
    )

    assert resp.status_code == 201, resp.text
    assert resp.json() == {
        "success": True,
        "key": "Trips/2024/clip one.mp4",
        "url": f"{BASE_URL}/Trips/2024/clip%20one.mp4",
    }
    assert store.objects["Trips/2024/clip one.mp4"][0] == b"\x00\x01data"


@pytest.mark.anyio
async def test_upload_without_folder_goes_to_root(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(
        "/api/upload", files={"video": ("a.mkv", b"x", "application/octet-stream")}, headers=auth_headers
    )
    assert resp.status_code == 201
    assert resp.json()["key"] == "a.mkv"


@pytest.mark.anyio
async def test_upload_rejects_non_video(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(
        "/api/upload", files={"video": ("notes.txt", b"x", "text/plain")}, headers=auth_headers
    )
    assert resp.status_code == 415
    assert store.keys() == []


@pytest.mark.anyio
async def test_upload_size_limit(async_client: AsyncClient, store: InMemoryS3, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    resp = await async_client.post(
        "/api/upload", files={"video": ("a.mp4", b"123456", "video/mp4")}, headers=auth_headers
    )
    assert resp.status_code == 413
    assert resp.json()["details"] == {"max_bytes": 4}
    assert store.keys() == []


@pytest.mark.anyio
async def test_upload_into_recycle_bin_is_refused(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(
        "/api/upload",
        files={"video": ("a.mp4", b"x", "video/mp4")},
        data={"folder": "Recycle Bin"},
        headers=auth_headers,
    )
    assert resp.status_code == 403
    assert store.keys() == []


@pytest.mark.anyio
async def test_presign_upload(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    resp = await async_client.post(
        "/api/videos/presign",
        json={"folder": "Trips", "fileName": "a.mp4", "contentType": "video/mp4"},
        headers=auth_headers,
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["key"] == "Trips/a.mp4"
    assert body["url"] == f"{BASE_URL}/Trips/a.mp4"
    assert body["expires_in"] == settings.PRESIGN_TTL_SECONDS
    assert "X-Amz-Signature" in body["upload_url"]


# ─────────────────────────────────────────────────────────────
# ♻️ Lifecycle
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_delete_restore_purge_flow(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/2024/my_clip.mp4")

    deleted = await async_client.delete("/api/videos/Trips/2024/my_clip.mp4", headers=auth_headers)
    assert deleted.status_code == 200, deleted.text
    body = deleted.json()
    assert body["outcome"] == "recycled"
    assert body["moved_to_recycle_bin"] is True
    assert body["permanent"] is False
    recycle_key = body["recycle_key"]
    assert recycle_key.startswith("Recycle Bin/")
    assert recycle_key.endswith("_Trips_2024_my%5Fclip.mp4")
    assert store.keys() == [recycle_key]

    restored = await async_client.put(f"/api/videos/{quote(recycle_key)}/restore", headers=auth_headers)
    assert restored.status_code == 200, restored.text
    assert restored.json()["restored_key"] == "Trips/2024/my_clip.mp4"
    assert store.keys() == ["Trips/2024/my_clip.mp4"]

    await async_client.delete("/api/videos/Trips/2024/my_clip.mp4", headers=auth_headers)
    [recycled] = store.keys()
    purged = await async_client.delete(f"/api/videos/{quote(recycled)}", headers=auth_headers)
    assert purged.json()["outcome"] == "purged"
    assert purged.json()["permanent"] is True
    assert store.keys() == []


@pytest.mark.anyio
async def test_delete_missing_video_is_404(async_client: AsyncClient, auth_headers):
    resp = await async_client.delete("/api/videos/Trips/ghost.mp4", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["kind"] == "VideoNotFound"


@pytest.mark.anyio
async def test_restore_active_video_is_400(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/a.mp4")
    resp = await async_client.put("/api/videos/Trips/a.mp4/restore", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "NotInRecycleBin"
    assert resp.json()["detail"] == "Only items in Recycle Bin can be restored"


@pytest.mark.anyio
async def test_rename_video(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/a.mp4")
    resp = await async_client.put("/api/videos/Trips/a.mp4/rename", json={"newName": "b.mp4"}, headers=auth_headers)

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "new_key": "Trips/b.mp4", "url": f"{BASE_URL}/Trips/b.mp4"}
    assert store.keys() == ["Trips/b.mp4"]


@pytest.mark.anyio
async def test_rename_video_requires_name(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/a.mp4")
    resp = await async_client.put("/api/videos/Trips/a.mp4/rename", json={}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "NewNameRequired"
    assert store.mutations() == []


@pytest.mark.anyio
async def test_move_video(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("a.mp4")
    resp = await async_client.put("/api/videos/a.mp4/move", json={"targetFolder": "Trips"}, headers=auth_headers)

    assert resp.status_code == 200, resp.text
    assert resp.json()["new_key"] == "Trips/a.mp4"
    assert store.keys() == ["Trips/a.mp4"]


@pytest.mark.anyio
async def test_move_video_destination_conflict(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("a.mp4")
    store.seed("Trips/a.mp4")
    resp = await async_client.put("/api/videos/a.mp4/move", json={"targetFolder": "Trips"}, headers=auth_headers)

    assert resp.status_code == 409
    assert resp.json()["kind"] == "DestinationConflict"
    assert resp.json()["details"] == {"destination_key": "Trips/a.mp4"}


@pytest.mark.anyio
async def test_move_partial_failure_is_500(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("a.mp4")
    store.fail_on("delete")
    resp = await async_client.put("/api/videos/a.mp4/move", json={"targetFolder": "Trips"}, headers=auth_headers)

    assert resp.status_code == 500
    body = resp.json()
    assert body["kind"] == "PartialApplication"
    assert body["details"]["duplicate_possible"] is True
    assert store.keys() == ["Trips/a.mp4", "a.mp4"]


@pytest.mark.anyio
async def test_video_routes_require_token(async_client: AsyncClient):
    resp = await async_client.get("/api/videos")
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_move_without_target_folder_is_400(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/2024/clip.mp4")
    resp = await async_client.put("/api/videos/Trips/2024/clip.mp4/move", json={}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"
    assert resp.json()["detail"] == "Target folder is required"
    assert store.mutations() == []
    assert store.keys() == ["Trips/2024/clip.mp4"]


@pytest.mark.anyio
async def test_delete_folder_placeholder_is_refused(async_client: AsyncClient, store: InMemoryS3, auth_headers):
    store.seed("Trips/.keep", b"")
    resp = await async_client.delete("/api/videos/Trips/.keep", headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["kind"] == "InvalidName"
    assert store.keys() == ["Trips/.keep"]
