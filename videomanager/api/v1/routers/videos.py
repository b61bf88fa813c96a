# videomanager/api/v1/routers/videos.py
from __future__ import annotations

"""
📼 Video Manager · Videos
=========================

Routes (7)
----------
- GET    /videos?folder=&recursive=        → List videos in a folder (exact membership)
- POST   /upload                           → Proxied multipart upload (`video`, `folder`)
- POST   /videos/presign                   → Presigned PUT for direct uploads
- DELETE /videos/{key}                     → Recycle an active video / purge a recycled one
- PUT    /videos/{key}/rename              → Rename within the same folder
- PUT    /videos/{key}/move                → Move to another folder
- PUT    /videos/{key}/restore             → Restore from the Recycle Bin

Security & Operations
---------------------
- Bearer token required on every route
- `no-store` on every response
- Upload guard: `MAX_UPLOAD_BYTES` (413), video content type or extension (415)
- The boto3 client is synchronous; service calls run in a worker thread
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, Response, UploadFile, status

from videomanager.core.config import settings
from videomanager.core.exceptions import InvalidName, PayloadTooLarge, UnsupportedMediaType
from videomanager.core.security import get_current_user
from videomanager.core.storage import video_extension_pattern
from videomanager.dependencies.storage import get_lifecycle, get_video_registry
from videomanager.schemas.videos import (
    DeleteVideoResult,
    MoveVideoRequest,
    PresignRequest,
    PresignResult,
    RenameVideoRequest,
    RenameVideoResult,
    RestoreVideoResult,
    UploadResult,
    VideoList,
    VideoOut,
)
from videomanager.security_headers import set_sensitive_cache
from videomanager.services.key_codec import normalize_folder
from videomanager.services.lifecycle import DeleteOutcome, LifecycleManager
from videomanager.services.video_registry import VideoRegistry

router = APIRouter(tags=["Videos"], dependencies=[Depends(get_current_user)])


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _ensure_video_type(content_type: Optional[str], file_name: str) -> None:
    ct = (content_type or "").lower()
    if ct.startswith("video/"):
        return
    if video_extension_pattern(settings.VIDEO_EXTENSIONS).search(file_name):
        return
    raise UnsupportedMediaType(
        "Only video files are accepted",
        details={"content_type": content_type, "file_name": file_name},
    )


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return int(upload.size)
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


# ─────────────────────────────────────────────────────────────────────────────
# 📄 Listing
# ─────────────────────────────────────────────────────────────────────────────
@router.get("/videos", response_model=VideoList, summary="List videos in a folder")
async def list_videos(
    response: Response,
    folder: Optional[str] = Query(None, description="Folder path; empty means Uncategorized"),
    recursive: bool = Query(False, description="Include videos in nested folders"),
    registry: VideoRegistry = Depends(get_video_registry),
) -> VideoList:
    set_sensitive_cache(response)
    assets = await asyncio.to_thread(registry.list_videos, folder, recursive=recursive)
    return VideoList(folder=normalize_folder(folder), videos=[VideoOut.from_asset(a) for a in assets])


# ─────────────────────────────────────────────────────────────────────────────
# ⬆️ Uploads
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/upload", response_model=UploadResult, status_code=status.HTTP_201_CREATED, summary="Upload a video")
async def upload_video(
    response: Response,
    video: UploadFile = File(...),
    folder: str = Form("Uncategorized"),
    registry: VideoRegistry = Depends(get_video_registry),
) -> UploadResult:
    """Stream the multipart file to `{folder}/{filename}`; an existing key is replaced."""
    set_sensitive_cache(response)
    file_name = video.filename or ""
    if not file_name:
        raise InvalidName("Uploaded file has no name")
    _ensure_video_type(video.content_type, file_name)
    if _upload_size(video) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLarge("File exceeds the upload limit", details={"max_bytes": settings.MAX_UPLOAD_BYTES})

    key = await asyncio.to_thread(
        registry.upload_video,
        video.file,
        folder,
        file_name,
        content_type=video.content_type or "application/octet-stream",
    )
    return UploadResult(key=key, url=registry.public_url(key))


@router.post("/videos/presign", response_model=PresignResult, summary="Presigned PUT for a direct upload")
async def presign_upload(
    response: Response,
    payload: PresignRequest = Body(...),
    registry: VideoRegistry = Depends(get_video_registry),
) -> PresignResult:
    set_sensitive_cache(response)
    _ensure_video_type(payload.content_type, payload.file_name)
    slot = await asyncio.to_thread(
        registry.presign_upload, payload.folder, payload.file_name, content_type=payload.content_type
    )
    return PresignResult(upload_url=slot.upload_url, key=slot.key, url=slot.url, expires_in=slot.expires_in)


# ─────────────────────────────────────────────────────────────────────────────
# ♻️ Lifecycle
# ─────────────────────────────────────────────────────────────────────────────
@router.delete("/videos/{key:path}", response_model=DeleteVideoResult, summary="Delete a video")
async def delete_video(
    key: str,
    response: Response,
    lifecycle: LifecycleManager = Depends(get_lifecycle),
) -> DeleteVideoResult:
    """Active videos go to the Recycle Bin; Recycle Bin entries are deleted permanently."""
    set_sensitive_cache(response)
    result = await asyncio.to_thread(lifecycle.delete_video, key)
    recycled = result.outcome is DeleteOutcome.RECYCLED
    return DeleteVideoResult(
        outcome=result.outcome.value,
        moved_to_recycle_bin=recycled,
        permanent=not recycled,
        recycle_key=result.recycle_key,
    )


@router.put("/videos/{key:path}/rename", response_model=RenameVideoResult, summary="Rename a video")
async def rename_video(
    key: str,
    response: Response,
    payload: RenameVideoRequest = Body(...),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
) -> RenameVideoResult:
    set_sensitive_cache(response)
    new_key = await asyncio.to_thread(lifecycle.rename, key, payload.new_name)
    return RenameVideoResult(new_key=new_key, url=lifecycle.store.public_url(new_key))


@router.put("/videos/{key:path}/move", response_model=RenameVideoResult, summary="Move a video")
async def move_video(
    key: str,
    response: Response,
    payload: MoveVideoRequest = Body(...),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
) -> RenameVideoResult:
    """Refused with `DestinationConflict` when the target folder already has that file name."""
    set_sensitive_cache(response)
    new_key = await asyncio.to_thread(lifecycle.move, key, payload.target_folder)
    return RenameVideoResult(new_key=new_key, url=lifecycle.store.public_url(new_key))


@router.put("/videos/{key:path}/restore", response_model=RestoreVideoResult, summary="Restore a video")
async def restore_video(
    key: str,
    response: Response,
    lifecycle: LifecycleManager = Depends(get_lifecycle),
) -> RestoreVideoResult:
    set_sensitive_cache(response)
    restored = await asyncio.to_thread(lifecycle.restore, key)
    return RestoreVideoResult(restored_key=restored, url=lifecycle.store.public_url(restored))


__all__ = ["router"]
