# videomanager/dependencies/storage.py
from __future__ import annotations

"""
FastAPI providers wiring the catalog services to the object store.

Tests swap the store with `app.dependency_overrides[get_store] = ...`; every
service provider depends on `get_store`, so one override covers them all.
"""

from functools import lru_cache

from fastapi import Depends

from videomanager.core.config import settings
from videomanager.core.exceptions import StoreError
from videomanager.core.storage import video_extension_pattern
from videomanager.services.folder_index import FolderIndex
from videomanager.services.lifecycle import LifecycleManager
from videomanager.services.video_registry import VideoRegistry
from videomanager.utils.aws import S3Client, S3StorageError


@lru_cache(maxsize=1)
def _shared_client() -> S3Client:
    return S3Client()


def get_store() -> S3Client:
    """Process-wide `S3Client`; 503 when storage is not configured."""
    try:
        return _shared_client()
    except S3StorageError as e:
        raise StoreError(str(e))


def get_folder_index(store: S3Client = Depends(get_store)) -> FolderIndex:
    return FolderIndex(store, video_pattern=video_extension_pattern(settings.VIDEO_EXTENSIONS))


def get_video_registry(store: S3Client = Depends(get_store)) -> VideoRegistry:
    return VideoRegistry(store, presign_ttl=settings.PRESIGN_TTL_SECONDS)


def get_lifecycle(store: S3Client = Depends(get_store)) -> LifecycleManager:
    return LifecycleManager(
        store,
        rename_policy=settings.RENAME_CONFLICT_POLICY,
        restore_policy=settings.RESTORE_CONFLICT_POLICY,
    )


__all__ = ["get_store", "get_folder_index", "get_video_registry", "get_lifecycle"]
