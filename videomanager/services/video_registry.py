# videomanager/services/video_registry.py
from __future__ import annotations

"""
🎞️ Video Manager • Video Registry
=================================

Lists stored objects per folder and decorates them for display
(`name`, `size`, `last_modified`, `folder`, public `url`), plus the two
ways new videos enter the bucket: a proxied upload and a presigned PUT.

Folder membership is exact: listing `Trips` does not return videos stored
under `Trips/2024`. `Uncategorized` covers root-level keys and keys directly
under an explicit `Uncategorized/` prefix. `recursive=True` widens the
listing to every descendant (for `Uncategorized`, every active object).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, List, Optional

from videomanager.core.metrics import inc_lifecycle
from videomanager.core.storage import DELIMITER, UNCATEGORIZED
from videomanager.services.key_codec import (
    ensure_not_reserved,
    folder_prefix,
    is_directory_marker,
    is_placeholder,
    is_recycled,
    normalize_folder,
    split_key,
    to_storage_key,
)
from videomanager.utils.aws import ObjectInfo, S3Client, store_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoAsset:
    """Display projection of one stored object (never persisted)."""

    key: str
    name: str
    size: int
    last_modified: Optional[datetime]
    folder: str
    url: str


@dataclass(frozen=True)
class PresignedUpload:
    upload_url: str
    key: str
    url: str
    expires_in: int


class VideoRegistry:
    """Read side of the catalog plus upload entry points."""

    def __init__(self, store: S3Client, *, presign_ttl: int = 900) -> None:
        self.store = store
        self.presign_ttl = presign_ttl

    # ─────────────────────────────────────────────────────────
    # 🔎 Listing
    # ─────────────────────────────────────────────────────────
    def list_videos(self, folder: Optional[str] = None, *, recursive: bool = False) -> List[VideoAsset]:
        f = normalize_folder(folder)
        with store_errors("list videos"):
            if f == UNCATEGORIZED:
                objects = self._list_uncategorized(recursive)
            else:
                delimiter = None if recursive else DELIMITER
                objects = self.store.list_objects(folder_prefix(f), delimiter=delimiter).objects
        return [self.to_asset(o) for o in objects if self._is_listable(o.key)]

    def _list_uncategorized(self, recursive: bool) -> List[ObjectInfo]:
        if recursive:
            return [o for o in self.store.list_objects("").objects if not is_recycled(o.key)]
        root = self.store.list_objects("", delimiter=DELIMITER).objects
        tagged = self.store.list_objects(UNCATEGORIZED + DELIMITER, delimiter=DELIMITER).objects
        return [*root, *tagged]

    @staticmethod
    def _is_listable(key: str) -> bool:
        return not is_directory_marker(key) and not is_placeholder(key)

    def to_asset(self, obj: ObjectInfo) -> VideoAsset:
        folder, name = split_key(obj.key)
        return VideoAsset(
            key=obj.key,
            name=name,
            size=obj.size,
            last_modified=obj.last_modified,
            folder=folder,
            url=self.public_url(obj.key),
        )

    def public_url(self, key: str) -> str:
        return self.store.public_url(key)

    # ─────────────────────────────────────────────────────────
    # ⬆️ Uploads
    # ─────────────────────────────────────────────────────────
    def upload_target(self, folder: Optional[str], file_name: str) -> str:
        """Storage key for a new upload; uploads may not target reserved folders (except Uncategorized itself)."""
        f = normalize_folder(folder)
        if f != UNCATEGORIZED:
            f = ensure_not_reserved(f)
        return to_storage_key(f, file_name)

    def upload_video(
        self,
        fileobj: BinaryIO,
        folder: Optional[str],
        file_name: str,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Stream `fileobj` to `{folder}/{file_name}` and return the key.

        An existing object at that key is replaced. Uploading into a nested
        folder makes the folder and all its ancestors live.
        """
        key = self.upload_target(folder, file_name)
        with store_errors("upload video"):
            self.store.put_fileobj(key, fileobj, content_type=content_type)
        inc_lifecycle("upload", "ok")
        logger.info("Video uploaded: %s", key)
        return key

    def presign_upload(self, folder: Optional[str], file_name: str, *, content_type: str) -> PresignedUpload:
        """Presigned PUT slot for a direct browser-to-bucket upload."""
        key = self.upload_target(folder, file_name)
        with store_errors("presign upload"):
            upload_url = self.store.presigned_put(key, content_type=content_type, expires_in=self.presign_ttl)
        logger.info("Presigned upload issued: %s", key)
        return PresignedUpload(upload_url=upload_url, key=key, url=self.public_url(key), expires_in=self.presign_ttl)
