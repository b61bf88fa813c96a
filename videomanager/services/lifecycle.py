# videomanager/services/lifecycle.py
from __future__ import annotations

"""
♻️ Video Manager • Lifecycle Manager
====================================

State machine of one video:

    Active ──soft_delete──▶ Recycled ──purge──▶ (gone)
      ▲                        │
      └─────────restore────────┘

`rename` and `move` keep a video Active under a new key.

Every transition that relocates an object is **copy-then-delete**:

- copy fails   → nothing changed, `StoreError`
- delete fails → the object exists at both keys, `PartialApplicationError`
  with `duplicate_possible=True`

Pre-flight checks (validation, lifecycle state, source HEAD, destination
probe) all run before the first mutation.
Soft-delete probes its recycle key and bumps the timestamp past any
occupied entry, so a recycled copy is never replaced.

Destination conflicts
---------------------
- `move` always refuses an occupied destination (`DestinationConflict`).
- `rename` / `restore` follow their configured policy: `overwrite` replaces
  the existing object (logged), `reject` raises `DestinationConflict`.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from videomanager.core.config import ConflictPolicy
from videomanager.core.exceptions import (
    DestinationConflict,
    InvalidLifecycleState,
    InvalidName,
    MalformedRecycleKey,
    NewNameRequired,
    NoOpMove,
    NotInRecycleBin,
    PartialApplicationError,
    ValidationError,
    VideoNotFound,
)
from videomanager.core.metrics import inc_lifecycle
from videomanager.core.storage import DELIMITER, UNCATEGORIZED
from videomanager.services.key_codec import (
    decode_recycle_key,
    encode_recycle_key,
    ensure_not_reserved,
    is_placeholder,
    is_recycled,
    normalize_folder,
    split_key,
    to_storage_key,
    validate_file_name,
    validate_key,
)
from videomanager.utils.aws import S3Client, S3StorageError, store_errors

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class DeleteOutcome(str, Enum):
    RECYCLED = "recycled"
    PURGED = "purged"


@dataclass(frozen=True)
class DeleteResult:
    outcome: DeleteOutcome
    key: str
    recycle_key: Optional[str] = None


def _refuse_placeholder(key: str) -> None:
    if is_placeholder(key):
        raise InvalidName("Folder placeholders are not videos", details={"key": key})


class LifecycleManager:
    """Mutating operations on single videos."""

    def __init__(
        self,
        store: S3Client,
        *,
        rename_policy: ConflictPolicy = "overwrite",
        restore_policy: ConflictPolicy = "overwrite",
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self.store = store
        self.rename_policy = rename_policy
        self.restore_policy = restore_policy
        self.clock = clock

    # ─────────────────────────────────────────────────────────
    # 🗑️ Delete / purge
    # ─────────────────────────────────────────────────────────
    def delete_video(self, key: str) -> DeleteResult:
        """Soft-delete an active video; permanently delete a recycled one."""
        key = validate_key(key)
        if is_recycled(key):
            self.purge(key)
            return DeleteResult(outcome=DeleteOutcome.PURGED, key=key)
        recycle_key = self.soft_delete(key)
        return DeleteResult(outcome=DeleteOutcome.RECYCLED, key=key, recycle_key=recycle_key)

    def soft_delete(self, key: str) -> str:
        """Move an active video into the Recycle Bin; returns the recycle key."""
        key = validate_key(key)
        if is_recycled(key):
            raise InvalidLifecycleState("Item is already in the Recycle Bin", details={"key": key})
        _refuse_placeholder(key)
        self._require_source(key, "soft_delete")

        recycle_key = self._free_recycle_key(key)
        self._relocate("soft_delete", key, recycle_key)
        logger.info("Video recycled: %s -> %s", key, recycle_key)
        return recycle_key

    def purge(self, key: str) -> None:
        """Permanently delete a Recycle Bin entry."""
        key = validate_key(key)
        if not is_recycled(key):
            raise NotInRecycleBin(key)
        self._require_source(key, "purge")
        with store_errors("purge video"):
            try:
                self.store.delete(key)
            except S3StorageError:
                inc_lifecycle("purge", "error")
                raise
        inc_lifecycle("purge", "ok")
        logger.info("Video purged: %s", key)

    # ─────────────────────────────────────────────────────────
    # ⏪ Restore
    # ─────────────────────────────────────────────────────────
    def restore(self, key: str) -> str:
        """Return a recycled video to the folder it was deleted from; returns the restored key."""
        key = validate_key(key)
        if not is_recycled(key):
            raise NotInRecycleBin(key)
        entry = decode_recycle_key(key)
        restore_key = to_storage_key(entry.folder, entry.file_name)
        if is_recycled(restore_key):
            raise MalformedRecycleKey("Recycle Bin key decodes into the Recycle Bin", details={"key": key})

        self._require_source(key, "restore")
        self._check_destination(restore_key, self.restore_policy, "restore")
        self._relocate("restore", key, restore_key)
        logger.info("Video restored: %s -> %s (deleted at %d)", key, restore_key, entry.timestamp)
        return restore_key

    # ─────────────────────────────────────────────────────────
    # ✏️ Rename / move
    # ─────────────────────────────────────────────────────────
    def rename(self, key: str, new_name: Optional[str]) -> str:
        """Replace the final segment of `key`, keeping its folder prefix."""
        if not (new_name or "").strip():
            raise NewNameRequired()
        key = validate_key(key)
        name = validate_file_name(new_name)
        if is_recycled(key):
            raise InvalidLifecycleState("Restore the item before renaming it", details={"key": key})
        _refuse_placeholder(key)

        parent, sep, _ = key.rpartition(DELIMITER)
        new_key = f"{parent}{sep}{name}"
        if new_key == key:
            raise NoOpMove(key, message="New name matches the current name")

        self._require_source(key, "rename")
        self._check_destination(new_key, self.rename_policy, "rename")
        self._relocate("rename", key, new_key)
        logger.info("Video renamed: %s -> %s", key, new_key)
        return new_key

    def move(self, key: str, target_folder: Optional[str]) -> str:
        """Put the video under `target_folder`, keeping its file name.

        `""` and `"Uncategorized"` both mean the bucket root; `None` is a missing field.
        """
        if target_folder is None:
            raise ValidationError("Target folder is required")
        key = validate_key(key)
        if is_recycled(key):
            raise InvalidLifecycleState("Restore the item before moving it", details={"key": key})
        _refuse_placeholder(key)
        target = normalize_folder(target_folder)
        if target != UNCATEGORIZED:
            target = ensure_not_reserved(target)

        _, name = split_key(key)
        new_key = to_storage_key(target, name)
        if new_key == key:
            raise NoOpMove(key)

        self._require_source(key, "move")
        with store_errors("move video"):
            occupied = self.store.exists(new_key)
        if occupied:
            inc_lifecycle("move", "conflict")
            raise DestinationConflict(new_key)
        self._relocate("move", key, new_key)
        logger.info("Video moved: %s -> %s", key, new_key)
        return new_key

    # ─────────────────────────────────────────────────────────
    # 🧰 Helpers
    # ─────────────────────────────────────────────────────────
    def _require_source(self, key: str, operation: str) -> None:
        with store_errors(operation.replace("_", " ")):
            found = self.store.exists(key)
        if not found:
            inc_lifecycle(operation, "not_found")
            raise VideoNotFound(key)

    def _free_recycle_key(self, key: str) -> str:
        """First unused recycle key for `key`, bumping the timestamp past occupied ones."""
        folder, name = split_key(key)
        timestamp = self.clock()
        with store_errors("soft delete"):
            recycle_key = encode_recycle_key(folder, name, timestamp)
            while self.store.exists(recycle_key):
                timestamp += 1
                recycle_key = encode_recycle_key(folder, name, timestamp)
        return recycle_key

    def _check_destination(self, dest: str, policy: ConflictPolicy, operation: str) -> None:
        with store_errors(operation.replace("_", " ")):
            occupied = self.store.exists(dest)
        if not occupied:
            return
        if policy == "reject":
            inc_lifecycle(operation, "conflict")
            raise DestinationConflict(dest)
        logger.warning("%s overwrites existing object at %s", operation, dest)

    def _relocate(self, operation: str, source: str, dest: str) -> None:
        """Copy `source` to `dest`, then delete `source`."""
        with store_errors(operation.replace("_", " ")):
            try:
                self.store.copy(source, dest)
            except S3StorageError:
                inc_lifecycle(operation, "error")
                raise

        try:
            self.store.delete(source)
        except S3StorageError as e:
            inc_lifecycle(operation, "partial")
            logger.error("%s left a duplicate: copied %s -> %s but delete failed: %s", operation, source, dest, e)
            raise PartialApplicationError(
                operation=operation,
                message="The copy succeeded but removing the original failed; the video now exists at both keys",
                details={
                    "completed": 0,
                    "total": 1,
                    "failed_key": source,
                    "failed_step": "delete",
                    "duplicate_possible": True,
                    "source_key": source,
                    "destination_key": dest,
                },
            ) from e
        inc_lifecycle(operation, "ok")
