# videomanager/services/folder_index.py
from __future__ import annotations

"""
🗂️ Video Manager • Folder Directory Index
=========================================

Simulates a folder tree on top of flat object keys.

A folder is *live* when at least one key has `folder + "/"` as a prefix;
`{folder}/.keep` placeholders make empty folders visible. There is no
directory table: every call reads the bucket fresh.

Operations
----------
- `list_folders()`   → `["Uncategorized", "Recycle Bin", *discovered]`
- `create_folder()`  → writes `{path}/.keep`
- `rename_folder()`  → sequential copy-then-delete of every key under the prefix
- `delete_folder()`  → refuses while any video exists anywhere below

Every mutating call passes each path argument through `ensure_not_reserved`.
Multi-object operations stop at the first failing step and raise
`PartialApplicationError` with progress counters once something has mutated.
"""

import logging
from typing import List, Optional, Pattern

from videomanager.core.exceptions import (
    FolderAlreadyExists,
    FolderNotEmpty,
    FolderNotFound,
    InvalidPath,
    NewNameRequired,
    PartialApplicationError,
    StoreError,
    ValidationError,
)
from videomanager.core.metrics import inc_lifecycle
from videomanager.core.storage import DELIMITER, PLACEHOLDER_NAME, RECYCLE_PREFIX, RECYCLE_BIN, UNCATEGORIZED
from videomanager.services.key_codec import ensure_not_reserved
from videomanager.utils.aws import S3Client, S3StorageError, store_errors

logger = logging.getLogger(__name__)

_SKIPPED_TOP_PREFIXES = frozenset({f"{UNCATEGORIZED}{DELIMITER}", RECYCLE_PREFIX})


def _required(value: Optional[str], message: str) -> str:
    if not (value or "").strip():
        raise ValidationError(message)
    return value


class FolderIndex:
    """Folder tree derived from key prefixes."""

    def __init__(self, store: S3Client, *, video_pattern: Pattern[str]) -> None:
        self.store = store
        self.video_pattern = video_pattern

    # ─────────────────────────────────────────────────────────
    # 🔎 Reads
    # ─────────────────────────────────────────────────────────
    def list_folders(self) -> List[str]:
        """Reserved folders first, then every discovered folder in depth-first order."""
        discovered: List[str] = []
        with store_errors("list folders"):
            self._walk("", discovered)
        return [UNCATEGORIZED, RECYCLE_BIN, *discovered]

    def _walk(self, prefix: str, out: List[str]) -> None:
        listing = self.store.list_objects(prefix, delimiter=DELIMITER)
        for child in listing.prefixes:
            if not prefix and child in _SKIPPED_TOP_PREFIXES:
                continue
            folder = child.rstrip(DELIMITER)
            # "a//b" style keys produce empty segments; they are not addressable folders.
            if not folder or DELIMITER * 2 in child:
                continue
            out.append(folder)
            self._walk(child, out)

    def folder_exists(self, path: str) -> bool:
        with store_errors("check folder"):
            return self.store.has_prefix(path + DELIMITER)

    # ─────────────────────────────────────────────────────────
    # ✍️ Mutations
    # ─────────────────────────────────────────────────────────
    def create_folder(self, path: str) -> str:
        """Materialize `path` with a zero-byte placeholder; ancestors become live by prefix."""
        folder = ensure_not_reserved(_required(path, "Folder name is required"))
        if self.folder_exists(folder):
            inc_lifecycle("create_folder", "conflict")
            raise FolderAlreadyExists(folder)
        with store_errors("create folder"):
            self.store.put_bytes(f"{folder}{DELIMITER}{PLACEHOLDER_NAME}", b"")
        inc_lifecycle("create_folder", "ok")
        logger.info("Folder created: %s", folder)
        return folder

    def rename_folder(self, old_path: str, new_path: str) -> int:
        """
        Move every key under `old_path/` to `new_path/`, one copy+delete pair at a time.

        Returns the number of objects moved.

        Raises
        ------
        ReservedFolder, InvalidPath, FolderNotFound, FolderAlreadyExists
            Before any store mutation.
        PartialApplicationError
            When a step fails after at least one mutation landed.
        """
        old = ensure_not_reserved(_required(old_path, "Current folder name is required"))
        if not (new_path or "").strip():
            raise NewNameRequired()
        new = ensure_not_reserved(new_path)
        if new == old or new.startswith(old + DELIMITER):
            raise InvalidPath("A folder cannot be renamed into itself", details={"old_name": old, "new_name": new})

        with store_errors("rename folder"):
            keys = self.store.list_objects(old + DELIMITER).keys
        if not keys:
            raise FolderNotFound(old)
        if self.folder_exists(new):
            inc_lifecycle("rename_folder", "conflict")
            raise FolderAlreadyExists(new)

        total = len(keys)
        completed = 0
        for key in keys:
            target = new + DELIMITER + key[len(old) + 1:]
            step = "copy"
            try:
                self.store.copy(key, target)
                step = "delete"
                self.store.delete(key)
            except S3StorageError as e:
                self._abort("rename_folder", e, completed=completed, total=total, key=key, step=step, old=old, new=new)
            completed += 1

        inc_lifecycle("rename_folder", "ok")
        logger.info("Folder renamed: %s -> %s (%d objects)", old, new, total)
        return total

    def delete_folder(self, path: str) -> int:
        """
        Delete every object under `path/` when no video exists anywhere below.

        Returns the number of objects deleted (placeholders included).
        """
        folder = ensure_not_reserved(_required(path, "Folder name is required"))
        with store_errors("delete folder"):
            keys = self.store.list_objects(folder + DELIMITER).keys
        if not keys:
            raise FolderNotFound(folder)

        videos = [k for k in keys if self.video_pattern.search(k)]
        if videos:
            inc_lifecycle("delete_folder", "not_empty")
            raise FolderNotEmpty(folder, video_count=len(videos))

        total = len(keys)
        completed = 0
        for key in keys:
            try:
                self.store.delete(key)
            except S3StorageError as e:
                self._abort("delete_folder", e, completed=completed, total=total, key=key, step="delete", old=folder)
            completed += 1

        inc_lifecycle("delete_folder", "ok")
        logger.info("Folder deleted: %s (%d objects)", folder, total)
        return total

    # ─────────────────────────────────────────────────────────
    # 🧰 Helpers
    # ─────────────────────────────────────────────────────────
    def _abort(
        self,
        operation: str,
        error: S3StorageError,
        *,
        completed: int,
        total: int,
        key: str,
        step: str,
        old: str,
        new: Optional[str] = None,
    ) -> None:
        """Raise `StoreError` for a clean failure, `PartialApplicationError` otherwise."""
        inc_lifecycle(operation, "error")
        # A failed delete after a successful copy leaves the object at both locations.
        duplicate_possible = operation == "rename_folder" and step == "delete"
        if completed == 0 and not duplicate_possible:
            raise StoreError(
                f"Storage unavailable while trying to {operation.replace('_', ' ')}",
                details={"error": str(error), "failed_key": key},
            ) from error

        details = {
            "completed": completed,
            "total": total,
            "failed_key": key,
            "failed_step": step,
            "duplicate_possible": duplicate_possible,
            "folder": old,
        }
        if new is not None:
            details["new_folder"] = new
        logger.error(
            "%s aborted after %d/%d objects at %s of %s: %s",
            operation, completed, total, step, key, error,
        )
        raise PartialApplicationError(
            operation=operation,
            message=f"Operation stopped after {completed} of {total} objects; the folder is in a mixed state",
            details=details,
        ) from error

