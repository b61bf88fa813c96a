# videomanager/core/exceptions.py
from __future__ import annotations

"""
Video Manager — Application Exceptions
======================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets the catalog services raise typed errors the HTTP layer can render
without translation.

Key ideas
---------
- One base `AppException` carrying `kind`, `message`, `details`, `extra`.
- `kind` is the machine-checkable error name clients switch on
  (`FolderAlreadyExists`, `DestinationConflict`, ...).
- Families mirror how a caller recovers: fix input (`ValidationError`),
  pick another destination (`ConflictError`), empty the folder first
  (`NotEmptyError`), or escalate (`StoreError`, `PartialApplicationError`).

Usage
-----
    raise FolderAlreadyExists("Trips/2024")
    raise PartialApplicationError(
        operation="rename_folder", message="...", details={"completed": 3, "total": 5},
    )
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "ValidationError",
    "NewNameRequired",
    "InvalidName",
    "InvalidPath",
    "MalformedRecycleKey",
    "NotInRecycleBin",
    "UnsupportedMediaType",
    "PayloadTooLarge",
    "ConflictError",
    "FolderAlreadyExists",
    "DestinationConflict",
    "NoOpMove",
    "InvalidLifecycleState",
    "NotEmptyError",
    "FolderNotEmpty",
    "ReservedFolder",
    "NotFoundError",
    "FolderNotFound",
    "VideoNotFound",
    "StoreError",
    "PartialApplicationError",
    "InvalidTokenException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    kind : str
        Stable, machine-checkable error name. Defaults to the class name.
    message : str
        Human-readable error message (serialized as `detail` as well).
    details : dict | list | str | None
        Machine-readable details (keys involved, progress counters, ...).
    extra : dict | None
        Additional non-sensitive metadata merged into the error body.
    """

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    kind_default: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        kind: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        code = int(status_code or self.status_code_default)
        super().__init__(status_code=code, detail=message, headers=headers)
        self.kind: str = kind or self.kind_default or type(self).__name__
        self.message: str = message
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"

    def to_problem(self, *, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the `kind`/`details` part of our problem+json body."""
        body: Dict[str, Any] = {
            "kind": self.kind,
            "request_id": request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# ✍️ Validation (fail fast, no store call issued)
# ──────────────────────────────────────────────────────────────
class ValidationError(AppException):
    """Missing/empty/malformed input."""


class NewNameRequired(ValidationError):
    def __init__(self, message: str = "New name is required", **kw: Any) -> None:
        super().__init__(message, **kw)


class InvalidName(ValidationError):
    """File name empty or containing a path separator."""


class InvalidPath(ValidationError):
    """Folder path with traversal segments or control characters."""


class MalformedRecycleKey(ValidationError):
    """Recycle Bin key that does not follow `{ts}_{folder}_{name}`."""


class NotInRecycleBin(ValidationError):
    def __init__(self, key: str, **kw: Any) -> None:
        super().__init__(
            "Only items in Recycle Bin can be restored",
            details={"key": key},
            **kw,
        )


class UnsupportedMediaType(ValidationError):
    status_code_default = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class PayloadTooLarge(ValidationError):
    status_code_default = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


# ──────────────────────────────────────────────────────────────
# ⚔️ Conflicts (caller must pick different input)
# ──────────────────────────────────────────────────────────────
class ConflictError(AppException):
    status_code_default = status.HTTP_409_CONFLICT


class FolderAlreadyExists(ConflictError):
    def __init__(self, path: str, **kw: Any) -> None:
        super().__init__(f"Folder '{path}' already exists", details={"folder": path}, **kw)


class DestinationConflict(ConflictError):
    def __init__(self, key: str, **kw: Any) -> None:
        super().__init__(
            "A file with the same name already exists in the target folder",
            details={"destination_key": key},
            **kw,
        )


class NoOpMove(ConflictError):
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, key: str, message: str = "Video is already in the target folder", **kw: Any) -> None:
        super().__init__(message, details={"key": key}, **kw)


class InvalidLifecycleState(ConflictError):
    """Transition not allowed from the key's current state (e.g. rename of a recycled item)."""


# ──────────────────────────────────────────────────────────────
# 🗂️ Folder state
# ──────────────────────────────────────────────────────────────
class NotEmptyError(AppException):
    status_code_default = status.HTTP_409_CONFLICT


class FolderNotEmpty(NotEmptyError):
    def __init__(self, path: str, video_count: int, **kw: Any) -> None:
        super().__init__(
            "Cannot delete folder that contains videos. Please delete or move all videos first.",
            details={"folder": path, "video_count": video_count},
            **kw,
        )


class ReservedFolder(AppException):
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, path: str, **kw: Any) -> None:
        super().__init__(f"'{path}' is a reserved folder and cannot be modified", details={"folder": path}, **kw)


class NotFoundError(AppException):
    status_code_default = status.HTTP_404_NOT_FOUND


class FolderNotFound(NotFoundError):
    def __init__(self, path: str, **kw: Any) -> None:
        super().__init__(f"Folder '{path}' not found", details={"folder": path}, **kw)


class VideoNotFound(NotFoundError):
    def __init__(self, key: str, **kw: Any) -> None:
        super().__init__("Video not found", details={"key": key}, **kw)


# ──────────────────────────────────────────────────────────────
# ☁️ Store failures
# ──────────────────────────────────────────────────────────────
class StoreError(AppException):
    """Object store call failed before anything was mutated."""

    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE


class PartialApplicationError(StoreError):
    """A multi-step operation failed after at least one mutation landed.

    `details` always carries `operation`, `completed`, `total`,
    `failed_key`, `failed_step` and `duplicate_possible` so an operator can
    reconcile by hand.
    """

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind_default = "PartialApplication"

    def __init__(self, *, operation: str, message: str, details: Dict[str, Any], **kw: Any) -> None:
        super().__init__(message, details={"operation": operation, **details}, **kw)


# ──────────────────────────────────────────────────────────────
# 🔑 Auth/Token exceptions
# ──────────────────────────────────────────────────────────────
class InvalidTokenException(AppException):
    """Raised for missing, invalid or expired bearer tokens."""

    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(
        self,
        message: str = "Invalid or expired token",
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            headers=headers or {"WWW-Authenticate": "Bearer"},
        )
