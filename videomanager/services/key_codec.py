# videomanager/services/key_codec.py
from __future__ import annotations

"""
🔑 Video Manager • Key Path Codec
=================================

Pure functions mapping logical `(folder, file name)` pairs to storage keys
and back. No I/O, no state.

Recycle Bin keys
----------------
    Recycle Bin/{epochMillis}_{seg1}_{seg2}_..._{fileName}

Inside every folder segment and the file name, `%` is written as `%25` and
`_` as `%5F`, so every raw `_` after the prefix is a field separator:
first field = timestamp, last field = file name, fields between = folder
segments. Root objects record the folder as `Uncategorized`.

Keys written without escapes (older deployments) decode with the same
grammar; an unescaped underscore inside such a name is read as a folder
separator.
"""

import re
from typing import List, NamedTuple, Tuple

from videomanager.core.exceptions import InvalidName, InvalidPath, MalformedRecycleKey, ReservedFolder
from videomanager.core.storage import (
    DELIMITER,
    PLACEHOLDER_NAME,
    RECYCLE_PREFIX,
    RESERVED_FOLDERS,
    UNCATEGORIZED,
)

__all__ = [
    "RecycleEntry",
    "normalize_folder",
    "validate_file_name",
    "validate_key",
    "ensure_not_reserved",
    "is_recycled",
    "is_placeholder",
    "is_directory_marker",
    "folder_prefix",
    "to_storage_key",
    "split_key",
    "encode_recycle_key",
    "decode_recycle_key",
]

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_SEP = "_"
_ESCAPE_RE = re.compile(r"%(25|5F)")
_UNESCAPES = {"25": "%", "5F": _SEP}


class RecycleEntry(NamedTuple):
    """Decoded Recycle Bin key."""

    folder: str
    file_name: str
    timestamp: int


# ─────────────────────────────────────────────────────────────
# 🧹 Normalization & guards
# ─────────────────────────────────────────────────────────────
def normalize_folder(folder: str | None) -> str:
    """
    Canonical folder path.

    - Surrounding whitespace and slashes are stripped, `//` runs collapse.
    - Empty input (or `Uncategorized`) is `Uncategorized`.
    - `.`/`..` segments or control characters raise `InvalidPath`.
    """
    raw = (folder or "").strip()
    if _CONTROL_RE.search(raw):
        raise InvalidPath("Folder path contains control characters", details={"folder": raw})
    segments = [s for s in raw.split(DELIMITER) if s.strip()]
    if any(s in {".", ".."} for s in segments):
        raise InvalidPath("Folder path may not contain '.' or '..' segments", details={"folder": raw})
    if not segments:
        return UNCATEGORIZED
    return DELIMITER.join(segments)


def validate_file_name(name: str | None) -> str:
    """A single non-empty path segment."""
    value = name or ""
    if not value.strip():
        raise InvalidName("File name is required")
    if DELIMITER in value or value in {".", ".."} or _CONTROL_RE.search(value):
        raise InvalidName("File name must be a single path segment", details={"file_name": value})
    return value


def validate_key(key: str | None) -> str:
    """A storage key as received from a caller: non-empty, relative, no `.`/`..` segments."""
    value = key or ""
    if not value.strip():
        raise InvalidPath("Key is required")
    if (
        value.startswith(DELIMITER)
        or any(seg in {".", ".."} for seg in value.split(DELIMITER))
        or _CONTROL_RE.search(value)
    ):
        raise InvalidPath("Malformed storage key", details={"key": value})
    return value


def ensure_not_reserved(path: str | None) -> str:
    """Normalize `path` and refuse it when its first segment is a reserved folder."""
    normalized = normalize_folder(path)
    head = normalized.split(DELIMITER, 1)[0]
    if head in RESERVED_FOLDERS:
        raise ReservedFolder(normalized)
    return normalized


def is_recycled(key: str) -> bool:
    return key.startswith(RECYCLE_PREFIX)


def is_placeholder(key: str) -> bool:
    return key.rsplit(DELIMITER, 1)[-1] == PLACEHOLDER_NAME


def is_directory_marker(key: str) -> bool:
    """Zero-length "folder" objects some consoles create (`photos/`)."""
    return key.endswith(DELIMITER)


def folder_prefix(folder: str) -> str:
    """Listing prefix for a normalized folder (`""` for Uncategorized)."""
    return "" if folder == UNCATEGORIZED else folder + DELIMITER


# ─────────────────────────────────────────────────────────────
# 🔁 Key <-> (folder, name)
# ─────────────────────────────────────────────────────────────
def to_storage_key(folder: str | None, file_name: str) -> str:
    """`fileName` for Uncategorized, else `folder/fileName`."""
    f = normalize_folder(folder)
    name = validate_file_name(file_name)
    return name if f == UNCATEGORIZED else f"{f}{DELIMITER}{name}"


def split_key(key: str) -> Tuple[str, str]:
    """(folder, file name); single-segment keys belong to Uncategorized."""
    folder, sep, name = key.rpartition(DELIMITER)
    if not sep or not folder:
        return UNCATEGORIZED, name
    return folder, name


# ─────────────────────────────────────────────────────────────
# ♻️ Recycle Bin keys
# ─────────────────────────────────────────────────────────────
def _escape(field: str) -> str:
    return field.replace("%", "%25").replace(_SEP, "%5F")


def _unescape(field: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(1)], field)


def encode_recycle_key(folder: str | None, file_name: str, timestamp: int) -> str:
    """`Recycle Bin/{ts}_{segments}_{name}` with per-field escaping."""
    f = normalize_folder(folder)
    name = validate_file_name(file_name)
    fields: List[str] = [str(int(timestamp))]
    fields.extend(_escape(seg) for seg in f.split(DELIMITER))
    fields.append(_escape(name))
    return RECYCLE_PREFIX + _SEP.join(fields)


def decode_recycle_key(key: str) -> RecycleEntry:
    """
    Inverse of `encode_recycle_key`.

    Raises
    ------
    MalformedRecycleKey
        When `key` is not a flat Recycle Bin entry of the form
        `{digits}_{folder...}_{name}`.
    """
    if not is_recycled(key):
        raise MalformedRecycleKey("Key is not a Recycle Bin entry", details={"key": key})
    body = key[len(RECYCLE_PREFIX):]
    fields = body.split(_SEP)
    if DELIMITER in body or len(fields) < 3 or not fields[0].isdigit():
        raise MalformedRecycleKey("Recycle Bin key has an unexpected structure", details={"key": key})

    folder_fields = [_unescape(f) for f in fields[1:-1]]
    name = _unescape(fields[-1])
    if not name or any(not f for f in folder_fields):
        raise MalformedRecycleKey("Recycle Bin key has an empty field", details={"key": key})

    return RecycleEntry(
        folder=normalize_folder(DELIMITER.join(folder_fields)),
        file_name=name,
        timestamp=int(fields[0]),
    )
