from __future__ import annotations

"""
Video Manager • Bucket Layout
=============================

Documented key layout (single bucket, public reads via CDN):

    s3://{bucket}/
      {fileName}                                        → Uncategorized video (root)
      Uncategorized/{fileName}                          → Uncategorized video (explicit tag)
      {folder}/{sub}/.../{fileName}                     → video in a nested folder
      {folder}/.keep                                    → zero-byte folder placeholder
      Recycle Bin/{epochMillis}_{folder_as_underscores}_{fileName}
                                                        → soft-deleted video

Folders do not exist natively: a folder is live when some key has it as a
strict prefix (placeholders included).
"""

import re
from typing import Iterable, Pattern


UNCATEGORIZED = "Uncategorized"
RECYCLE_BIN = "Recycle Bin"
RESERVED_FOLDERS = frozenset({UNCATEGORIZED, RECYCLE_BIN})

RECYCLE_PREFIX = f"{RECYCLE_BIN}/"
PLACEHOLDER_NAME = ".keep"
DELIMITER = "/"

DEFAULT_VIDEO_EXTENSIONS = ("mp4", "webm", "mov", "avi", "mkv")


def video_extension_pattern(extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS) -> Pattern[str]:
    """Case-insensitive `\\.(ext1|ext2|...)$` matcher for video keys."""
    exts = [re.escape(e.lstrip(".")) for e in extensions if e]
    if not exts:
        exts = [re.escape(e) for e in DEFAULT_VIDEO_EXTENSIONS]
    return re.compile(r"\.(" + "|".join(exts) + r")$", re.IGNORECASE)
