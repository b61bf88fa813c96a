# tests/fixtures/mocks/s3.py

"""
🪣 In-memory stand-in for `videomanager.utils.aws.S3Client`.

- Same public surface the services use (list/copy/delete/head/put/presign)
- Prefix + delimiter listing semantics of `list_objects_v2`
- Fault injection: `fail_on("copy", 2)` makes the 2nd copy raise `S3StorageError`
- Every mutating call is recorded in `calls` so tests can assert "no store call issued"
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from videomanager.utils.aws import ObjectInfo, ObjectListing, S3StorageError

BASE_URL = "https://test-bucket.s3.us-east-1.amazonaws.com"
_SAFE = "/!~*'()"


class InMemoryS3:
    def __init__(self, keys: Optional[Dict[str, bytes]] = None) -> None:
        self.objects: Dict[str, Tuple[bytes, datetime]] = {}
        self.calls: List[Tuple[str, str]] = []
        self._counters: Dict[str, int] = {}
        self._faults: Dict[str, set] = {}
        self.reachable = True
        for k, v in (keys or {}).items():
            self.seed(k, v)

    # ── helpers for tests ─────────────────────────────────────
    def seed(self, key: str, data: bytes = b"video") -> None:
        self.objects[key] = (data, datetime(2024, 1, 1, tzinfo=timezone.utc))

    def fail_on(self, op: str, nth: int = 1) -> None:
        self._faults.setdefault(op, set()).add(nth)

    def keys(self) -> List[str]:
        return sorted(self.objects)

    def mutations(self) -> List[Tuple[str, str]]:
        return [c for c in self.calls if c[0] in {"put", "copy", "delete"}]

    def _tick(self, op: str, key: str) -> None:
        self._counters[op] = self._counters.get(op, 0) + 1
        if self._counters[op] in self._faults.get(op, set()):
            raise S3StorageError(f"injected {op} failure on {key}")
        self.calls.append((op, key))

    # ── S3Client surface ──────────────────────────────────────
    def put_bytes(self, key: str, data: bytes, *, content_type: str = "application/octet-stream") -> None:
        self._tick("put", key)
        self.seed(key, data)

    def put_fileobj(self, key: str, fileobj, *, content_type: str = "application/octet-stream") -> None:
        self._tick("put", key)
        self.seed(key, fileobj.read())

    def presigned_put(self, key: str, *, content_type: str, expires_in: int = 900) -> str:
        return f"{BASE_URL}/{quote(key)}?X-Amz-Signature=fake&X-Amz-Expires={expires_in}"

    def copy(self, source_key: str, dest_key: str) -> None:
        self._tick("copy", source_key)
        if source_key not in self.objects:
            raise S3StorageError(f"NoSuchKey: {source_key}")
        self.objects[dest_key] = self.objects[source_key]

    def delete(self, key: str) -> None:
        self._tick("delete", key)
        self.objects.pop(key, None)

    def head(self, key: str) -> Optional[Dict]:
        self._tick("head", key)
        if key not in self.objects:
            return None
        data, modified = self.objects[key]
        return {"ContentLength": len(data), "LastModified": modified}

    def exists(self, key: str) -> bool:
        return self.head(key) is not None

    def list_objects(self, prefix: str = "", *, delimiter: Optional[str] = None) -> ObjectListing:
        self._tick("list", prefix)
        listing = ObjectListing()
        seen_prefixes: List[str] = []
        for key in sorted(self.objects):
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                common = prefix + rest.split(delimiter, 1)[0] + delimiter
                if common not in seen_prefixes:
                    seen_prefixes.append(common)
                continue
            data, modified = self.objects[key]
            listing.objects.append(ObjectInfo(key=key, size=len(data), last_modified=modified))
        listing.prefixes = seen_prefixes
        return listing

    def has_prefix(self, prefix: str) -> bool:
        self._tick("list", prefix)
        return any(k.startswith(prefix) for k in self.objects)

    def ping(self) -> bool:
        return self.reachable

    def public_url(self, key: str) -> str:
        return f"{BASE_URL}/{quote(key, safe=_SAFE)}"
