# videomanager/utils/aws.py
from __future__ import annotations

"""
🧊 Video Manager • S3 Utilities
===============================

Thin, hardened wrapper over boto3 used by the catalog services:
- Folder index (prefix/delimiter listing, placeholders, recursive rename/delete)
- Video registry (listing, uploads, presigned PUT, public URLs)
- Lifecycle manager (copy-then-delete transitions, existence probes)

🎯 Goals
--------
- Every bucket call goes through one place (metrics + uniform errors)
- Explicit timeouts + bounded retries
- Keys are validated, never rewritten (a rewritten key would address a
  different object than the one listed)
- Listings follow continuation tokens
- Zero secret leakage in logs

🔗 Contract
-----------
- Class: `S3Client`, `S3StorageError`, `ObjectInfo`, `ObjectListing`, `store_errors`
- Methods: `put_bytes`, `put_fileobj`, `presigned_put`, `copy`, `delete`,
           `head`, `exists`, `list_objects`, `has_prefix`, `public_url`, `ping`

Unlike a best-effort cleanup helper, `delete` and `head` here **raise**
`S3StorageError` on anything other than "not found": the lifecycle manager
must know whether the second half of a copy-then-delete landed.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Dict, Iterator, List, Optional
from urllib.parse import quote
import logging
import re

import boto3
from botocore.exceptions import ClientError
from botocore.config import Config as BotoConfig
from pydantic import SecretStr

from videomanager.core.config import settings
from videomanager.core.exceptions import StoreError
from videomanager.core.metrics import inc_store_op

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Exceptions & value types
# ─────────────────────────────────────────────────────────────────────────────

class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (network, auth, policy, bad key)."""


@dataclass(frozen=True)
class ObjectInfo:
    """One listed object."""

    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass
class ObjectListing:
    """Result of a (possibly delimited) prefix listing, all pages merged."""

    objects: List[ObjectInfo] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return [o.key for o in self.objects]


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key validation
# ─────────────────────────────────────────────────────────────────────────────

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

# encodeURIComponent-compatible: RFC 3986 unreserved + !*'() stay literal, '/' kept.
_URL_SAFE = "/!~*'()"


def _validate_key(key: str) -> str:
    """
    Validate an object key without rewriting it.

    Raises
    ------
    S3StorageError
        If key is empty, absolute, contains `.`/`..` segments or control characters.
    """
    k = str(key or "")
    if not k.strip():
        raise S3StorageError("Invalid storage key: empty")
    if k.startswith("/"):
        raise S3StorageError("Invalid storage key: leading slash")
    if any(seg in {".", ".."} for seg in k.split("/")):
        raise S3StorageError("Invalid storage key: path traversal detected")
    if _CONTROL_RE.search(k):
        raise S3StorageError("Invalid storage key: contains control characters")
    return k


def _secret_value(v: Optional[SecretStr | str]) -> Optional[str]:
    if v is None:
        return None
    return v.get_secret_value() if isinstance(v, SecretStr) else str(v)


def _error_code(e: Exception) -> Optional[str]:
    if isinstance(e, ClientError):
        return str(e.response.get("Error", {}).get("Code") or "")
    return None


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Translate `S3StorageError` into the API-facing `StoreError` (503)."""
    try:
        yield
    except S3StorageError as e:
        logger.error("Store call failed during %s: %s", action, e)
        raise StoreError(f"Storage unavailable while trying to {action}", details={"error": str(e)}) from e


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    High-level S3 wrapper with safe defaults.

    Parameters
    ----------
    bucket : str | None
        Bucket holding the catalog. Defaults to `settings.AWS_BUCKET_NAME`.
    region_name : str | None
        Defaults to `settings.AWS_REGION`.
    endpoint_url : str | None
        Custom S3-compatible endpoint (MinIO/LocalStack). Defaults to
        `settings.AWS_S3_ENDPOINT_URL`.
    public_base_url : str | None
        Origin for public links. Defaults to `settings.public_origin_for()`
        for this bucket/region (CloudFront domain when configured).

    Notes
    -----
    * Credentials: explicit keys from settings when both are present,
      otherwise the standard AWS credential chain.
    * Retries/Timeouts: bounded retry policy (5 attempts), short connect timeout.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ) -> None:
        self.bucket = bucket or settings.AWS_BUCKET_NAME
        if not self.bucket:
            raise S3StorageError("AWS_BUCKET_NAME not configured")

        self.region = region_name or settings.AWS_REGION
        endpoint_cfg = endpoint_url or settings.AWS_S3_ENDPOINT_URL
        base = public_base_url or settings.public_origin_for(self.bucket, self.region)
        self._public_base = base.rstrip("/")

        cfg = BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": 5, "mode": "standard"},
            connect_timeout=3,
            read_timeout=60,
        )

        client_kwargs: Dict[str, Any] = {"config": cfg, "region_name": self.region}
        if endpoint_cfg:
            client_kwargs["endpoint_url"] = endpoint_cfg
        ak = settings.AWS_ACCESS_KEY_ID
        sk = _secret_value(settings.AWS_SECRET_ACCESS_KEY)
        st = _secret_value(settings.AWS_SESSION_TOKEN)
        if ak and sk:
            client_kwargs["aws_access_key_id"] = ak
            client_kwargs["aws_secret_access_key"] = sk
            if st:
                client_kwargs["aws_session_token"] = st

        try:
            self.client = boto3.client("s3", **client_kwargs)
        except Exception as e:  # pragma: no cover
            raise S3StorageError(f"Failed to create S3 client: {e}") from e

        self._repr = f"S3Client(bucket={self.bucket}, region={self.region}, endpoint={'yes' if endpoint_cfg else 'no'})"

    # ────────────────────────────────────────────────────────────────────────
    # ✍️ Writes
    # ────────────────────────────────────────────────────────────────────────

    def put_bytes(self, key: str, data: bytes, *, content_type: str = "application/octet-stream") -> None:
        """Write a small payload (placeholders, tiny uploads)."""
        k = _validate_key(key)
        try:
            self.client.put_object(Bucket=self.bucket, Key=k, Body=data, ContentType=content_type)
        except Exception as e:
            inc_store_op("put", "error")
            raise S3StorageError(f"Failed to upload object: {e}") from e
        inc_store_op("put", "ok")

    def put_fileobj(self, key: str, fileobj: BinaryIO, *, content_type: str = "application/octet-stream") -> None:
        """Stream a file-like object (managed transfer: multipart above the threshold)."""
        k = _validate_key(key)
        try:
            self.client.upload_fileobj(fileobj, self.bucket, k, ExtraArgs={"ContentType": content_type})
        except Exception as e:
            inc_store_op("put", "error")
            raise S3StorageError(f"Failed to upload object: {e}") from e
        inc_store_op("put", "ok")

    def presigned_put(self, key: str, *, content_type: str, expires_in: int = 900) -> str:
        """SigV4 presigned PUT URL for direct-to-bucket uploads."""
        k = _validate_key(key)
        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params={"Bucket": self.bucket, "Key": k, "ContentType": content_type},
                ExpiresIn=int(expires_in),
                HttpMethod="PUT",
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned PUT: {e}") from e

    def copy(self, source_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket (managed: multipart for large objects)."""
        src = _validate_key(source_key)
        dst = _validate_key(dest_key)
        try:
            self.client.copy({"Bucket": self.bucket, "Key": src}, self.bucket, dst)
        except Exception as e:
            inc_store_op("copy", "error")
            raise S3StorageError(f"Failed to copy '{src}' to '{dst}': {e}") from e
        inc_store_op("copy", "ok")

    def delete(self, key: str) -> None:
        """Delete one object. Deleting a missing key is not an error."""
        k = _validate_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=k)
        except Exception as e:
            if _error_code(e) in {"NoSuchKey", "404"}:
                inc_store_op("delete", "ok")
                return
            inc_store_op("delete", "error")
            raise S3StorageError(f"Failed to delete '{k}': {e}") from e
        inc_store_op("delete", "ok")

    # ────────────────────────────────────────────────────────────────────────
    # 🔎 Reads
    # ────────────────────────────────────────────────────────────────────────

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """HEAD the object; None when it does not exist."""
        k = _validate_key(key)
        try:
            resp = self.client.head_object(Bucket=self.bucket, Key=k)
        except Exception as e:
            if _error_code(e) in {"404", "NoSuchKey", "NotFound"}:
                inc_store_op("head", "ok")
                return None
            inc_store_op("head", "error")
            raise S3StorageError(f"Failed to HEAD '{k}': {e}") from e
        inc_store_op("head", "ok")
        return dict(resp or {})

    def exists(self, key: str) -> bool:
        return self.head(key) is not None

    def list_objects(self, prefix: str = "", *, delimiter: Optional[str] = None) -> ObjectListing:
        """
        List every object (and, with a delimiter, every common prefix) under `prefix`.

        All pages are merged; common prefixes keep their trailing delimiter.
        """
        params: Dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            params["Delimiter"] = delimiter

        listing = ObjectListing()
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for item in page.get("Contents") or []:
                    key = item.get("Key")
                    if not key:
                        continue
                    listing.objects.append(
                        ObjectInfo(
                            key=key,
                            size=int(item.get("Size") or 0),
                            last_modified=item.get("LastModified"),
                            etag=item.get("ETag"),
                        )
                    )
                for cp in page.get("CommonPrefixes") or []:
                    if cp.get("Prefix"):
                        listing.prefixes.append(cp["Prefix"])
        except Exception as e:
            inc_store_op("list", "error")
            raise S3StorageError(f"Failed to list '{prefix}': {e}") from e
        inc_store_op("list", "ok")
        return listing

    def has_prefix(self, prefix: str) -> bool:
        """True when at least one object key starts with `prefix` (single-key probe)."""
        try:
            resp = self.client.list_objects_v2(Bucket=self.bucket, Prefix=prefix, MaxKeys=1)
        except Exception as e:
            inc_store_op("list", "error")
            raise S3StorageError(f"Failed to list '{prefix}': {e}") from e
        inc_store_op("list", "ok")
        return bool(resp.get("Contents"))

    def ping(self) -> bool:
        """Readiness probe: True when the bucket answers HEAD."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning("head_bucket failed: %s", e)
            return False

    # ────────────────────────────────────────────────────────────────────────
    # 🌐 Public URL helpers
    # ────────────────────────────────────────────────────────────────────────

    def public_url(self, key: str) -> str:
        """Public (CDN) URL: each segment percent-encoded, `/` preserved."""
        return f"{self._public_base}/{quote(key, safe=_URL_SAFE)}"

    def __repr__(self) -> str:  # pragma: no cover
        return self._repr
