"""MinIO (S3-compatible) implementation of ObjectStore.

The minio SDK is synchronous; every network call is wrapped in
asyncio.to_thread() so the event loop is never blocked.

Objects are addressed as ``https://<endpoint>/<bucket>/<key>``. A URL belongs
to this store when its host is the configured endpoint and its path starts
with the bucket name; everything else is an ``ExternalUrl``.
"""

import asyncio
import io
from typing import Optional
from urllib.parse import urlparse

from minio import Minio
from minio.error import S3Error

from config import ObjectStoreSettings
from infrastructure.storage.protocol import AssetRef, ExternalUrl, StoredAsset
from shared.logging import get_logger

log = get_logger(__name__)


class MinioObjectStore:
    def __init__(
        self, settings: ObjectStoreSettings, client: Optional[Minio] = None
    ) -> None:
        self._settings = settings
        self._bucket = settings.minio_bucket_name
        self._endpoint = settings.minio_endpoint
        scheme = "https" if settings.minio_secure else "http"
        self._base_url = f"{scheme}://{self._endpoint}/{self._bucket}"
        self._client = client or Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
            region=settings.minio_region,
        )

    # ── Addressing ───────────────────────────────────────────────────────────

    def object_url(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    def _key_from_url(self, url: str) -> Optional[str]:
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        if not parsed.hostname or parsed.netloc != self._endpoint:
            return None
        prefix = f"/{self._bucket}/"
        if not parsed.path.startswith(prefix):
            return None
        key = parsed.path[len(prefix):]
        return key or None

    def belongs_to_store(self, url: str) -> bool:
        if not url:
            return False
        return self._key_from_url(url) is not None

    def classify(self, url: str) -> AssetRef:
        key = self._key_from_url(url) if url else None
        if key is None:
            return ExternalUrl(url)
        return StoredAsset(key)

    # ── Operations ───────────────────────────────────────────────────────────

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store *data* under *key* and return its URL. Errors propagate."""
        await asyncio.to_thread(
            self._client.put_object,
            bucket_name=self._bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        log.info("object_uploaded", key=key, size=len(data))
        return self.object_url(key)

    async def delete(self, ref: AssetRef) -> bool:
        """Remove a stored asset. Foreign URLs are a successful no-op.

        Returns False (after logging) when the store rejects the call.
        """
        if isinstance(ref, ExternalUrl):
            return True
        try:
            await asyncio.to_thread(
                self._client.remove_object,
                bucket_name=self._bucket,
                object_name=ref.key,
            )
            log.info("object_deleted", key=ref.key)
            return True
        except S3Error as e:
            log.error(
                "object_delete_failed",
                key=ref.key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def ensure_bucket(self) -> None:
        exists = await asyncio.to_thread(
            self._client.bucket_exists, bucket_name=self._bucket
        )
        if not exists:
            await asyncio.to_thread(
                self._client.make_bucket,
                bucket_name=self._bucket,
                location=self._settings.minio_region,
            )
            log.info("bucket_created", bucket=self._bucket)

    async def ping(self) -> bool:
        try:
            return await asyncio.to_thread(
                self._client.bucket_exists, bucket_name=self._bucket
            )
        except Exception as e:
            log.warning("object_store_ping_failed", error=str(e))
            return False
