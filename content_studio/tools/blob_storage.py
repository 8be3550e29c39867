"""Blob storage gateway for uploaded brand assets.

`SupabaseBlobStorage` talks to the Supabase Storage REST API over httpx;
`InMemoryBlobStorage` keeps bytes in the process for development and tests.
"""

import logging
from typing import AsyncIterator, Callable, Optional

import httpx

from content_studio.core.errors import StorageError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

CHUNK_SIZE = 256 * 1024


class BlobStorage:
    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Store `data` at `path` and return its public URL."""
        raise NotImplementedError

    async def delete(self, url: str) -> None:
        raise NotImplementedError

    async def download(self, url: str) -> bytes:
        raise NotImplementedError


async def _chunks(data: bytes, on_progress: Optional[ProgressCallback]) -> AsyncIterator[bytes]:
    total = len(data) or 1
    sent = 0
    for offset in range(0, len(data), CHUNK_SIZE):
        chunk = data[offset : offset + CHUNK_SIZE]
        sent += len(chunk)
        yield chunk
        if on_progress:
            on_progress(min(100.0, sent * 100.0 / total))


class InMemoryBlobStorage(BlobStorage):
    def __init__(self, base_url: str = "memory://brand-assets"):
        self.base_url = base_url.rstrip("/")
        self.blobs: dict[str, tuple[bytes, str]] = {}

    async def upload(self, path, data, content_type, on_progress=None):
        buffer = bytearray()
        async for chunk in _chunks(data, on_progress):
            buffer.extend(chunk)
        if on_progress and not data:
            on_progress(100.0)
        self.blobs[path] = (bytes(buffer), content_type)
        return f"{self.base_url}/{path}"

    async def delete(self, url):
        path = url.removeprefix(f"{self.base_url}/")
        if self.blobs.pop(path, None) is None:
            raise StorageError(f"Blob not found: {url}")

    async def download(self, url):
        path = url.removeprefix(f"{self.base_url}/")
        if path not in self.blobs:
            raise StorageError(f"Blob not found: {url}")
        return self.blobs[path][0]


class SupabaseBlobStorage(BlobStorage):
    def __init__(self, url: str, service_key: str, bucket: str, timeout: float = 120.0):
        if not url or not service_key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in the environment")
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def _headers(self, content_type: Optional[str] = None, upsert: bool = False) -> dict:
        h = {"Authorization": f"Bearer {self.service_key}", "apikey": self.service_key}
        if content_type:
            h["Content-Type"] = content_type
        if upsert:
            h["x-upsert"] = "true"
        return h

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    def path_from_url(self, url: str) -> str:
        prefix = f"{self.url}/storage/v1/object/public/{self.bucket}/"
        if not url.startswith(prefix):
            raise StorageError(f"URL does not belong to bucket {self.bucket}: {url}")
        return url[len(prefix):]

    async def upload(self, path, data, content_type, on_progress=None):
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}/{path}"
        headers = self._headers(content_type=content_type, upsert=True)
        headers["Content-Length"] = str(len(data))
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(endpoint, headers=headers, content=_chunks(data, on_progress))
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Failed to upload {self.bucket}/{path}: HTTP {exc.response.status_code} - {exc.response.text[:500]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Failed to upload {self.bucket}/{path}: {exc}") from exc
        logger.info(f"Uploaded {self.bucket}/{path} ({len(data)} bytes)")
        return self.public_url(path)

    async def delete(self, url):
        path = self.path_from_url(url)
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.request(
                    "DELETE",
                    endpoint,
                    headers=self._headers(content_type="application/json"),
                    json={"prefixes": [path]},
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Failed to delete {self.bucket}/{path}: HTTP {exc.response.status_code} - {exc.response.text[:500]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Failed to delete {self.bucket}/{path}: {exc}") from exc

    async def download(self, url):
        path = self.path_from_url(url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Failed to download {self.bucket}/{path}: HTTP {exc.response.status_code} - {exc.response.text[:500]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Failed to download {self.bucket}/{path}: {exc}") from exc
        return resp.content
