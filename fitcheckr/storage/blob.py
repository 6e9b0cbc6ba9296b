"""Object-store subscriber storage (in-memory or Vercel Blob).

The list lives in one JSON file ``{emails, count, lastUpdated}`` which is
replaced wholesale on every write: the new blob is put first and only then
are older blobs under the name deleted, so a failed upload leaves the
previous list readable.
"""

import json
import logging
import uuid
from datetime import datetime, timezone

import httpx

from ..errors import StorageError
from .base import BlobEntry

logger = logging.getLogger(__name__)


class MemoryObjectStore:
    """Process-local object store for development and tests."""

    def __init__(self, base_url: str = "memory://blobs"):
        self.base_url = base_url
        self._blobs: dict[str, tuple[BlobEntry, bytes]] = {}

    async def list(self, prefix: str) -> list[BlobEntry]:
        return [entry for entry, _ in self._blobs.values() if entry.pathname.startswith(prefix)]

    async def put(self, name: str, content: bytes, content_type: str = "application/json") -> BlobEntry:
        url = f"{self.base_url}/{uuid.uuid4().hex[:8]}/{name}"
        entry = BlobEntry(
            url=url,
            pathname=name,
            size=len(content),
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )
        self._blobs[url] = (entry, content)
        return entry

    async def read(self, url: str) -> bytes:
        if url not in self._blobs:
            raise StorageError(f"No blob at {url}")
        return self._blobs[url][1]

    async def delete(self, url: str) -> None:
        self._blobs.pop(url, None)


class VercelBlobStore:
    """Vercel Blob over its HTTP API."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://blob.vercel-storage.com",
        http_client: httpx.AsyncClient | None = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=15.0,
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"Blob {method} {url} failed: {exc}") from exc
        return response

    async def list(self, prefix: str) -> list[BlobEntry]:
        response = await self._request("GET", self.api_url, params={"prefix": prefix})
        return [
            BlobEntry(
                url=blob["url"],
                pathname=blob.get("pathname", ""),
                size=blob.get("size", 0),
                uploaded_at=blob.get("uploadedAt"),
            )
            for blob in response.json().get("blobs", [])
        ]

    async def put(self, name: str, content: bytes, content_type: str = "application/json") -> BlobEntry:
        response = await self._request(
            "PUT",
            f"{self.api_url}/{name}",
            content=content,
            headers={
                "x-content-type": content_type,
                "x-add-random-suffix": "0",
                "x-allow-overwrite": "1",
                "x-cache-control-max-age": "0",
            },
        )
        data = response.json()
        return BlobEntry(url=data["url"], pathname=data.get("pathname", name), size=len(content))

    async def read(self, url: str) -> bytes:
        # Public blob URLs need no auth
        response = await self._request("GET", url, headers={"Authorization": ""})
        return response.content

    async def delete(self, url: str) -> None:
        await self._request("POST", f"{self.api_url}/delete", json={"urls": [url]})

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


class BlobSubscriberStore:
    """Subscriber list stored as one JSON object in an object store."""

    storage_type = "vercel-blob"

    def __init__(self, objects, filename: str = "subscribers.json"):
        self.objects = objects
        self.filename = filename
        if isinstance(objects, MemoryObjectStore):
            self.storage_type = "memory-blob"

    async def get(self) -> list[str]:
        entries = [e for e in await self.objects.list(self.filename) if e.pathname == self.filename]
        if not entries:
            return []
        # Newest upload wins if a previous replace left duplicates behind
        latest = max(entries, key=lambda e: e.uploaded_at or "")
        try:
            data = json.loads(await self.objects.read(latest.url))
        except ValueError as exc:
            raise StorageError(f"Corrupt subscriber file {latest.url}: {exc}") from exc
        return [str(e) for e in data.get("emails", [])]

    async def set(self, emails: list[str]) -> None:
        previous = [e for e in await self.objects.list(self.filename) if e.pathname == self.filename]

        payload = {
            "emails": list(emails),
            "count": len(emails),
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
        entry = await self.objects.put(self.filename, json.dumps(payload, indent=2).encode("utf-8"))

        # An overwrite in place keeps the URL; that blob is the new one
        for old in previous:
            if old.url != entry.url:
                await self.objects.delete(old.url)
        logger.debug("Replaced %s with %d subscribers (%s)", self.filename, len(emails), entry.url)
