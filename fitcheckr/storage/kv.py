"""Key-value subscriber storage (in-memory or Vercel KV / Upstash REST)."""

import json
import logging

import httpx

from ..errors import StorageError

logger = logging.getLogger(__name__)


class MemoryKeyValueBackend:
    """Process-local key-value backend for development and tests."""

    def __init__(self):
        self._data: dict[str, list[str]] = {}

    async def get(self, key: str) -> list[str] | None:
        value = self._data.get(key)
        return list(value) if value is not None else None

    async def set(self, key: str, value: list[str]) -> None:
        self._data[key] = list(value)


class RestKeyValueBackend:
    """Vercel KV (Upstash Redis) over its REST API.

    Values are stored as JSON strings: ``GET /get/<key>`` answers
    ``{"result": "<json>"}`` and ``POST /set/<key>`` takes the raw value as body.
    """

    def __init__(self, url: str, token: str, http_client: httpx.AsyncClient | None = None):
        self.url = url.rstrip("/")
        self.token = token
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=10.0,
            )
        return self._client

    async def get(self, key: str) -> list[str] | None:
        try:
            response = await self.client.get(f"{self.url}/get/{key}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"KV read failed: {exc}") from exc

        raw = response.json().get("result")
        if raw is None:
            return None
        value = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(value, list):
            raise StorageError(f"KV key {key!r} does not hold a list")
        return [str(v) for v in value]

    async def set(self, key: str, value: list[str]) -> None:
        try:
            response = await self.client.post(f"{self.url}/set/{key}", content=json.dumps(value))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"KV write failed: {exc}") from exc

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


class KeyValueSubscriberStore:
    """Subscriber list kept under a single key."""

    storage_type = "vercel-kv"

    def __init__(self, backend, key: str = "fitcheckr:subscribers"):
        self.backend = backend
        self.key = key
        if isinstance(backend, MemoryKeyValueBackend):
            self.storage_type = "memory"

    async def get(self) -> list[str]:
        return await self.backend.get(self.key) or []

    async def set(self, emails: list[str]) -> None:
        await self.backend.set(self.key, emails)
        logger.debug("Stored %d subscribers under %s", len(emails), self.key)
