"""Persistence interfaces for the subscriber list."""

from typing import Protocol

from pydantic import BaseModel


class SubscriberStore(Protocol):
    """Durable read/write of one list of email strings."""

    storage_type: str

    async def get(self) -> list[str]:
        ...

    async def set(self, emails: list[str]) -> None:
        ...


class KeyValueBackend(Protocol):
    """Key-value flavor: whole values read and written by key."""

    async def get(self, key: str) -> list[str] | None:
        ...

    async def set(self, key: str, value: list[str]) -> None:
        ...


class BlobEntry(BaseModel):
    """A stored object as returned by an object store."""
    url: str
    pathname: str
    size: int = 0
    uploaded_at: str | None = None


class ObjectStore(Protocol):
    """Object-store flavor: named blobs addressed by URL."""

    async def list(self, prefix: str) -> list[BlobEntry]:
        ...

    async def put(self, name: str, content: bytes, content_type: str = "application/json") -> BlobEntry:
        ...

    async def read(self, url: str) -> bytes:
        ...

    async def delete(self, url: str) -> None:
        ...
