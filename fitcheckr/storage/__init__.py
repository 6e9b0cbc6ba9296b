"""Subscriber persistence backends."""

from ..config import AppConfig
from .base import BlobEntry, KeyValueBackend, ObjectStore, SubscriberStore
from .blob import BlobSubscriberStore, MemoryObjectStore, VercelBlobStore
from .kv import KeyValueSubscriberStore, MemoryKeyValueBackend, RestKeyValueBackend


def build_subscriber_store(config: AppConfig) -> SubscriberStore:
    """Pick the subscriber store named by ``config.storage.backend``.

    Raises:
        RuntimeError: if the selected backend is missing credentials
    """
    storage = config.storage
    if storage.backend == "kv":
        if not config.kv_rest_api_url or not config.kv_rest_api_token:
            raise RuntimeError("KV_REST_API_URL and KV_REST_API_TOKEN are required for the kv backend")
        backend = RestKeyValueBackend(config.kv_rest_api_url, config.kv_rest_api_token)
        return KeyValueSubscriberStore(backend, key=storage.key)
    if storage.backend == "blob":
        if not config.blob_read_write_token:
            raise RuntimeError("BLOB_READ_WRITE_TOKEN is required for the blob backend")
        objects = VercelBlobStore(config.blob_read_write_token, api_url=storage.blob_api_url)
        return BlobSubscriberStore(objects, filename=storage.blob_filename)
    return KeyValueSubscriberStore(MemoryKeyValueBackend(), key=storage.key)


__all__ = [
    "BlobEntry",
    "KeyValueBackend",
    "ObjectStore",
    "SubscriberStore",
    "BlobSubscriberStore",
    "MemoryObjectStore",
    "VercelBlobStore",
    "KeyValueSubscriberStore",
    "MemoryKeyValueBackend",
    "RestKeyValueBackend",
    "build_subscriber_store",
]
