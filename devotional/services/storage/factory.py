"""Build the configured key/value backend."""

from typing import Optional

from devotional.config import AppSettings, get_settings
from devotional.services.storage.interface import KeyValueBackend
from devotional.services.storage.memory import InMemoryKeyValueStore
from devotional.services.storage.sqlite_store import SqliteKeyValueStore


def create_backend(settings: Optional[AppSettings] = None) -> KeyValueBackend:
    settings = settings or get_settings().app

    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore(quota_bytes=settings.storage_quota_bytes)

    return SqliteKeyValueStore(
        path=settings.storage_path,
        quota_bytes=settings.storage_quota_bytes,
    )
