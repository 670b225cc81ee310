"""
Transient Content Cache

Generated study material is expensive to produce and cheap to lose.
This cache keeps the full bundle (image included) per reading reference
so revisiting a reading does not call the generator again.

DESIGN DECISION: The cache is best-effort.
- A failed write is logged and ignored
- An unreadable entry reads as a miss
- The whole cache class is what the archive store evicts when the
  keyspace runs out of room
"""

from typing import Optional

from pydantic import ValidationError

from devotional.config import get_settings
from devotional.models.reading import CachedReadingContent
from devotional.plan.scheduler import reference_key
from devotional.services.storage.interface import KeyValueBackend, StorageError
from devotional.services.storage.repository import KeyValueRepository


# Shared by every cache version so eviction also clears stale versions.
CACHE_KEY_MARKER = "reading-content-v"


class TransientContentCache(KeyValueRepository):
    """Global (not per user) cache of generated reading content."""

    def __init__(
        self,
        backend: KeyValueBackend,
        latency_seconds: Optional[float] = None,
        version: Optional[int] = None,
    ):
        super().__init__(backend, latency_seconds)
        self._version = version or get_settings().app.content_cache_version

    @property
    def version(self) -> int:
        return self._version

    def cache_key(self, reference: str) -> str:
        return f"{CACHE_KEY_MARKER}{self._version}-{reference_key(reference)}"

    async def get(self, reference: str) -> Optional[CachedReadingContent]:
        key = self.cache_key(reference)
        try:
            raw = self._backend.get_item(key)
        except StorageError as e:
            self._logger.warning("content_cache_read_failed", key=key, error=str(e))
            raw = None
        content = None

        if raw:
            try:
                content = CachedReadingContent.model_validate_json(raw)
            except ValidationError as e:
                self._logger.warning(
                    "content_cache_entry_unreadable",
                    key=key,
                    error_count=e.error_count(),
                )

        return await self._respond(content)

    async def put(self, reference: str, content: CachedReadingContent) -> bool:
        """
        Cache a content bundle.

        Returns:
            True if the bundle was written
        """
        key = self.cache_key(reference)
        try:
            self._backend.set_item(key, content.model_dump_json(by_alias=True))
            written = True
        except StorageError as e:
            self._logger.warning("content_cache_write_failed", key=key, error=str(e))
            written = False
        return await self._respond(written)

    def evict_all_now(self) -> int:
        """
        Synchronously delete every cached bundle, any version.

        Any key containing the marker counts, wherever it appears.
        """
        removed = 0
        stale = [key for key in self._backend.keys() if CACHE_KEY_MARKER in key]
        for key in stale:
            if self._backend.remove_item(key):
                removed += 1
        self._logger.info("content_cache_evicted", removed_keys=removed)
        return removed

    async def evict_all(self) -> int:
        return await self._respond(self.evict_all_now())
