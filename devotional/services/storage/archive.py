"""
Archive Store

The reader's permanent record of completed readings. One key per
reading, so a single oversized or corrupted entry never takes the rest
of the archive down with it.

CRITICAL: Archived readings never carry an image. Generated images are
large data URLs; they stay in the session (and the disposable content
cache) only.

Quota handling:
1. Try the write
2. On QuotaExceededError, evict the transient content cache
3. Retry exactly once
4. If that fails too, raise ArchiveWriteError - never pretend it worked
"""

from typing import TYPE_CHECKING, Optional, Union

from pydantic import ValidationError

from devotional.models.audit import AuditEventBuilder
from devotional.models.reading import ArchivedReading
from devotional.plan.scheduler import reference_key
from devotional.services.storage.content_cache import TransientContentCache
from devotional.services.storage.interface import (
    ArchiveWriteError,
    KeyValueBackend,
    QuotaExceededError,
    StorageError,
)
from devotional.services.storage.namespace import namespaced_key
from devotional.services.storage.repository import KeyValueRepository

if TYPE_CHECKING:
    from devotional.audit import AuditLogger


ARCHIVE_KEY_PREFIX = "archived-reading-"
MANUAL_ARCHIVE_PREFIX = "manual-"

ArchiveId = Union[int, str]


def archive_key_for_manual(reference: str) -> str:
    """
    Archive id for a reading picked outside the plan.

    NOTE: Distinct references can strip to the same id ("Romans 1-12"
    and "Romans 11-2" both become "manual-Romans112"). References built
    by the plan do not collide, but nothing here checks.
    """
    return f"{MANUAL_ARCHIVE_PREFIX}{reference_key(reference)}"


def archive_lookup_key(day: Optional[int], reference: str) -> str:
    """Key the interface uses to find a reading's archive entry."""
    if day is not None:
        return f"day-{day}"
    return archive_key_for_manual(reference)


class ArchiveStore(KeyValueRepository):
    """Archived readings per user, keyed by plan day or manual id."""

    def __init__(
        self,
        backend: KeyValueBackend,
        latency_seconds: Optional[float] = None,
        content_cache: Optional[TransientContentCache] = None,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        super().__init__(backend, latency_seconds)
        self._content_cache = content_cache or TransientContentCache(
            backend, latency_seconds=0
        )
        self._audit_logger = audit_logger

    @staticmethod
    def _archive_id(archive_id: ArchiveId) -> str:
        if isinstance(archive_id, bool):
            raise TypeError("Archive ids are plan days or strings")
        text = str(archive_id).strip()
        if not text:
            raise ValueError("Archive id must not be empty")
        return text

    def _key(self, user: Optional[str], archive_id: ArchiveId) -> str:
        return namespaced_key(user, f"{ARCHIVE_KEY_PREFIX}{self._archive_id(archive_id)}")

    async def _parse(self, user: Optional[str], key: str, raw: str) -> Optional[ArchivedReading]:
        try:
            return ArchivedReading.model_validate_json(raw)
        except ValidationError as e:
            self._logger.warning(
                "archive_record_skipped",
                username=user,
                key=key,
                error_count=e.error_count(),
            )
            if self._audit_logger:
                await self._audit_logger.log(
                    AuditEventBuilder.record_skipped(user, key, f"{e.error_count()} validation errors")
                )
            return None

    async def get(self, user: Optional[str], archive_id: ArchiveId) -> Optional[ArchivedReading]:
        key = self._key(user, archive_id)
        try:
            raw = self._backend.get_item(key)
        except StorageError as e:
            self._logger.error("archive_read_failed", username=user, key=key, error=str(e))
            raw = None
        reading = await self._parse(user, key, raw) if raw else None
        return await self._respond(reading)

    async def put(
        self,
        user: Optional[str],
        archive_id: ArchiveId,
        reading: ArchivedReading,
    ) -> ArchivedReading:
        """
        Archive a reading, image stripped.

        Returns:
            The reading exactly as stored

        Raises:
            ArchiveWriteError: If the write fails, including after one
                               cache eviction and retry
        """
        key = self._key(user, archive_id)
        stored = reading.without_image()
        payload = stored.to_storage_json()

        try:
            self._backend.set_item(key, payload)
        except QuotaExceededError as e:
            self._logger.warning(
                "storage_quota_exceeded",
                username=user,
                key=key,
                required_bytes=e.required_bytes,
                quota_bytes=e.quota_bytes,
            )
            removed = 0
            try:
                removed = self._content_cache.evict_all_now()
                if self._audit_logger:
                    await self._audit_logger.log(
                        AuditEventBuilder.cache_evicted(removed, reason="storage_quota_exceeded")
                    )
                self._backend.set_item(key, payload)
            except StorageError as retry_error:
                self._logger.error(
                    "archive_write_failed",
                    username=user,
                    key=key,
                    evicted_keys=removed,
                    error=str(retry_error),
                )
                raise ArchiveWriteError(
                    f"Failed to archive {key} after clearing the content cache: {retry_error}"
                ) from retry_error
        except StorageError as e:
            self._logger.error("archive_write_failed", username=user, key=key, error=str(e))
            raise ArchiveWriteError(f"Failed to archive {key}: {e}") from e

        self._logger.info("reading_archived", username=user, key=key)
        return await self._respond(stored)

    async def remove(self, user: Optional[str], archive_id: ArchiveId) -> bool:
        removed = self._backend.remove_item(self._key(user, archive_id))
        return await self._respond(removed)

    async def list_by_user(self, user: Optional[str]) -> dict[str, ArchivedReading]:
        """
        Every archived reading of a user, keyed by archive id.

        Malformed entries are logged and skipped. A failing backend reads
        as an empty archive.
        """
        prefix = namespaced_key(user, ARCHIVE_KEY_PREFIX)
        readings = {}

        try:
            records = [(key, self._backend.get_item(key)) for key in self._backend.keys_with_prefix(prefix)]
        except StorageError as e:
            self._logger.error("archive_list_failed", username=user, prefix=prefix, error=str(e))
            records = []

        for key, raw in records:
            if not raw:
                continue
            reading = await self._parse(user, key, raw)
            if reading is not None:
                readings[key[len(prefix):]] = reading

        return await self._respond(readings)

    async def list_all(self, user: Optional[str]) -> dict[str, ArchivedReading]:
        return await self.list_by_user(user)
