"""Per-user journal lists: faith diary entries and mission plans."""

import json
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from devotional.models.reading import DiaryEntry, MissionPlan
from devotional.services.storage.interface import StorageError
from devotional.services.storage.namespace import namespaced_key
from devotional.services.storage.repository import KeyValueRepository


EntryT = TypeVar("EntryT", bound=BaseModel)

DIARY_STORAGE_KEY = "faith-diary-entries"
MISSION_STORAGE_KEY = "evangelism-mission-plans"


class _JsonListStore(KeyValueRepository, Generic[EntryT]):
    """A JSON array of models under one namespaced key."""

    entry_model: type[EntryT]
    default_storage_key: str

    async def list_entries(
        self,
        user: Optional[str],
        storage_key: Optional[str] = None,
    ) -> list[EntryT]:
        key = namespaced_key(user, storage_key or self.default_storage_key)
        try:
            raw = self._backend.get_item(key)
        except StorageError as e:
            self._logger.error("journal_read_failed", key=key, error=str(e))
            raw = None
        entries = []

        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                self._logger.warning("journal_unreadable", key=key, error=str(e))
                data = []

            if not isinstance(data, list):
                self._logger.warning("journal_unreadable", key=key, error="not a list")
                data = []

            for item in data:
                try:
                    entries.append(self.entry_model.model_validate(item))
                except ValidationError:
                    self._logger.warning("journal_entry_skipped", key=key)

        return await self._respond(entries)

    async def save_entries(
        self,
        user: Optional[str],
        entries: list[EntryT],
        storage_key: Optional[str] = None,
    ) -> None:
        """Replace the whole list. Raises StorageError on failure."""
        key = namespaced_key(user, storage_key or self.default_storage_key)
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        self._backend.set_item(key, json.dumps(payload, ensure_ascii=False))
        return await self._respond()


class DiaryStore(_JsonListStore[DiaryEntry]):
    entry_model = DiaryEntry
    default_storage_key = DIARY_STORAGE_KEY


class MissionPlanStore(_JsonListStore[MissionPlan]):
    entry_model = MissionPlan
    default_storage_key = MISSION_STORAGE_KEY
