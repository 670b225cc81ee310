"""
Status Ledger

One qualitative outcome per plan day per user. Marking a day with the
status it already has removes the mark again.
"""

import json
from typing import Optional

from devotional.models.reading import MeditationStatus
from devotional.services.storage.interface import StorageError
from devotional.services.storage.namespace import namespaced_key
from devotional.services.storage.repository import KeyValueRepository


STATUS_KEY = "meditation-status"


class StatusLedger(KeyValueRepository):
    """Per-day meditation status, stored as one JSON object per user."""

    def _read(self, user: Optional[str]) -> dict[int, MeditationStatus]:
        key = namespaced_key(user, STATUS_KEY)
        raw = self._backend.get_item(key)
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._logger.warning("status_ledger_unreadable", key=key, error=str(e))
            return {}

        if not isinstance(data, dict):
            self._logger.warning("status_ledger_unreadable", key=key, error="not an object")
            return {}

        ledger = {}
        for day, status in data.items():
            try:
                ledger[int(day)] = MeditationStatus(status)
            except (TypeError, ValueError):
                self._logger.warning("status_entry_skipped", key=key, day=day, status=status)
        return ledger

    def _write(self, user: Optional[str], ledger: dict[int, MeditationStatus]) -> None:
        payload = {str(day): status.value for day, status in sorted(ledger.items())}
        self._backend.set_item(namespaced_key(user, STATUS_KEY), json.dumps(payload))

    def _read_or_empty(self, user: Optional[str]) -> dict[int, MeditationStatus]:
        try:
            return self._read(user)
        except StorageError as e:
            self._logger.error("status_ledger_read_failed", username=user, error=str(e))
            return {}

    async def get_all(self, user: Optional[str]) -> dict[int, MeditationStatus]:
        return await self._respond(self._read_or_empty(user))

    async def get(self, user: Optional[str], day: int) -> Optional[MeditationStatus]:
        return await self._respond(self._read_or_empty(user).get(day))

    async def toggle(
        self,
        user: Optional[str],
        day: int,
        status: MeditationStatus,
    ) -> dict[int, MeditationStatus]:
        """
        Set a day's status, or clear it if it already has that status.

        Returns:
            The ledger after the change
        """
        status = MeditationStatus(status)
        ledger = self._read(user)

        if ledger.get(day) == status:
            del ledger[day]
        else:
            ledger[day] = status

        self._write(user, ledger)
        self._logger.info(
            "status_toggled",
            username=user,
            day=day,
            status=ledger.get(day).value if day in ledger else None,
        )
        return await self._respond(dict(ledger))
