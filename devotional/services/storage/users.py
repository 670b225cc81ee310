"""
Identity and progress repositories.

`IdentityStore` owns the global `currentUser` pointer, which only the
login/logout lifecycle and backups touch. `ProgressTracker` keeps the
highest completed plan day per user and never lets it go backwards, so
duplicate or out-of-order completion signals are harmless.
"""

from typing import Optional

from devotional.services.storage.interface import StorageError
from devotional.services.storage.namespace import (
    CURRENT_USER_KEY,
    namespaced_key,
    normalize_user,
)
from devotional.services.storage.repository import KeyValueRepository


PROGRESS_KEY = "lastCompletedDay"


class IdentityStore(KeyValueRepository):
    """Who is logged in on this device."""

    async def get_current_user(self) -> Optional[str]:
        try:
            user = normalize_user(self._backend.get_item(CURRENT_USER_KEY))
        except StorageError as e:
            self._logger.error("current_user_read_failed", error=str(e))
            user = None
        return await self._respond(user)

    async def login(self, username: str) -> str:
        """
        Make `username` the active identity.

        Raises:
            ValueError: If the username is blank
        """
        user = normalize_user(username)
        if user is None:
            raise ValueError("Username must not be blank")
        self._backend.set_item(CURRENT_USER_KEY, user)
        self._logger.info("user_logged_in", username=user)
        return await self._respond(user)

    async def logout(self) -> None:
        self._backend.remove_item(CURRENT_USER_KEY)
        self._logger.info("user_logged_out")
        return await self._respond()


class ProgressTracker(KeyValueRepository):
    """Highest completed plan day per user."""

    def _read(self, user: Optional[str]) -> int:
        key = namespaced_key(user, PROGRESS_KEY)
        raw = self._backend.get_item(key)
        if raw is None:
            return 0
        try:
            return max(0, int(raw.strip()))
        except ValueError:
            self._logger.warning("progress_unreadable", key=key, value=raw[:50])
            return 0

    async def get_progress(self, user: Optional[str]) -> int:
        """Last completed day, 0 when nothing is recorded or readable."""
        try:
            progress = self._read(user)
        except StorageError as e:
            self._logger.error("progress_read_failed", username=user, error=str(e))
            progress = 0
        return await self._respond(progress)

    async def advance(self, user: Optional[str], completed_day: int) -> int:
        """
        Record a completed day if it moves progress forward.

        Returns:
            Progress after the call (unchanged for older days)
        """
        current = self._read(user)
        if completed_day > current:
            self._backend.set_item(namespaced_key(user, PROGRESS_KEY), str(completed_day))
            self._logger.info(
                "progress_advanced",
                username=user,
                previous=current,
                completed_day=completed_day,
            )
            current = completed_day
        return await self._respond(current)
