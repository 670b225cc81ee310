"""
Backup/Restore Codec

A backup is a flat JSON object of raw keys to raw string values: every
key in the user's namespace plus `currentUser`. Restore replays that
object into the keyspace verbatim.

DESIGN DECISION: Restore is a raw replay, not a filtered merge.
Keys from another namespace in the document are written as-is, and the
active identity is then forced to the restoring user. This lets a
backup taken under one name seed a device for another name.

The document is parsed completely before anything is written, so a
malformed document changes nothing.
"""

import json
from typing import Optional

from devotional.services.storage.interface import StorageError
from devotional.services.storage.namespace import (
    CURRENT_USER_KEY,
    normalize_user,
    user_prefix,
)
from devotional.services.storage.repository import KeyValueRepository


class BackupCodec(KeyValueRepository):
    """Serializes a user's namespace and replays it back."""

    async def backup(self, user: str) -> str:
        """
        Serialize every key of a user's namespace.

        Raises:
            ValueError: If the username is blank
        """
        prefix = user_prefix(user)
        data: dict[str, Optional[str]] = {}

        for key in self._backend.keys_with_prefix(prefix):
            data[key] = self._backend.get_item(key)

        data[CURRENT_USER_KEY] = normalize_user(user)
        self._logger.info("backup_created", username=data[CURRENT_USER_KEY], key_count=len(data))
        return await self._respond(json.dumps(data, indent=2, ensure_ascii=False))

    async def restore(self, user: str, document: str) -> bool:
        """
        Replay a backup document into storage.

        Returns:
            True on success. False if the document cannot be parsed (no
            change made) or a write fails part-way (earlier keys stay
            written).
        """
        restored = await self.restore_count(user, document)
        return restored is not None

    async def restore_count(self, user: str, document: str) -> Optional[int]:
        """Like `restore`, returning the number of keys written, or None on failure."""
        target = normalize_user(user)
        if target is None:
            self._logger.warning("restore_rejected", reason="blank username")
            return await self._respond(None)

        try:
            data = json.loads(document)
        except (TypeError, json.JSONDecodeError) as e:
            self._logger.warning("restore_rejected", username=target, reason=str(e))
            return await self._respond(None)

        if not isinstance(data, dict):
            self._logger.warning("restore_rejected", username=target, reason="not an object")
            return await self._respond(None)

        # Non-string values (null, numbers) are not valid stored values.
        entries = [(key, value) for key, value in data.items() if isinstance(value, str)]

        written = 0
        try:
            for key, value in entries:
                self._backend.set_item(key, value)
                written += 1
            self._backend.set_item(CURRENT_USER_KEY, target)
        except StorageError as e:
            self._logger.error(
                "restore_interrupted",
                username=target,
                written_keys=written,
                error=str(e),
            )
            return await self._respond(None)

        self._logger.info("backup_restored", username=target, key_count=written)
        return await self._respond(written)
