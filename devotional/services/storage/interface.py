"""
Abstract Storage Interface

DESIGN DECISION: Everything the application persists lives in one flat
key/value keyspace (the layout is documented in `namespace.py`).
We define an abstract backend for it. This allows us to:
1. Keep the data on-device in SQLite
2. Use in-memory storage for testing
3. Enforce a storage quota the same way for every backend
4. Keep the repositories decoupled from the storage technology

The interface is intentionally small - it mirrors what a browser's
local storage offers, plus an explicit prefix query so callers never
need to walk the whole keyspace themselves.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QuotaExceededError(StorageError):
    """A write would take the keyspace over its byte budget."""

    def __init__(self, key: str, required_bytes: int, quota_bytes: int):
        self.key = key
        self.required_bytes = required_bytes
        self.quota_bytes = quota_bytes
        super().__init__(
            f"Writing {key!r} needs {required_bytes} bytes, quota is {quota_bytes}"
        )


class ArchiveWriteError(StorageError):
    """An archived reading could not be written, even after recovery."""
    pass


class ConnectionError(StorageError):
    """Could not open the storage backend."""
    pass


class KeyValueBackend(ABC):
    """
    Abstract key/value backend.

    Values are strings. Operations are synchronous and atomic per key;
    there are no multi-key transactions.

    Quota accounting counts the UTF-8 bytes of every key and value. A
    quota of 0 means unlimited.
    """

    def __init__(self, quota_bytes: int = 0):
        if quota_bytes < 0:
            raise ValueError("quota_bytes must be >= 0")
        self._quota_bytes = quota_bytes

    @property
    def quota_bytes(self) -> int:
        return self._quota_bytes

    @staticmethod
    def entry_size(key: str, value: str) -> int:
        """UTF-8 encoded size of a key and its value."""
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            QuotaExceededError: If the write would exceed the quota.
                Nothing is written in that case.
            StorageError: If the backend fails
        """
        if not isinstance(value, str):
            raise TypeError(f"Values must be strings, got {type(value).__name__}")

        if self._quota_bytes:
            previous = self.get_item(key)
            freed = self.entry_size(key, previous) if previous is not None else 0
            required = self.usage_bytes() - freed + self.entry_size(key, value)
            if required > self._quota_bytes:
                raise QuotaExceededError(key, required, self._quota_bytes)

        self._write(key, value)

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys, in ascending order."""
        pass

    @abstractmethod
    def keys_with_prefix(self, prefix: str) -> list[str]:
        """Keys starting with `prefix`, in ascending order."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete every key."""
        pass

    @abstractmethod
    def usage_bytes(self) -> int:
        """Current size of the keyspace as counted against the quota."""
        pass

    def close(self) -> None:
        """Release backend resources. No-op unless overridden."""
        pass
