"""In-memory key/value backend, used by tests and throwaway sessions."""

from typing import Optional

from devotional.services.storage.interface import KeyValueBackend


class InMemoryKeyValueStore(KeyValueBackend):
    """Dictionary-backed keyspace with the same quota rules as SQLite."""

    def __init__(self, quota_bytes: int = 0, initial: Optional[dict[str, str]] = None):
        super().__init__(quota_bytes=quota_bytes)
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return sorted(key for key in self._data if key.startswith(prefix))

    def clear(self) -> None:
        self._data.clear()

    def usage_bytes(self) -> int:
        return sum(self.entry_size(k, v) for k, v in self._data.items())
