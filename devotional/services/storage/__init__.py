"""
Storage Services Package

Provides the abstract key/value backend, its in-memory and SQLite
implementations, and the repositories built on top of them.
"""

from devotional.services.storage.interface import (
    ArchiveWriteError,
    ConnectionError,
    KeyValueBackend,
    QuotaExceededError,
    StorageError,
)
from devotional.services.storage.memory import InMemoryKeyValueStore
from devotional.services.storage.sqlite_store import SqliteKeyValueStore
from devotional.services.storage.factory import create_backend
from devotional.services.storage.namespace import (
    CURRENT_USER_KEY,
    namespaced_key,
    normalize_user,
    user_prefix,
)
from devotional.services.storage.users import IdentityStore, ProgressTracker
from devotional.services.storage.status import StatusLedger
from devotional.services.storage.content_cache import TransientContentCache
from devotional.services.storage.archive import (
    ArchiveStore,
    archive_key_for_manual,
    archive_lookup_key,
)
from devotional.services.storage.journal import DiaryStore, MissionPlanStore
from devotional.services.storage.backup import BackupCodec

__all__ = [
    # Interface
    "KeyValueBackend",
    # Exceptions
    "ArchiveWriteError",
    "ConnectionError",
    "QuotaExceededError",
    "StorageError",
    # Backends
    "InMemoryKeyValueStore",
    "SqliteKeyValueStore",
    "create_backend",
    # Namespacing
    "CURRENT_USER_KEY",
    "namespaced_key",
    "normalize_user",
    "user_prefix",
    # Repositories
    "ArchiveStore",
    "BackupCodec",
    "DiaryStore",
    "IdentityStore",
    "MissionPlanStore",
    "ProgressTracker",
    "StatusLedger",
    "TransientContentCache",
    "archive_key_for_manual",
    "archive_lookup_key",
]
