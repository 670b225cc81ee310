"""Services package."""

from devotional.services.storage import (
    ArchiveStore,
    ArchiveWriteError,
    BackupCodec,
    ConnectionError,
    IdentityStore,
    KeyValueBackend,
    ProgressTracker,
    QuotaExceededError,
    StatusLedger,
    StorageError,
    TransientContentCache,
    create_backend,
)

__all__ = [
    # Storage services
    "ArchiveStore",
    "ArchiveWriteError",
    "BackupCodec",
    "ConnectionError",
    "IdentityStore",
    "KeyValueBackend",
    "ProgressTracker",
    "QuotaExceededError",
    "StatusLedger",
    "StorageError",
    "TransientContentCache",
    "create_backend",
]
