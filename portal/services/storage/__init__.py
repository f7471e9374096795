"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
local files for snapshots and attachments, Google Sheets for the
reporting task/rollup table.
"""

from portal.services.storage.interface import (
    AttachmentStoreInterface,
    ConnectionError,
    DailyRollup,
    NotFoundError,
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
    TaskRow,
    TaskTableInterface,
)
from portal.services.storage.local import (
    FileAttachmentStore,
    FileSnapshotStorage,
    InMemoryAttachmentStore,
    InMemorySnapshotStorage,
)

__all__ = [
    # Interfaces
    "AttachmentStoreInterface",
    "SnapshotStorageInterface",
    "TaskTableInterface",
    "DailyRollup",
    "TaskRow",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "SnapshotCorruptError",
    "StorageError",
    # Local implementations
    "FileAttachmentStore",
    "FileSnapshotStorage",
    "InMemoryAttachmentStore",
    "InMemorySnapshotStorage",
]
