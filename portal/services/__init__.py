"""Services package."""

from portal.services.image import (
    CloudinaryUploadService,
    ImageError,
    ImageUploadError,
    InvalidImageError,
    InvalidUploadError,
)
from portal.services.storage import (
    AttachmentStoreInterface,
    ConnectionError,
    FileAttachmentStore,
    FileSnapshotStorage,
    InMemoryAttachmentStore,
    InMemorySnapshotStorage,
    NotFoundError,
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
    TaskTableInterface,
)

__all__ = [
    # Image services
    "CloudinaryUploadService",
    "ImageError",
    "ImageUploadError",
    "InvalidImageError",
    "InvalidUploadError",
    # Storage services
    "AttachmentStoreInterface",
    "ConnectionError",
    "FileAttachmentStore",
    "FileSnapshotStorage",
    "InMemoryAttachmentStore",
    "InMemorySnapshotStorage",
    "NotFoundError",
    "SnapshotCorruptError",
    "SnapshotStorageInterface",
    "StorageError",
    "TaskTableInterface",
]
