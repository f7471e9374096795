"""
Shared fixtures.

Everything runs against in-memory storage; no test touches the network
or the real data directory.
"""

from datetime import date
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from portal.audit import AuditLogger
from portal.models.records import RecordKind, UserRole
from portal.services.storage import (
    InMemoryAttachmentStore,
    InMemorySnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)
from portal.store import BlogStore, RecordStore
from portal.workspace import CrudWorkspace


class FailingSnapshotStorage(SnapshotStorageInterface):
    """Reads nothing and fails every write."""

    name = "failing"

    def __init__(self):
        self.attempts = 0

    def read(self) -> Optional[str]:
        return None

    def write(self, payload: str) -> None:
        self.attempts += 1
        raise StorageError("disk full")


class FailingAttachmentStore(InMemoryAttachmentStore):
    """Attachment store whose deletes always fail."""

    async def delete(self, key: str) -> None:
        raise StorageError("attachment store offline")


def make_png(width: int = 400, height: int = 400) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def snapshot():
    return InMemorySnapshotStorage(name="projects")


@pytest.fixture
def store(snapshot, audit_logger):
    record_store = RecordStore(snapshot, audit_logger)
    record_store.load()
    return record_store


@pytest.fixture
def empty_store(audit_logger):
    record_store = RecordStore(InMemorySnapshotStorage(name="projects"), audit_logger, seed=dict)
    record_store.load()
    return record_store


@pytest.fixture
def blog_store(audit_logger):
    posts = BlogStore(InMemorySnapshotStorage(name="blog_posts"), audit_logger)
    posts.load()
    return posts


@pytest.fixture
def attachments():
    return InMemoryAttachmentStore()


@pytest.fixture
def admin_workspace(store, attachments, audit_logger):
    return CrudWorkspace(
        store,
        attachments,
        UserRole.ADMIN,
        "project-elnido",
        kind=RecordKind.MATERIALS,
        audit_logger=audit_logger,
        today=date(2025, 9, 5),
    )


@pytest.fixture
def investor_workspace(store, attachments, audit_logger):
    return CrudWorkspace(
        store,
        attachments,
        UserRole.INVESTOR,
        "project-elnido",
        kind=RecordKind.MATERIALS,
        audit_logger=audit_logger,
        today=date(2025, 9, 5),
    )


@pytest.fixture
def png_bytes():
    return make_png()
