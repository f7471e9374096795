"""
Local Storage Implementations

File-backed storage for running the portal on one machine, plus
in-memory variants used by tests and by sessions without a data dir.

Snapshots are written atomically: the new content goes to a sibling
temp file which then replaces the original, so a crash mid-write
leaves the previous snapshot intact.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from portal.services.storage.interface import (
    AttachmentStoreInterface,
    SnapshotStorageInterface,
    StorageError,
)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


class FileSnapshotStorage(SnapshotStorageInterface):
    """Snapshot kept as a single UTF-8 file."""

    def __init__(self, path: Union[str, Path], name: Optional[str] = None):
        self._path = Path(path)
        self.name = name or self._path.stem

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[str]:
        if not self._path.exists():
            return None
        try:
            return self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {self._path}: {e}")

    def write(self, payload: str) -> None:
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write snapshot {self._path}: {e}")


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Snapshot kept in a Python string. Counts writes for tests."""

    def __init__(self, initial: Optional[str] = None, name: str = "memory"):
        self._payload = initial
        self.name = name
        self.write_count = 0

    def read(self) -> Optional[str]:
        return self._payload

    def write(self, payload: str) -> None:
        self._payload = payload
        self.write_count += 1


class FileAttachmentStore(AttachmentStoreInterface):
    """
    One "<key>.b64" file per attachment under a directory.

    File I/O runs in a worker thread so resolving many attachments
    does not block the event loop.
    """

    def __init__(self, directory: Union[str, Path]):
        self._dir = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid attachment key: {key!r}")
        return self._dir / f"{key}.b64"

    async def save(self, key: str, payload: str) -> None:
        path = self._path_for(key)

        def _write() -> None:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to save attachment {key}: {e}")

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)

        def _read() -> Optional[str]:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

        try:
            return await asyncio.to_thread(_read)
        except OSError as e:
            raise StorageError(f"Failed to read attachment {key}: {e}")

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete attachment {key}: {e}")


class InMemoryAttachmentStore(AttachmentStoreInterface):
    """Attachment blobs kept in a dict."""

    def __init__(self):
        self._blobs: dict[str, str] = {}

    async def save(self, key: str, payload: str) -> None:
        self._blobs[key] = payload

    async def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)
