"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for every storage seam.
This allows us to:
1. Keep snapshots on local disk today and move them elsewhere later
2. Use in-memory storage for testing
3. Keep the record store decoupled from where bytes live

There are three seams:
- SnapshotStorageInterface: one serialized blob, read at startup and
  rewritten in full on every mutation (projects, blog posts)
- AttachmentStoreInterface: key → base64 payload blobs
- TaskTableInterface: a relational task/rollup table kept for
  reporting; no portal flow depends on it
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for a single serialized snapshot.

    Implementations store opaque text. Parsing and validation belong
    to the caller, which decides how to degrade on bad content.
    """

    name: str = "snapshot"

    @abstractmethod
    def read(self) -> Optional[str]:
        """
        Read the stored snapshot.

        Returns:
            The snapshot text, or None if nothing has been stored yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, payload: str) -> None:
        """
        Replace the stored snapshot.

        Raises:
            StorageError: If the write fails (quota, permissions, disk)
        """
        pass


class AttachmentStoreInterface(ABC):
    """
    Abstract interface for attachment blobs.

    Payloads are base64 text (optionally a full data: URL).
    """

    @abstractmethod
    async def save(self, key: str, payload: str) -> None:
        """
        Store a payload under key, replacing any existing one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Fetch the payload stored under key.

        Returns:
            The payload, or None if the key is absent
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove the payload stored under key. Missing keys are not an error.

        Raises:
            StorageError: If the backend refuses the delete
        """
        pass


class TaskRow(BaseModel):
    """A task as written to the relational table."""

    task_name: str = Field(..., min_length=1)
    type: str = ""
    status: str = ""
    owner: str = ""
    due_date: Optional[date] = None
    cost: Decimal = Decimal("0")


class DailyRollup(BaseModel):
    """Paid/unpaid spend for one project on one day."""

    project_id: str
    day: date
    paid: Decimal = Decimal("0")
    unpaid: Decimal = Decimal("0")


class TaskTableInterface(ABC):
    """
    Abstract interface for the relational task/rollup table.
    """

    @abstractmethod
    async def insert_task(self, task: TaskRow) -> bool:
        pass

    @abstractmethod
    async def list_tasks(self, limit: int = 100) -> list[TaskRow]:
        """Tasks newest first."""
        pass

    @abstractmethod
    async def upsert_daily_rollup(self, rollup: DailyRollup) -> bool:
        """Insert a rollup, or replace the one for the same project and day."""
        pass

    @abstractmethod
    async def list_rollups(self, project_id: Optional[str] = None) -> list[DailyRollup]:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class SnapshotCorruptError(StorageError):
    """A stored snapshot exists but cannot be parsed."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
