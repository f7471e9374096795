"""
Record Store

DESIGN DECISION: The store is the single owner of every Task, Labor
and Material instance. Callers get deep copies and hand back new
instances; nothing outside the store can change a stored record by
holding a reference to it.

Persistence is a full rewrite of one snapshot after every successful
mutation. A failed write is logged and swallowed: the in-memory state
stays authoritative for the session, and the next mutation tries again.
"""

from typing import Callable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from portal.audit import AuditLogger
from portal.models.audit import AuditEventBuilder
from portal.models.records import (
    RECORD_MODELS,
    LocalStoreAttachment,
    ProjectData,
    Record,
    RecordKind,
)
from portal.services.storage.interface import (
    NotFoundError,
    SnapshotStorageInterface,
    StorageError,
)
from portal.store.seed import seed_projects


_SNAPSHOT = TypeAdapter(dict[str, ProjectData])


class RecordStore:
    """
    Per-project task/labor/material sequences, mirrored to a snapshot.

    Usage:
        store = RecordStore(FileSnapshotStorage("data/projects.json"))
        store.load()
        data = store.get_project_data("project-vincente")
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        seed: Callable[[], dict[str, ProjectData]] = seed_projects,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._seed = seed
        self._projects: dict[str, ProjectData] = {}
        self._logger = structlog.get_logger(__name__)
        self.last_write_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # Loading and persistence
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Rehydrate from the snapshot.

        Falls back to seed data when the snapshot is absent, unreadable
        or does not match the schema. Never raises.
        """
        try:
            raw = self._storage.read()
        except StorageError as e:
            self._fall_back_to_seed(str(e))
            return

        if raw is None:
            self._logger.info("snapshot_absent", snapshot=self._storage.name)
            self._projects = self._seed()
            return

        try:
            self._projects = _SNAPSHOT.validate_json(raw)
        except ValidationError as e:
            self._fall_back_to_seed(f"{e.error_count()} validation errors: {e.errors()[0]['msg']}")
            return

        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.snapshot_loaded(self._storage.name, len(self._projects))
            )

    def _fall_back_to_seed(self, reason: str) -> None:
        self._logger.warning("snapshot_unreadable", snapshot=self._storage.name, reason=reason)
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.snapshot_load_failed(self._storage.name, reason)
            )
        self._projects = self._seed()

    def serialize(self) -> str:
        return _SNAPSHOT.dump_json(self._projects, indent=2).decode("utf-8")

    def persist(self) -> bool:
        """
        Write the whole snapshot.

        Returns True on success. Failures are logged, never raised.
        """
        try:
            self._storage.write(self.serialize())
        except Exception as e:
            self.last_write_error = str(e)
            self._logger.error("snapshot_write_failed", snapshot=self._storage.name, error=str(e))
            if self._audit_logger:
                self._audit_logger.log_snapshot_write_failed(self._storage.name, e)
            return False
        self.last_write_error = None
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def project_ids(self) -> list[str]:
        return list(self._projects)

    def get_project_data(self, project_id: str) -> ProjectData:
        """Stored data for a project, or empty sequences if it has none. Never fails."""
        data = self._projects.get(project_id)
        if data is None:
            return ProjectData()
        return data.model_copy(deep=True)

    def all_projects(self) -> dict[str, ProjectData]:
        return {pid: data.model_copy(deep=True) for pid, data in self._projects.items()}

    def get_records(self, project_id: str, kind: RecordKind) -> list[Record]:
        return self.get_project_data(project_id).records(kind)

    def find_record(self, project_id: str, kind: RecordKind, record_id: str) -> Optional[Record]:
        for record in self.get_records(project_id, kind):
            if record.id == record_id:
                return record
        return None

    def attachment_key_in_use(self, key: str) -> bool:
        """True if any record of any project still references this local-store key."""
        for data in self._projects.values():
            for kind in RecordKind:
                for record in data.records(kind):
                    attachment = record.attachment
                    if isinstance(attachment, LocalStoreAttachment) and attachment.key == key:
                        return True
        return False

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def replace_records(self, project_id: str, kind: RecordKind, records: list[Record]) -> None:
        """
        Replace one whole sequence and persist.

        Raises:
            TypeError: If a record is not of the kind's model
        """
        model = RECORD_MODELS[RecordKind(kind)]
        for record in records:
            if not isinstance(record, model):
                raise TypeError(f"Expected {model.__name__}, got {type(record).__name__}")

        current = self._projects.get(project_id, ProjectData())
        self._projects[project_id] = current.with_records(
            kind, [record.model_copy(deep=True) for record in records]
        )
        self.persist()

    def add_record(self, project_id: str, kind: RecordKind, record: Record) -> None:
        records = self.get_records(project_id, kind)
        records.append(record)
        self.replace_records(project_id, kind, records)

    def add_records(self, project_id: str, kind: RecordKind, new_records: list[Record]) -> None:
        """Append several records with a single persist."""
        records = self.get_records(project_id, kind)
        records.extend(new_records)
        self.replace_records(project_id, kind, records)

    def update_record(self, project_id: str, kind: RecordKind, record: Record) -> None:
        """
        Replace the stored record with the same id.

        Raises:
            NotFoundError: If no record has that id
        """
        records = self.get_records(project_id, kind)
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                self.replace_records(project_id, kind, records)
                return
        raise NotFoundError(f"{RecordKind(kind).value} record not found: {record.id}")

    def delete_record(self, project_id: str, kind: RecordKind, record_id: str) -> Record:
        """
        Remove one record by id and return it.

        Raises:
            NotFoundError: If no record has that id
        """
        records = self.get_records(project_id, kind)
        for index, existing in enumerate(records):
            if existing.id == record_id:
                removed = records.pop(index)
                self.replace_records(project_id, kind, records)
                return removed
        raise NotFoundError(f"{RecordKind(kind).value} record not found: {record_id}")
