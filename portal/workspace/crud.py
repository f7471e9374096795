"""
CRUD Workspace

The list/detail/edit engine behind the portal's Tasks, Labor and
Materials tabs. One workspace is bound to one project and shows one
record kind at a time.

DESIGN DECISION: Every action returns an ActionResult instead of
raising. Permission denials, vanished records and bad input all
degrade to "this action did not happen" plus a notice, and the rest
of the workspace stays usable.

State kept here is transient UI state only:
- the edit buffer (a copy, never the stored instance)
- the armed delete confirmation
- the sort and search settings
The record store remains the owner of all records.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from portal.audit import AuditLogger
from portal.models.audit import AuditEventBuilder
from portal.models.records import (
    LocalStoreAttachment,
    Record,
    RecordKind,
    UserRole,
)
from portal.services.storage.interface import AttachmentStoreInterface, NotFoundError
from portal.store.record_store import RecordStore
from portal.workspace import csv_io
from portal.workspace.defaults import (
    DEFAULT_SORT,
    SortConfig,
    SortDirection,
    new_record,
    recompute_derived,
)
from portal.workspace.roles import ActionResult, can_mutate, require_admin


class DeleteConfirmation:
    """
    Two-phase delete state: at most one row is armed.

    Transitions:
    - arm(id): arms id; arming another row disarms the previous one
    - confirm(id): clears; True only if id was the armed row
    - cancel(): clears
    """

    def __init__(self):
        self.armed: Optional[str] = None

    def arm(self, record_id: str) -> None:
        self.armed = record_id

    def confirm(self, record_id: str) -> bool:
        matched = self.armed is not None and self.armed == record_id
        self.armed = None
        return matched

    def cancel(self) -> None:
        self.armed = None

    def is_armed(self, record_id: str) -> bool:
        return self.armed == record_id


def _sort_value(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.casefold()
    return value


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def sort_records(records: list[Record], config: SortConfig) -> list[Record]:
    """
    Sort by one field.

    Python's sort is stable, so equal keys keep their stored order in
    both directions. Records missing the field (None or empty text)
    always go last.
    """
    present = [r for r in records if not _is_missing(getattr(r, config.key, None))]
    missing = [r for r in records if _is_missing(getattr(r, config.key, None))]
    present.sort(
        key=lambda r: _sort_value(getattr(r, config.key)),
        reverse=config.direction == SortDirection.DESCENDING,
    )
    return present + missing


class CrudWorkspace:
    """
    Workspace for one project.

    Usage:
        ws = CrudWorkspace(store, attachments, UserRole.ADMIN, "project-elnido")
        ws.select_kind(RecordKind.MATERIALS)
        ws.begin_add()
        ws.update_buffer(item="Rebar #10", qty=5, unit_cost=50000)
        ws.save()
    """

    def __init__(
        self,
        store: RecordStore,
        attachments: AttachmentStoreInterface,
        role: UserRole,
        project_id: str,
        kind: RecordKind = RecordKind.TASKS,
        audit_logger: Optional[AuditLogger] = None,
        today: Optional[date] = None,
    ):
        self._store = store
        self._attachments = attachments
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)
        self._today = today

        self.role = UserRole(role)
        self.project_id = project_id
        self.kind = RecordKind(kind)
        self.sort = DEFAULT_SORT[self.kind].model_copy()
        self.search = ""
        self.delete_confirmation = DeleteConfirmation()

        self._buffer: Optional[Record] = None
        self._buffer_is_new = False

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @property
    def can_mutate(self) -> bool:
        return can_mutate(self.role)

    def select_kind(self, kind: RecordKind) -> None:
        """Switch tab; resets sort to the kind default and drops transient state."""
        self.kind = RecordKind(kind)
        self.sort = DEFAULT_SORT[self.kind].model_copy()
        self.search = ""
        self.cancel_edit()
        self.delete_confirmation.cancel()

    def select_project(self, project_id: str) -> None:
        self.project_id = project_id
        self.select_kind(self.kind)

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def stored_records(self) -> list[Record]:
        return self._store.get_records(self.project_id, self.kind)

    def set_search(self, text: str) -> None:
        self.search = (text or "").strip()

    def _matches_search(self, record: Record) -> bool:
        if not self.search:
            return True
        needle = self.search.casefold()
        for column in csv_io.COLUMNS[self.kind]:
            if column.type != csv_io.ColumnType.TEXT:
                continue
            value = csv_io.format_cell(getattr(record, column.key))
            if needle in value.casefold():
                return True
        return False

    def visible_records(self) -> list[Record]:
        """Stored records filtered by search, then sorted."""
        records = [r for r in self.stored_records() if self._matches_search(r)]
        return sort_records(records, self.sort)

    def request_sort(self, key: str) -> None:
        """Sort by key; asking again for the same key flips the direction."""
        if self.sort.key == key and self.sort.direction == SortDirection.ASCENDING:
            self.sort = SortConfig(key=key, direction=SortDirection.DESCENDING)
        else:
            self.sort = SortConfig(key=key, direction=SortDirection.ASCENDING)

    # -------------------------------------------------------------------------
    # Edit buffer
    # -------------------------------------------------------------------------

    @property
    def buffer(self) -> Optional[Record]:
        return self._buffer

    @property
    def is_editing(self) -> bool:
        return self._buffer is not None

    @property
    def buffer_is_new(self) -> bool:
        return self._buffer_is_new

    def begin_add(self) -> ActionResult:
        denied = require_admin(self.role, "add records", self._audit_logger)
        if denied:
            return denied
        self._buffer = new_record(
            self.kind, self.project_id, existing=self.stored_records(), today=self._today
        )
        self._buffer_is_new = True
        return ActionResult.success()

    def begin_edit(self, record_id: str) -> ActionResult:
        denied = require_admin(self.role, "edit records", self._audit_logger)
        if denied:
            return denied
        record = self._store.find_record(self.project_id, self.kind, record_id)
        if record is None:
            return ActionResult.failure("That record no longer exists.")
        self._buffer = record
        self._buffer_is_new = False
        return ActionResult.success()

    def update_buffer(self, **changes: Any) -> ActionResult:
        """Merge field changes into the buffer. Invalid values leave it unchanged."""
        if self._buffer is None:
            return ActionResult.failure("Nothing is being edited.")
        changes.pop("id", None)
        changes.pop("project_id", None)
        merged = {**self._buffer.model_dump(), **changes}
        try:
            self._buffer = type(self._buffer).model_validate(merged)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            return ActionResult.failure(f"Invalid value for {field}: {first['msg']}")
        return ActionResult.success()

    def cancel_edit(self) -> None:
        self._buffer = None
        self._buffer_is_new = False

    def save(self) -> ActionResult:
        """
        Commit the buffer with derived fields recomputed.

        A new buffer is appended. An existing one replaces the stored
        record with the same id; if that record has been deleted in the
        meantime the save fails and the buffer stays open.
        """
        denied = require_admin(self.role, "save records", self._audit_logger)
        if denied:
            return denied
        if self._buffer is None:
            return ActionResult.failure("Nothing is being edited.")

        record = recompute_derived(self._buffer)
        kind_name = self.kind.value

        if self._buffer_is_new:
            self._store.add_record(self.project_id, self.kind, record)
            self._audit(AuditEventBuilder.record_created(kind_name, record.id, self.project_id))
        else:
            try:
                self._store.update_record(self.project_id, self.kind, record)
            except NotFoundError:
                self._logger.warning(
                    "save_target_missing",
                    kind=kind_name,
                    record_id=record.id,
                    project_id=self.project_id,
                )
                self._audit(AuditEventBuilder.record_not_found(kind_name, record.id, self.project_id))
                return ActionResult.failure(
                    "This record was deleted while you were editing it. Nothing was saved."
                )
            self._audit(AuditEventBuilder.record_updated(kind_name, record.id, self.project_id))

        self.cancel_edit()
        return ActionResult.success("Saved.")

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def request_delete(self, record_id: str) -> ActionResult:
        """First click: arm the row."""
        denied = require_admin(self.role, "delete records", self._audit_logger)
        if denied:
            return denied
        self.delete_confirmation.arm(record_id)
        return ActionResult.success()

    def cancel_delete(self) -> None:
        self.delete_confirmation.cancel()

    async def confirm_delete(self, record_id: str) -> ActionResult:
        """
        Second click: delete the armed row.

        A local-store attachment is removed afterwards unless another
        record still references its key; if removal fails the failure is
        logged and the record stays deleted.
        """
        denied = require_admin(self.role, "delete records", self._audit_logger)
        if denied:
            return denied
        if not self.delete_confirmation.confirm(record_id):
            return ActionResult.failure("Click delete again to confirm.")

        try:
            removed = self._store.delete_record(self.project_id, self.kind, record_id)
        except NotFoundError:
            return ActionResult.failure("That record no longer exists.")
        self._audit(AuditEventBuilder.record_deleted(self.kind.value, record_id, self.project_id))

        # Receipt rows share one blob; it goes with the last record using it
        attachment = removed.attachment
        if (
            isinstance(attachment, LocalStoreAttachment)
            and not self._store.attachment_key_in_use(attachment.key)
        ):
            await self._remove_attachment(attachment.key)

        return ActionResult.success("Deleted.")

    async def _remove_attachment(self, key: str) -> None:
        try:
            await self._attachments.delete(key)
        except Exception as e:
            self._logger.warning("attachment_delete_failed", key=key, error=str(e))
            self._audit(AuditEventBuilder.attachment_delete_failed(key, str(e)))

    # -------------------------------------------------------------------------
    # Flags
    # -------------------------------------------------------------------------

    def _toggle(self, record_id: str, flag: str) -> ActionResult:
        record = self._store.find_record(self.project_id, self.kind, record_id)
        if record is None:
            return ActionResult.failure("That record no longer exists.")
        if not hasattr(record, flag):
            return ActionResult.failure(f"{self.kind.value} records have no {flag} flag.")

        value = not getattr(record, flag)
        self._store.update_record(self.project_id, self.kind, record.model_copy(update={flag: value}))
        self._audit(AuditEventBuilder.flag_toggled(
            self.kind.value, record_id, self.project_id, flag, value
        ))
        return ActionResult.success()

    def toggle_paid(self, record_id: str) -> ActionResult:
        denied = require_admin(self.role, "change payment status", self._audit_logger)
        if denied:
            return denied
        return self._toggle(record_id, "paid")

    def toggle_received(self, record_id: str) -> ActionResult:
        denied = require_admin(self.role, "change delivery status", self._audit_logger)
        if denied:
            return denied
        if self.kind != RecordKind.MATERIALS:
            return ActionResult.failure("Only materials can be marked received.")
        return self._toggle(record_id, "received")

    # -------------------------------------------------------------------------
    # CSV
    # -------------------------------------------------------------------------

    def export_csv(self) -> str:
        """CSV of the visible records (current search and sort)."""
        records = self.visible_records()
        self._audit(AuditEventBuilder.csv_exported(self.kind.value, self.project_id, len(records)))
        return csv_io.export_csv(self.kind, records)

    def import_csv(self, text: str) -> ActionResult:
        """
        Append every CSV row as a new record with a fresh id.

        Existing records are never overwritten.
        """
        denied = require_admin(self.role, "import records", self._audit_logger)
        if denied:
            return denied

        rows = csv_io.parse_csv(self.kind, text)
        existing = self.stored_records()
        imported: list[Record] = []
        skipped = 0

        for values in rows:
            try:
                record = new_record(self.kind, self.project_id, existing=existing + imported, **values)
            except ValidationError as e:
                skipped += 1
                self._logger.warning("csv_row_skipped", kind=self.kind.value, error=str(e))
                continue
            imported.append(recompute_derived(record))

        if not imported:
            return ActionResult.failure("No rows found to import.")

        self._store.add_records(self.project_id, self.kind, imported)
        self._audit(AuditEventBuilder.csv_imported(self.kind.value, self.project_id, len(imported)))

        notice = f"Imported {len(imported)} rows."
        if skipped:
            notice += f" Skipped {skipped} rows that could not be read."
        return ActionResult.success(notice)
