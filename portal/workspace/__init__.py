"""Portal workspace: per-kind CRUD, CSV and the receipt review flow."""

from portal.workspace.crud import CrudWorkspace, DeleteConfirmation, sort_records
from portal.workspace.csv_io import COLUMNS, ColumnDef, ColumnType, export_csv, parse_csv
from portal.workspace.defaults import (
    DEFAULT_SORT,
    KIND_DEFAULTS,
    SortConfig,
    SortDirection,
    new_record,
    recompute_derived,
)
from portal.workspace.receipts import (
    ExtractionOutcome,
    ReceiptReview,
    ReceiptReviewFlow,
    ReceiptReviewSession,
    ReceiptRow,
)
from portal.workspace.roles import ActionResult, can_mutate, require_admin

__all__ = [
    "ActionResult",
    "COLUMNS",
    "ColumnDef",
    "ColumnType",
    "CrudWorkspace",
    "DEFAULT_SORT",
    "DeleteConfirmation",
    "ExtractionOutcome",
    "KIND_DEFAULTS",
    "ReceiptReview",
    "ReceiptReviewFlow",
    "ReceiptReviewSession",
    "ReceiptRow",
    "SortConfig",
    "SortDirection",
    "can_mutate",
    "export_csv",
    "new_record",
    "parse_csv",
    "recompute_derived",
    "sort_records",
]
