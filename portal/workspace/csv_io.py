"""
CSV export and import for the record workspace.

Export writes the scalar fields of each record, one column per declared
ColumnDef, in the order declared below. Attachments are never exported.

Quoting rule: a value containing a comma is wrapped in double quotes.
Embedded double quotes are NOT escaped, so such values do not survive
a round trip; this matches files produced by earlier versions of the
portal and is kept deliberately.

Import is forgiving per field and never rejects a whole file:
- headers that match no declared column are ignored
- number/currency cells that do not parse (or are NaN/Infinity) become 0
- boolean cells are true only for the text "true", any case
- enum cells with an unknown value fall back to the kind's default
"""

import csv
import io
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from portal.models.records import RECORD_MODELS, Record, RecordKind
from portal.workspace.defaults import KIND_DEFAULTS


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    TAGS = "tags"


class ColumnDef(BaseModel):
    key: str
    label: str
    type: ColumnType = ColumnType.TEXT
    optional: bool = False


def _col(key: str, label: str, type: ColumnType = ColumnType.TEXT, optional: bool = False) -> ColumnDef:
    return ColumnDef(key=key, label=label, type=type, optional=optional)


TASK_COLUMNS = [
    _col("name", "Name"),
    _col("status", "Status"),
    _col("type", "Type"),
    _col("owner", "Owner"),
    _col("start_date", "Start Date"),
    _col("due_date", "Due Date"),
    _col("est_hours", "Est. Hours", ColumnType.NUMBER),
    _col("actual_hours", "Actual Hours", ColumnType.NUMBER, optional=True),
    _col("cost", "Cost", ColumnType.CURRENCY),
    _col("tags", "Tags", ColumnType.TAGS),
    _col("order", "Order", ColumnType.INTEGER),
    _col("notes", "Notes"),
    _col("paid", "Paid", ColumnType.BOOLEAN),
]

LABOR_COLUMNS = [
    _col("crew_role", "Role"),
    _col("workers", "Workers"),
    _col("rate_type", "Rate Type"),
    _col("qty", "Qty", ColumnType.NUMBER),
    _col("rate", "Rate", ColumnType.CURRENCY),
    _col("cost", "Cost", ColumnType.CURRENCY),
    _col("supplier", "Supplier"),
    _col("start_date", "Start Date"),
    _col("end_date", "End Date"),
    _col("notes", "Notes"),
    _col("paid", "Paid", ColumnType.BOOLEAN),
]

MATERIAL_COLUMNS = [
    _col("item", "Item"),
    _col("category", "Category"),
    _col("unit", "Unit"),
    _col("qty", "Qty", ColumnType.NUMBER),
    _col("unit_cost", "Unit Cost", ColumnType.CURRENCY),
    _col("total_cost", "Total Cost", ColumnType.CURRENCY),
    _col("supplier", "Supplier"),
    _col("lead_time_days", "Lead Time (days)", ColumnType.INTEGER),
    _col("delivery_eta", "Delivery ETA"),
    _col("received", "Received", ColumnType.BOOLEAN),
    _col("location", "Location"),
    _col("notes", "Notes"),
    _col("paid", "Paid", ColumnType.BOOLEAN),
]

COLUMNS: dict[RecordKind, list[ColumnDef]] = {
    RecordKind.TASKS: TASK_COLUMNS,
    RecordKind.LABOR: LABOR_COLUMNS,
    RecordKind.MATERIALS: MATERIAL_COLUMNS,
}


# =============================================================================
# EXPORT
# =============================================================================

def format_cell(value: Any) -> str:
    """Render one scalar as CSV text (before quoting)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, list):
        return ";".join(str(v) for v in value)
    return str(value)


def _quote(text: str) -> str:
    return f'"{text}"' if "," in text else text


def export_csv(kind: RecordKind, records: list[Record]) -> str:
    """Header line of column keys, then one line per record."""
    columns = COLUMNS[RecordKind(kind)]
    lines = [",".join(col.key for col in columns)]
    for record in records:
        lines.append(",".join(_quote(format_cell(getattr(record, col.key))) for col in columns))
    return "\n".join(lines)


# =============================================================================
# IMPORT
# =============================================================================

def parse_decimal(text: str) -> Decimal:
    """Decimal value of text, or 0 when it does not parse or is not finite."""
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return value


def _enum_default(kind: RecordKind, key: str) -> Any:
    if key in KIND_DEFAULTS[kind]:
        return KIND_DEFAULTS[kind][key]
    return RECORD_MODELS[kind].model_fields[key].default


def _enum_type(kind: RecordKind, key: str) -> Optional[type]:
    annotation = RECORD_MODELS[kind].model_fields[key].annotation
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return annotation
    return None


def coerce_cell(kind: RecordKind, column: ColumnDef, text: str) -> Any:
    """Convert one cell to the value stored on the record."""
    text = text.strip()

    if column.optional and text == "":
        return None
    if column.type in (ColumnType.NUMBER, ColumnType.CURRENCY):
        return parse_decimal(text)
    if column.type == ColumnType.INTEGER:
        return int(parse_decimal(text))
    if column.type == ColumnType.BOOLEAN:
        return text.lower() == "true"
    if column.type == ColumnType.TAGS:
        return [tag for tag in (part.strip() for part in text.split(";")) if tag]

    enum_type = _enum_type(kind, column.key)
    if enum_type is not None:
        try:
            return enum_type(text)
        except ValueError:
            return _enum_default(kind, column.key)
    return text


def parse_csv(kind: RecordKind, text: str) -> list[dict[str, Any]]:
    """
    Parse CSV text into per-row field dicts for the given kind.

    Only declared columns appear in the dicts. Blank lines are skipped
    and short rows are padded with empty cells.
    """
    kind = RecordKind(kind)
    by_key = {col.key: col for col in COLUMNS[kind]}

    rows = [row for row in csv.reader(io.StringIO(text.strip())) if any(cell.strip() for cell in row)]
    if not rows:
        return []

    header = [h.strip() for h in rows[0]]
    parsed = []
    for row in rows[1:]:
        values: dict[str, Any] = {}
        for index, name in enumerate(header):
            column = by_key.get(name)
            if column is None:
                continue
            cell = row[index] if index < len(row) else ""
            values[name] = coerce_cell(kind, column, cell)
        parsed.append(values)
    return parsed
