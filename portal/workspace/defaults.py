"""
Per-kind defaults, sort defaults and derived-field computation.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from portal.models.records import (
    ID_PREFIXES,
    Labor,
    LaborRateType,
    Material,
    MaterialCategory,
    Record,
    RecordKind,
    Task,
    new_record_id,
)


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class SortConfig(BaseModel):
    key: str
    direction: SortDirection = SortDirection.ASCENDING


DEFAULT_SORT: dict[RecordKind, SortConfig] = {
    RecordKind.TASKS: SortConfig(key="order", direction=SortDirection.ASCENDING),
    RecordKind.LABOR: SortConfig(key="start_date", direction=SortDirection.DESCENDING),
    RecordKind.MATERIALS: SortConfig(key="item", direction=SortDirection.ASCENDING),
}

# Kind-specific starting values for the Add form and for CSV import rows.
KIND_DEFAULTS: dict[RecordKind, dict] = {
    RecordKind.TASKS: {},
    RecordKind.LABOR: {
        "rate_type": LaborRateType.DAILY,
        "qty": Decimal("8"),
        "rate": Decimal("62.5"),
        "cost": Decimal("500"),
    },
    RecordKind.MATERIALS: {
        "category": MaterialCategory.OTHER,
        "qty": Decimal("1"),
    },
}


def new_record(
    kind: RecordKind,
    project_id: str,
    existing: Optional[list[Record]] = None,
    today: Optional[date] = None,
    **overrides,
) -> Record:
    """
    A fresh record with kind defaults and a new id.

    Tasks are ordered after the last existing task; labor starts today.
    """
    kind = RecordKind(kind)
    values = dict(KIND_DEFAULTS[kind])

    if kind == RecordKind.TASKS:
        orders = [record.order for record in existing or []]
        values["order"] = max(orders) + 1 if orders else 0
    elif kind == RecordKind.LABOR and today is not None:
        values["start_date"] = today.isoformat()
        values["end_date"] = today.isoformat()

    values.update(overrides)
    values["id"] = new_record_id(ID_PREFIXES[kind])
    values["project_id"] = project_id

    if kind == RecordKind.TASKS:
        return Task(**values)
    if kind == RecordKind.LABOR:
        return Labor(**values)
    return Material(**values)


def recompute_derived(record: Record) -> Record:
    """
    Return a copy with derived costs recomputed from their inputs.

    Labor.cost = qty × rate; Material.total_cost = qty × unit_cost.
    Tasks carry no derived fields and are returned unchanged.
    """
    if isinstance(record, Labor):
        return record.model_copy(update={"cost": record.qty * record.rate})
    if isinstance(record, Material):
        return record.model_copy(update={"total_cost": record.qty * record.unit_cost})
    return record
