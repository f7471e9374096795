"""
Core Data Models for the Project Portal

These models define the schemas for every record the portal keeps:
tasks, labor entries and material purchases, grouped per project.

DESIGN DECISION: Money and quantities are Decimal, never float.
Costs are multiplied and summed for weekly totals, and binary floats
would drift (0.1 + 0.2 style errors) across a week of entries.

DESIGN DECISION: Dates are kept as the ISO "YYYY-MM-DD" text the user
entered (empty when unset). A record with a half-typed or missing date
is still a valid record; only the weekly totals need a real date, and
they parse lazily with parse_iso_date().
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TaskStatus(str, Enum):
    """Workflow status of a task."""
    PENDING = "Pending"
    BACKLOG = "Backlog"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    REVIEW = "Review"
    DONE = "Done"


class TaskType(str, Enum):
    """Construction phase a task belongs to."""
    DESIGN = "Design"
    SITE_PREP = "Site Prep"
    FOUNDATION = "Foundation"
    STRUCTURE = "Structure"
    MEP = "MEP"
    FINISH = "Finish"
    INSPECTION = "Inspection"


class LaborRateType(str, Enum):
    """How a labor rate is charged: qty is hours, days or contract units."""
    HOURLY = "Hourly"
    DAILY = "Daily"
    CONTRACT = "Contract"


class MaterialCategory(str, Enum):
    AGGREGATES = "Aggregates"
    TIMBER = "Timber"
    STEEL = "Steel"
    ELECTRICAL = "Electrical"
    PLUMBING = "Plumbing"
    FINISHES = "Finishes"
    FIXTURES = "Fixtures"
    OTHER = "Other"


class MaterialUnit(str, Enum):
    PIECE = "pc"
    BOX = "box"
    METER = "m"
    SQUARE_METER = "sqm"
    KILOGRAM = "kg"
    TON = "ton"


class StorageLocation(str, Enum):
    SITE = "Site"
    WAREHOUSE = "Warehouse"


class RecordKind(str, Enum):
    """
    The three record kinds a project owns.

    Values double as the ProjectData attribute names.
    """
    TASKS = "tasks"
    LABOR = "labor"
    MATERIALS = "materials"


class UserRole(str, Enum):
    """
    Capability flag chosen at portal entry.

    This is not authentication: it only decides whether
    mutating actions are offered.
    """
    ADMIN = "admin"
    INVESTOR = "investor"


# =============================================================================
# ATTACHMENTS - one payload representation per kind
# =============================================================================

class ImageAttachment(BaseModel):
    """An image carried inline as base64 (or a full data: URL)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Literal["image"] = "image"
    data: str = Field(..., min_length=1, description="Base64 payload or data: URL")
    mime_type: str = Field(default="image/jpeg")
    name: Optional[str] = None


class DriveLinkAttachment(BaseModel):
    """A link to a file shared from Google Drive (or any other URL)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Literal["drive"] = "drive"
    url: str = Field(..., min_length=1)
    name: Optional[str] = None


class LocalStoreAttachment(BaseModel):
    """A reference to a blob kept in the local attachment store."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Literal["local"] = "local"
    key: str = Field(..., min_length=1, description="Key into the attachment store")
    name: Optional[str] = None


Attachment = Annotated[
    Union[ImageAttachment, DriveLinkAttachment, LocalStoreAttachment],
    Field(discriminator="kind"),
]


# =============================================================================
# RECORDS
# =============================================================================

def new_record_id(prefix: str) -> str:
    """Generate a record identifier such as 'material-3f2a...'."""
    return f"{prefix}-{uuid4().hex}"


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a stored "YYYY-MM-DD" date.

    Returns None for empty or unparseable text instead of raising.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class _RecordBase(BaseModel):
    """Fields shared by every record kind."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    notes: str = ""
    paid: bool = False
    attachment: Optional[Attachment] = None


class Task(_RecordBase):
    """A unit of work on a project."""

    name: str = ""
    status: TaskStatus = TaskStatus.PENDING
    type: TaskType = TaskType.DESIGN
    owner: str = ""
    start_date: str = ""
    due_date: str = ""
    est_hours: Decimal = Decimal("0")
    actual_hours: Optional[Decimal] = None
    cost: Decimal = Decimal("0")
    tags: list[str] = Field(default_factory=list)
    order: int = 0

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        """Tags behave as a set but keep their first-seen order."""
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class Labor(_RecordBase):
    """
    A labor entry.

    cost is derived: qty × rate, recomputed whenever the entry is saved.
    """

    crew_role: str = ""
    workers: str = ""
    rate_type: LaborRateType = LaborRateType.DAILY
    qty: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    supplier: str = ""
    start_date: str = ""
    end_date: str = ""


class Material(_RecordBase):
    """
    A material purchase.

    total_cost is derived: qty × unit_cost, recomputed whenever the entry is saved.
    """

    item: str = ""
    category: MaterialCategory = MaterialCategory.OTHER
    unit: MaterialUnit = MaterialUnit.PIECE
    qty: Decimal = Decimal("0")
    unit_cost: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    supplier: str = ""
    lead_time_days: int = 0
    delivery_eta: str = ""
    received: bool = False
    location: StorageLocation = StorageLocation.SITE


Record = Union[Task, Labor, Material]

RECORD_MODELS: dict[RecordKind, type] = {
    RecordKind.TASKS: Task,
    RecordKind.LABOR: Labor,
    RecordKind.MATERIALS: Material,
}

ID_PREFIXES: dict[RecordKind, str] = {
    RecordKind.TASKS: "task",
    RecordKind.LABOR: "labor",
    RecordKind.MATERIALS: "material",
}


class ProjectData(BaseModel):
    """
    The three ordered record sequences owned by one project.

    Sequence order is the stored order; views sort copies of it.
    """

    tasks: list[Task] = Field(default_factory=list)
    labor: list[Labor] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)

    def records(self, kind: RecordKind) -> list:
        return getattr(self, RecordKind(kind).value)

    def with_records(self, kind: RecordKind, records: list) -> "ProjectData":
        """Return a copy with one sequence replaced wholesale."""
        return self.model_copy(update={RecordKind(kind).value: list(records)})


class Project(BaseModel):
    """A named unit of work selectable in the portal."""

    id: str
    name: str
