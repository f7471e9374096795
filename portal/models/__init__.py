"""
Data Models Package

This package contains all Pydantic models used by the portal.
All data flowing through the record store must conform to these schemas.
"""

from portal.models.records import (
    Attachment,
    DriveLinkAttachment,
    ID_PREFIXES,
    ImageAttachment,
    Labor,
    LaborRateType,
    LocalStoreAttachment,
    Material,
    MaterialCategory,
    MaterialUnit,
    Project,
    ProjectData,
    RECORD_MODELS,
    Record,
    RecordKind,
    StorageLocation,
    Task,
    TaskStatus,
    TaskType,
    UserRole,
    new_record_id,
    parse_iso_date,
)
from portal.models.blog import BlogPost, PostStatus
from portal.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Attachment",
    "DriveLinkAttachment",
    "ID_PREFIXES",
    "ImageAttachment",
    "Labor",
    "LaborRateType",
    "LocalStoreAttachment",
    "Material",
    "MaterialCategory",
    "MaterialUnit",
    "Project",
    "ProjectData",
    "RECORD_MODELS",
    "Record",
    "RecordKind",
    "StorageLocation",
    "Task",
    "TaskStatus",
    "TaskType",
    "UserRole",
    "new_record_id",
    "parse_iso_date",
    # Blog
    "BlogPost",
    "PostStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
