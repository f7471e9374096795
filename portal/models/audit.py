"""
Audit Models for the Project Portal

Every mutating action and every degraded failure in the portal is
recorded as an audit event. This provides:
1. A trail of who-changed-what during a session
2. Debugging information when persistence or inference fails
3. Visibility of denied actions taken from the investor view

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record changes
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    RECORD_NOT_FOUND = "record_not_found"
    PAID_TOGGLED = "paid_toggled"
    RECEIVED_TOGGLED = "received_toggled"

    # Bulk transfer
    CSV_IMPORTED = "csv_imported"
    CSV_EXPORTED = "csv_exported"

    # Role gate
    PERMISSION_DENIED = "permission_denied"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SNAPSHOT_WRITE_FAILED = "snapshot_write_failed"
    ATTACHMENT_DELETE_FAILED = "attachment_delete_failed"

    # Receipt assistant
    RECEIPT_EXTRACTED = "receipt_extracted"
    RECEIPT_EXTRACTION_FAILED = "receipt_extraction_failed"
    RECEIPT_COMMITTED = "receipt_committed"

    # Blog
    BLOG_POST_SAVED = "blog_post_saved"
    BLOG_POST_DELETED = "blog_post_deleted"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """How serious an audit event is."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    One audited portal action or failure.

    Shown in the Activity tab and emitted as a structlog line.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Event id"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="UTC time the event was recorded"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="What happened"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="How bad it is"
    )

    # Which record, post or snapshot
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'labor', 'snapshot', 'blog_post')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    project_id: Optional[str] = None

    # Ties together the events of one flow
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one receipt scan)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Short text for the activity table"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific extras, e.g. row counts"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="True when a person clicked something"
    )

    def to_log_dict(self) -> dict:
        """
        Flat dict for structlog keyword arguments.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "project_id": self.project_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Factories for every event the portal records.

    Usage:
        event = AuditEventBuilder.record_created("labor", record_id, project_id)
        event = AuditEventBuilder.permission_denied("delete", "investor")
    """

    @staticmethod
    def record_created(kind: str, record_id: str, project_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=kind,
            entity_id=record_id,
            project_id=project_id,
            description=f"Created {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def record_updated(kind: str, record_id: str, project_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=kind,
            entity_id=record_id,
            project_id=project_id,
            description=f"Updated {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(kind: str, record_id: str, project_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=kind,
            entity_id=record_id,
            project_id=project_id,
            description=f"Deleted {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def record_not_found(kind: str, record_id: str, project_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=kind,
            entity_id=record_id,
            project_id=project_id,
            description=f"Save dropped: {kind} record no longer exists",
            is_user_action=True,
        )

    @staticmethod
    def flag_toggled(
        kind: str,
        record_id: str,
        project_id: str,
        flag: str,
        value: bool,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.RECEIVED_TOGGLED
            if flag == "received"
            else AuditEventType.PAID_TOGGLED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type=kind,
            entity_id=record_id,
            project_id=project_id,
            description=f"Marked {kind} record {flag}={value}",
            details={"flag": flag, "value": value},
            is_user_action=True,
        )

    @staticmethod
    def csv_imported(kind: str, project_id: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORTED,
            entity_type=kind,
            project_id=project_id,
            description=f"Imported {row_count} {kind} rows from CSV",
            details={"row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def csv_exported(kind: str, project_id: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_EXPORTED,
            entity_type=kind,
            project_id=project_id,
            description=f"Exported {row_count} {kind} rows to CSV",
            details={"row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def permission_denied(action: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            description=f"Action '{action}' denied for role '{role}'",
            details={"action": action, "role": role},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(snapshot: str, entry_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            entity_id=snapshot,
            description=f"Loaded {snapshot} snapshot",
            details={"entry_count": entry_count},
        )

    @staticmethod
    def snapshot_load_failed(snapshot: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            entity_id=snapshot,
            description=f"Could not read {snapshot} snapshot, using seed data",
            error_message=error_message,
        )

    @staticmethod
    def snapshot_write_failed(snapshot: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=snapshot,
            description=f"Could not persist {snapshot} snapshot",
            error_message=error_message,
        )

    @staticmethod
    def attachment_delete_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ATTACHMENT_DELETE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="attachment",
            entity_id=key,
            description="Could not remove stored attachment",
            error_message=error_message,
        )

    @staticmethod
    def receipt_extracted(
        filename: str,
        item_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_EXTRACTED,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"Receipt {filename} returned {item_count} items",
            details={"filename": filename, "item_count": item_count},
            is_user_action=True,
        )

    @staticmethod
    def receipt_extraction_failed(
        filename: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_EXTRACTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"Receipt extraction failed for {filename}",
            error_message=error_message,
        )

    @staticmethod
    def receipt_committed(
        project_id: str,
        attachment_key: str,
        record_ids: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_COMMITTED,
            entity_type="receipt",
            entity_id=attachment_key,
            project_id=project_id,
            correlation_id=correlation_id,
            description=f"Committed {len(record_ids)} materials from receipt",
            details={"record_ids": record_ids},
            is_user_action=True,
        )

    @staticmethod
    def blog_post_saved(post_id: str, title: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BLOG_POST_SAVED,
            entity_type="blog_post",
            entity_id=post_id,
            description=f"Saved blog post: {title[:100]}",
            is_user_action=True,
        )

    @staticmethod
    def blog_post_deleted(post_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BLOG_POST_DELETED,
            entity_type="blog_post",
            entity_id=post_id,
            description="Deleted blog post",
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
