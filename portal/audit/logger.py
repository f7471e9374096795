"""
Audit Logger

DESIGN DECISION: Every mutating portal action and every degraded
failure is logged. This provides:
1. Traceability of record changes within a session
2. A visible record of swallowed persistence failures
3. A short history the portal can show to the admin

The audit logger:
- Is synchronous: the record store saves synchronously, and logging
  must not need an event loop
- Never raises into the caller
- Supports correlation IDs to trace related events (one receipt scan)
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from portal.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Audit trail for one portal process.

    Logs events both to:
    1. Structured local log (for debugging)
    2. A bounded in-memory history (for the portal's activity panel)
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("portal.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally and remember it."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def events_for_correlation(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._history if e.correlation_id == correlation_id]

    def log_permission_denied(self, action: str, role: str) -> None:
        self.log(AuditEventBuilder.permission_denied(action=action, role=role))

    def log_snapshot_write_failed(self, snapshot: str, error: Exception) -> None:
        self.log(AuditEventBuilder.snapshot_write_failed(snapshot, str(error)))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record a failed call to Cloudinary, Sheets or Gemini."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    New id tying together the events of one flow (e.g. one receipt scan).

    Use this at the start of a new user action (e.g., a receipt scan).
    Pass it to every audit call in that flow.
    """
    return uuid4()
