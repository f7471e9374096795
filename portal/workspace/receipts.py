"""
Receipt review flow for the Materials tab.

Flow:
1. Check the photo (decodable, supported format, within size limit)
2. Extract → Gemini proposes line items
3. Review → rows shown in an editable grid, all selected, category Other
4. Commit → selected rows appended as new materials (PAUSE - requires
   an explicit admin action)

The receipt image is stored once in the attachment store and every
committed row references it by key.

If extraction fails at any step the user gets a readable message and
the manual Add form instead. Nothing is retried automatically.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, Field, ValidationError

from portal.agents.receipt_agent import ReceiptExtractionAgent, ReceiptExtractionError
from portal.audit import AuditLogger, create_correlation_id
from portal.models.audit import AuditEventBuilder
from portal.models.records import (
    LocalStoreAttachment,
    MaterialCategory,
    MaterialUnit,
    RecordKind,
    UserRole,
)
from portal.services.image.inspection import InvalidImageError, inspect_image, to_data_url
from portal.services.storage.interface import AttachmentStoreInterface, StorageError
from portal.store.record_store import RecordStore
from portal.workspace.defaults import new_record, recompute_derived
from portal.workspace.roles import ActionResult, require_admin


class ReceiptRow(BaseModel):
    """One editable row of the review grid."""

    selected: bool = True
    item: str = ""
    qty: Decimal = Decimal("0")
    unit_cost: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    category: MaterialCategory = MaterialCategory.OTHER
    unit: MaterialUnit = MaterialUnit.PIECE


class ReceiptReview(BaseModel):
    """Extracted rows awaiting human review."""

    correlation_id: UUID
    filename: str
    mime_type: str
    image_data_url: str
    rows: list[ReceiptRow] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def selected_rows(self) -> list[ReceiptRow]:
        return [row for row in self.rows if row.selected]

    def update_row(self, index: int, **changes) -> ActionResult:
        """Edit one row in place. Invalid values leave it unchanged."""
        if not 0 <= index < len(self.rows):
            return ActionResult.failure("No such row.")
        merged = {**self.rows[index].model_dump(), **changes}
        try:
            self.rows[index] = ReceiptRow.model_validate(merged)
        except ValidationError as e:
            return ActionResult.failure(f"Invalid value: {e.errors()[0]['msg']}")
        return ActionResult.success()


class ExtractionOutcome(BaseModel):
    review: Optional[ReceiptReview] = None
    error: Optional[str] = None

    @property
    def fallback_to_manual(self) -> bool:
        return self.review is None


class ReceiptReviewSession:
    """
    Holds the review for one open receipt dialog.

    Once closed, late extraction results are dropped.
    """

    def __init__(self):
        self.closed = False
        self.outcome: Optional[ExtractionOutcome] = None

    def close(self) -> None:
        self.closed = True
        self.outcome = None

    def accept(self, outcome: ExtractionOutcome) -> bool:
        if self.closed:
            return False
        self.outcome = outcome
        return True


class ReceiptReviewFlow:
    """
    Orchestrates extract → review → commit for receipt photos.
    """

    def __init__(
        self,
        agent: ReceiptExtractionAgent,
        store: RecordStore,
        attachments: AttachmentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        max_upload_bytes: Optional[int] = None,
        supported_formats: Optional[list[str]] = None,
    ):
        self._agent = agent
        self._store = store
        self._attachments = attachments
        self._audit_logger = audit_logger
        self._max_upload_bytes = max_upload_bytes
        self._supported_formats = supported_formats
        self._logger = structlog.get_logger(__name__)

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    async def extract(
        self,
        image_bytes: bytes,
        mime_type: str,
        filename: str,
        session: Optional[ReceiptReviewSession] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionOutcome:
        """
        Run extraction and build the review.

        Never raises: failures come back as an outcome with an error
        message and no review. The declared mime_type is only used
        when Pillow cannot name the format. If a session is given and
        has been closed by the time the result arrives, the result is
        discarded.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            info = inspect_image(
                image_bytes,
                max_bytes=self._max_upload_bytes,
                supported_formats=self._supported_formats,
            )
            if info.mime_type != "application/octet-stream":
                mime_type = info.mime_type
            items = await self._agent.extract(image_bytes, mime_type)
        except (InvalidImageError, ReceiptExtractionError) as e:
            self._logger.warning("receipt_extraction_failed", filename=filename, error=str(e))
            self._audit(AuditEventBuilder.receipt_extraction_failed(filename, str(e), correlation_id))
            outcome = ExtractionOutcome(
                error=f"Could not read this receipt ({e}). Please enter the items manually."
            )
        else:
            self._audit(AuditEventBuilder.receipt_extracted(filename, len(items), correlation_id))
            review = ReceiptReview(
                correlation_id=correlation_id,
                filename=filename,
                mime_type=mime_type,
                image_data_url=to_data_url(image_bytes, mime_type),
                rows=[
                    ReceiptRow(
                        item=item.item,
                        qty=item.qty,
                        unit_cost=item.unit_cost,
                        total_cost=item.total_cost,
                    )
                    for item in items
                ],
                warnings=info.warnings,
            )
            if not items:
                review.warnings.append("No line items were found on this receipt.")
            outcome = ExtractionOutcome(review=review)

        if session is not None and not session.accept(outcome):
            self._logger.info("receipt_result_discarded", filename=filename)
        return outcome

    async def commit(
        self,
        review: ReceiptReview,
        role: UserRole,
        project_id: str,
        supplier: str = "",
        delivery_eta: str = "",
    ) -> ActionResult:
        """
        Append the selected rows as new materials.

        The image is saved first; if that fails nothing is committed.
        """
        denied = require_admin(role, "add materials from receipts", self._audit_logger)
        if denied:
            return denied

        rows = review.selected_rows
        if not rows:
            return ActionResult.failure("Select at least one row to add.")

        key = f"receipt-{uuid4().hex}"
        try:
            await self._attachments.save(key, review.image_data_url)
        except StorageError as e:
            self._logger.error("receipt_image_save_failed", key=key, error=str(e))
            return ActionResult.failure("Could not store the receipt image. Nothing was added.")

        attachment = LocalStoreAttachment(key=key, name=review.filename)
        existing = self._store.get_records(project_id, RecordKind.MATERIALS)
        materials = []
        for row in rows:
            material = new_record(
                RecordKind.MATERIALS,
                project_id,
                existing=existing,
                item=row.item,
                qty=row.qty,
                unit_cost=row.unit_cost,
                category=row.category,
                unit=row.unit,
                supplier=supplier,
                delivery_eta=delivery_eta,
                attachment=attachment,
            )
            materials.append(recompute_derived(material))

        self._store.add_records(project_id, RecordKind.MATERIALS, materials)
        self._audit(AuditEventBuilder.receipt_committed(
            project_id, key, [m.id for m in materials], review.correlation_id
        ))
        return ActionResult.success(f"Added {len(materials)} materials from the receipt.")
