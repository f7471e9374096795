"""
Main Orchestrator for the Palawan Portal

This module ties together all the components the UI needs:
1. Record store + attachment store (projects snapshot, blobs)
2. Blog store (blog snapshot)
3. Receipt review flow (only when Gemini is configured)
4. Optional external adapters (Cloudinary uploads, Google Sheets rollups)

DESIGN DECISION: One PortalContext is built per process and handed to
every view. Views never construct stores themselves, so there is exactly
one owner of project data for the whole session.

External services are optional. If their settings are missing the
portal runs with local persistence only and the matching feature is
hidden in the UI.
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

import structlog

from portal.agents import ReceiptExtractionAgent
from portal.attachments import AttachmentResolver
from portal.audit import AuditLogger, create_correlation_id
from portal.blog import BlogManager
from portal.config import AppSettings, get_settings
from portal.models.records import (
    Attachment,
    DriveLinkAttachment,
    LocalStoreAttachment,
    RecordKind,
    UserRole,
    parse_iso_date,
)
from portal.services.image import CloudinaryUploadService, ImageUploadError
from portal.services.image.inspection import inspect_image, to_data_url
from portal.services.storage import (
    AttachmentStoreInterface,
    FileAttachmentStore,
    FileSnapshotStorage,
    InMemoryAttachmentStore,
    InMemorySnapshotStorage,
    TaskTableInterface,
)
from portal.services.storage.interface import TaskRow
from portal.store import (
    BlogStore,
    RecordStore,
    WeeklyTotals,
    compute_all_projects_weekly_totals,
    compute_weekly_totals,
    daily_rollups,
)
from portal.workspace import CrudWorkspace, ReceiptReviewFlow

logger = structlog.get_logger(__name__)


class PortalContext:
    """
    Process-wide services shared by every view.

    Optional members are None when the backing service is not configured.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        audit_logger: AuditLogger,
        record_store: RecordStore,
        blog_store: BlogStore,
        attachments: AttachmentStoreInterface,
        receipt_flow: Optional[ReceiptReviewFlow] = None,
        uploader: Optional[CloudinaryUploadService] = None,
        task_table: Optional[TaskTableInterface] = None,
    ):
        self.app_settings = app_settings
        self.audit_logger = audit_logger
        self.record_store = record_store
        self.blog_store = blog_store
        self.attachments = attachments
        self.resolver = AttachmentResolver(attachments)
        self.receipt_flow = receipt_flow
        self.uploader = uploader
        self.task_table = task_table

    def workspace_for(
        self,
        role: UserRole,
        project_id: str,
        kind: RecordKind = RecordKind.TASKS,
        today: Optional[date] = None,
    ) -> CrudWorkspace:
        return CrudWorkspace(
            self.record_store,
            self.attachments,
            role,
            project_id,
            kind=kind,
            audit_logger=self.audit_logger,
            today=today,
        )

    def blog_manager(self, role: UserRole) -> BlogManager:
        return BlogManager(self.blog_store, role, self.audit_logger)

    def weekly_totals(self, project_id: str, reference_date: date) -> WeeklyTotals:
        return compute_weekly_totals(
            self.record_store.get_project_data(project_id),
            reference_date,
            self.app_settings.weekly_window_days,
        )

    def all_projects_weekly_totals(self, reference_date: date) -> WeeklyTotals:
        return compute_all_projects_weekly_totals(
            self.record_store.all_projects(),
            reference_date,
            self.app_settings.weekly_window_days,
        )


async def attach_image(
    context: PortalContext,
    image_bytes: bytes,
    filename: str,
) -> Attachment:
    """
    Store an uploaded image and return the attachment that references it.

    Uploads to Cloudinary when configured and keeps the resulting URL as
    a link; otherwise (or if the upload fails) the image goes to the
    local attachment store.

    Raises:
        InvalidImageError: If the bytes are not an acceptable image
    """
    info = inspect_image(
        image_bytes,
        max_bytes=context.app_settings.max_upload_size_bytes,
        supported_formats=context.app_settings.supported_formats_list,
    )
    data_url = to_data_url(image_bytes, info.mime_type)

    if context.uploader is not None:
        try:
            uploaded = await asyncio.to_thread(context.uploader.upload_data_url, data_url)
            return DriveLinkAttachment(url=uploaded.url, name=filename)
        except ImageUploadError as e:
            context.audit_logger.log_external_service_error(
                service="cloudinary",
                error_message=str(e),
                correlation_id=create_correlation_id(),
            )
            logger.warning("cloud_upload_failed_using_local_store", error=str(e))

    key = f"attachment-{uuid4().hex}"
    await context.attachments.save(key, data_url)
    return LocalStoreAttachment(key=key, name=filename)


async def sync_project_to_sheets(context: PortalContext, project_id: str) -> int:
    """
    Push a project's tasks and daily cost rollups to the task table.

    Returns the number of rows written. Failures are audited and re-raised.
    """
    if context.task_table is None:
        return 0

    data = context.record_store.get_project_data(project_id)
    written = 0
    try:
        for task in data.tasks:
            if not task.name:
                continue
            row = TaskRow(
                task_name=task.name,
                type=task.type.value,
                status=task.status.value,
                owner=task.owner,
                due_date=parse_iso_date(task.due_date),
                cost=task.cost,
            )
            if await context.task_table.insert_task(row):
                written += 1
        for rollup in daily_rollups(project_id, data):
            if await context.task_table.upsert_daily_rollup(rollup):
                written += 1
    except Exception as e:
        context.audit_logger.log_external_service_error(
            service="google_sheets",
            error_message=str(e),
        )
        raise

    logger.info("project_synced_to_sheets", project_id=project_id, rows=written)
    return written


def create_app_components(
    data_dir: Optional[Union[str, Path]] = None,
    in_memory: bool = False,
) -> PortalContext:
    """
    Factory function to create all application components.

    Args:
        data_dir: Overrides the configured data directory
        in_memory: Keep snapshots and attachments in memory (tests, demos)

    Returns:
        A loaded PortalContext
    """
    settings = get_settings()
    app_settings = settings.app
    if data_dir is not None:
        app_settings = app_settings.model_copy(update={"data_dir": str(data_dir)})

    audit_logger = AuditLogger()

    if in_memory:
        projects_storage = InMemorySnapshotStorage(name="projects")
        blog_storage = InMemorySnapshotStorage(name="blog_posts")
        attachments = InMemoryAttachmentStore()
    else:
        projects_storage = FileSnapshotStorage(app_settings.projects_snapshot_path)
        blog_storage = FileSnapshotStorage(app_settings.blog_snapshot_path)
        attachments = FileAttachmentStore(app_settings.attachments_path)

    record_store = RecordStore(projects_storage, audit_logger)
    record_store.load()
    blog_store = BlogStore(blog_storage, audit_logger)
    blog_store.load()

    receipt_flow = None
    try:
        agent = ReceiptExtractionAgent(settings=settings.gemini)
        receipt_flow = ReceiptReviewFlow(
            agent,
            record_store,
            attachments,
            audit_logger,
            max_upload_bytes=app_settings.max_upload_size_bytes,
            supported_formats=app_settings.supported_formats_list,
        )
    except Exception as e:
        # Gemini not configured - receipt scanning is hidden
        logger.warning("receipt_scanning_unavailable", error=str(e))

    uploader = None
    task_table = None
    if not in_memory:
        try:
            uploader = CloudinaryUploadService()
        except Exception as e:
            logger.info("cloud_uploads_unavailable", error=str(e))

        try:
            from portal.services.storage.google_sheets import GoogleSheetsTaskTable
            task_table = GoogleSheetsTaskTable()
        except Exception as e:
            logger.info("sheets_sync_unavailable", error=str(e))

    return PortalContext(
        app_settings=app_settings,
        audit_logger=audit_logger,
        record_store=record_store,
        blog_store=blog_store,
        attachments=attachments,
        receipt_flow=receipt_flow,
        uploader=uploader,
        task_table=task_table,
    )
