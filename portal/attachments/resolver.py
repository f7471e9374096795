"""
Attachment Resolver

Turns an Attachment into something an <img> (or st.image) can show.

Two paths:
- try_direct(): pure and synchronous. Works for inline images and
  links; returns None for local-store attachments.
- resolve(): asynchronous. Also looks local-store keys up in the
  attachment store and reports PENDING / RESOLVED / ABSENT.

A list view renders every row at once with try_direct() (or a
placeholder), then fills local-store images in as resolve() finishes.
AttachmentSlot guards against a result arriving after the row is gone.
"""

import asyncio
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs, urlparse

import structlog
from pydantic import BaseModel

from portal.models.records import (
    Attachment,
    DriveLinkAttachment,
    ImageAttachment,
    LocalStoreAttachment,
)
from portal.services.storage.interface import AttachmentStoreInterface

logger = structlog.get_logger(__name__)

DRIVE_DIRECT_URL = "https://drive.google.com/uc?export=view&id={file_id}"


def to_direct_drive_url(url: str) -> str:
    """
    Rewrite a Google Drive share link to a direct-view URL.

    Handles ".../file/d/<id>/view" and "...?id=<id>" links. Anything
    else, including malformed input, is returned unchanged.
    """
    try:
        parsed = urlparse(url)
        if "drive.google.com" not in (parsed.netloc or ""):
            return url

        parts = [p for p in parsed.path.split("/") if p]
        if "d" in parts:
            index = parts.index("d")
            if index + 1 < len(parts) and parts[index + 1]:
                return DRIVE_DIRECT_URL.format(file_id=parts[index + 1])

        ids = parse_qs(parsed.query).get("id")
        if ids and ids[0]:
            return DRIVE_DIRECT_URL.format(file_id=ids[0])
    except (ValueError, AttributeError, TypeError):
        return url
    return url


def payload_to_src(payload: str, mime_type: str = "image/jpeg") -> str:
    """A stored payload as an image source: URLs pass through, base64 becomes a data: URL."""
    if payload.startswith(("data:", "http://", "https://")):
        return to_direct_drive_url(payload) if payload.startswith("http") else payload
    return f"data:{mime_type};base64,{payload}"


class ResolutionState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    ABSENT = "absent"


class ResolvedImage(BaseModel):
    state: ResolutionState
    url: Optional[str] = None


PENDING = ResolvedImage(state=ResolutionState.PENDING)
ABSENT = ResolvedImage(state=ResolutionState.ABSENT)


class AttachmentResolver:
    """Resolves attachments against one attachment store."""

    def __init__(self, store: AttachmentStoreInterface):
        self._store = store

    @staticmethod
    def try_direct(attachment: Optional[Attachment]) -> Optional[str]:
        """Displayable URL without I/O, or None if a lookup is needed (or nothing is attached)."""
        if attachment is None:
            return None
        if isinstance(attachment, ImageAttachment):
            return payload_to_src(attachment.data, attachment.mime_type)
        if isinstance(attachment, DriveLinkAttachment):
            return to_direct_drive_url(attachment.url)
        return None

    async def resolve(self, attachment: Optional[Attachment]) -> ResolvedImage:
        """
        Resolve any attachment kind.

        A missing local-store key resolves to ABSENT and is not retried.
        Store errors are logged and also reported as ABSENT.
        """
        if attachment is None:
            return ABSENT

        direct = self.try_direct(attachment)
        if direct is not None:
            return ResolvedImage(state=ResolutionState.RESOLVED, url=direct)

        if isinstance(attachment, LocalStoreAttachment):
            try:
                payload = await self._store.get(attachment.key)
            except Exception as e:
                logger.warning("attachment_lookup_failed", key=attachment.key, error=str(e))
                return ABSENT
            if payload is None:
                return ABSENT
            return ResolvedImage(state=ResolutionState.RESOLVED, url=payload_to_src(payload))

        return ABSENT


class AttachmentSlot:
    """
    Per-row image holder for a list view.

    Starts PENDING (ABSENT if nothing is attached, RESOLVED if no lookup
    is needed). load() stores its result only while the slot is mounted.
    """

    def __init__(self, record_id: str, attachment: Optional[Attachment]):
        self.record_id = record_id
        self.attachment = attachment
        self.mounted = True

        direct = AttachmentResolver.try_direct(attachment)
        if attachment is None:
            self.image = ABSENT
        elif direct is not None:
            self.image = ResolvedImage(state=ResolutionState.RESOLVED, url=direct)
        else:
            self.image = PENDING

    @property
    def needs_lookup(self) -> bool:
        return self.image.state == ResolutionState.PENDING

    def unmount(self) -> None:
        self.mounted = False

    async def load(self, resolver: AttachmentResolver) -> ResolvedImage:
        if not self.needs_lookup:
            return self.image
        result = await resolver.resolve(self.attachment)
        if self.mounted:
            self.image = result
        return result


async def resolve_all(slots: list[AttachmentSlot], resolver: AttachmentResolver) -> None:
    """Load every pending slot concurrently."""
    await asyncio.gather(*(slot.load(resolver) for slot in slots if slot.needs_lookup))
