"""Attachment resolution."""

from portal.attachments.resolver import (
    AttachmentResolver,
    AttachmentSlot,
    ResolutionState,
    ResolvedImage,
    payload_to_src,
    resolve_all,
    to_direct_drive_url,
)

__all__ = [
    "AttachmentResolver",
    "AttachmentSlot",
    "ResolutionState",
    "ResolvedImage",
    "payload_to_src",
    "resolve_all",
    "to_direct_drive_url",
]
