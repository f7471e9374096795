"""
Image inspection with PIL.

Receipt photos and record attachments are checked before anything is
stored or sent to the inference service: the bytes must decode as an
image in a supported format and fit the upload limit.

DESIGN DECISION: We only check what can be checked cheaply and
deterministically (size, decodability, format, resolution). Whether
the text on a receipt is legible is left to the human reviewing the
extracted rows.
"""

import base64
import binascii
import re
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel


class ImageError(Exception):
    """Base exception for image handling errors."""
    pass


class InvalidImageError(ImageError):
    """Bytes are not a usable image."""
    pass


_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<payload>.*)$", re.DOTALL)

# PIL format name → mime type
_FORMAT_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}

# PIL format name → accepted extensions
_FORMAT_EXTENSIONS = {
    "JPEG": {"jpg", "jpeg"},
    "PNG": {"png"},
    "WEBP": {"webp"},
    "GIF": {"gif"},
}


class ImageInfo(BaseModel):
    """What we learned about an image."""

    format: str
    mime_type: str
    width: int
    height: int
    size_bytes: int
    warnings: list[str] = []


def split_data_url(data_url: str) -> tuple[str, str]:
    """
    Split "data:<mime>;base64,<payload>" into (mime, payload).

    Raises:
        InvalidImageError: If the text is not a base64 data URL
    """
    match = _DATA_URL.match(data_url or "")
    if not match:
        raise InvalidImageError("Invalid data URL format")
    return match.group("mime"), match.group("payload")


def decode_base64_image(payload: str) -> bytes:
    """Decode a bare base64 payload or a data URL to bytes."""
    if payload.startswith("data:"):
        _, payload = split_data_url(payload)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 payload: {e}")


def to_data_url(image_bytes: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def inspect_image(
    image_bytes: bytes,
    max_bytes: Optional[int] = None,
    supported_formats: Optional[list[str]] = None,
) -> ImageInfo:
    """
    Decode image bytes and check them against upload limits.

    Args:
        image_bytes: Raw image bytes
        max_bytes: Reject images larger than this
        supported_formats: Lower-case extensions, e.g. ["jpg", "png"]

    Raises:
        InvalidImageError: If the image is empty, too large, unreadable
            or in an unsupported format
    """
    if not image_bytes:
        raise InvalidImageError("Image is empty")

    if max_bytes is not None and len(image_bytes) > max_bytes:
        raise InvalidImageError(
            f"Image is {len(image_bytes) / (1024 * 1024):.1f} MB, "
            f"limit is {max_bytes / (1024 * 1024):.0f} MB"
        )

    try:
        img = Image.open(BytesIO(image_bytes))
        img.verify()
        # verify() leaves the image unusable; reopen for size
        img = Image.open(BytesIO(image_bytes))
        width, height = img.size
        fmt = (img.format or "").upper()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError(f"Could not read image: {e}")

    if supported_formats is not None:
        allowed = _FORMAT_EXTENSIONS.get(fmt, set())
        if not allowed.intersection(supported_formats):
            raise InvalidImageError(f"Unsupported image format: {fmt or 'unknown'}")

    warnings = []
    if min(width, height) < 300:
        warnings.append("Image resolution is low, text may be hard to read")

    return ImageInfo(
        format=fmt,
        mime_type=_FORMAT_MIME.get(fmt, "application/octet-stream"),
        width=width,
        height=height,
        size_bytes=len(image_bytes),
        warnings=warnings,
    )
