"""Image services package."""

from portal.services.image.inspection import (
    ImageError,
    ImageInfo,
    InvalidImageError,
    decode_base64_image,
    inspect_image,
    split_data_url,
    to_data_url,
)
from portal.services.image.cloudinary_service import (
    CloudinaryUploadService,
    ImageUploadError,
    InvalidUploadError,
    UploadedFile,
)

__all__ = [
    "CloudinaryUploadService",
    "ImageError",
    "ImageInfo",
    "ImageUploadError",
    "InvalidImageError",
    "InvalidUploadError",
    "UploadedFile",
    "decode_base64_image",
    "inspect_image",
    "split_data_url",
    "to_data_url",
]
