"""
Object Storage Upload using Cloudinary

DESIGN DECISION: Attachments normally live in the local attachment
store. When an admin wants a shareable link (for the blog or for an
investor update), the image is pushed to Cloudinary and the returned
URL is used instead.

This service handles:
1. Parsing a base64 data URL
2. Checking the bytes are a real image within limits
3. Uploading to Cloudinary
4. Returning the public URL
"""

import hashlib
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from portal.config import get_settings
from portal.services.image.inspection import (
    ImageError,
    InvalidImageError,
    decode_base64_image,
    inspect_image,
    split_data_url,
)


class ImageUploadError(ImageError):
    """Cloudinary rejected or failed an upload."""
    pass


class InvalidUploadError(ImageUploadError):
    """The upload request itself was malformed."""
    pass


_EXTENSIONS = {
    "image/png": ".png",
    "image/webp": ".webp",
}


class UploadedFile(BaseModel):
    url: str
    filename: str
    mime: str


class CloudinaryUploadService:
    """
    Upload data-URL images to Cloudinary.

    Flow:
    1. Receive "data:<mime>;base64,<payload>"
    2. Validate format and image bytes
    3. Upload (retried on transport failures)
    4. Return UploadedFile with the secure URL
    """

    def __init__(self, uploader=None):
        self._settings = get_settings().cloudinary
        self._app_settings = get_settings().app
        self._uploader = uploader or cloudinary.uploader
        self._configured = False

    def _configure(self):
        """Point the SDK at the configured account."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    @staticmethod
    def _filename_for(image_bytes: bytes, mime: str) -> str:
        """img_<content hash><ext>; jpeg is the fallback extension."""
        digest = hashlib.sha1(image_bytes).hexdigest()[:16]
        return f"img_{digest}{_EXTENSIONS.get(mime, '.jpg')}"

    def upload_data_url(self, data_url: str) -> UploadedFile:
        """
        Upload an image given as a base64 data URL.

        Raises:
            InvalidUploadError: If the data URL or image is invalid
            ImageUploadError: If Cloudinary rejects the upload
        """
        if not data_url or not data_url.startswith("data:"):
            raise InvalidUploadError("Invalid dataUrl")

        try:
            mime, _ = split_data_url(data_url)
            image_bytes = decode_base64_image(data_url)
            inspect_image(
                image_bytes,
                max_bytes=self._app_settings.max_upload_size_bytes,
                supported_formats=self._app_settings.supported_formats_list,
            )
        except InvalidImageError as e:
            raise InvalidUploadError(str(e))

        filename = self._filename_for(image_bytes, mime)
        return self._upload(image_bytes, filename, mime)

    @retry(
        retry=retry_if_exception_type(ImageUploadError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _upload(self, image_bytes: bytes, filename: str, mime: str) -> UploadedFile:
        self._configure()
        public_id = filename.rsplit(".", 1)[0]
        try:
            result = self._uploader.upload(
                image_bytes,
                public_id=public_id,
                folder=self._settings.upload_folder,
                resource_type="image",
                overwrite=False,
            )
        except cloudinary.exceptions.Error as e:
            raise ImageUploadError(f"Cloudinary error: {e}")

        url: Optional[str] = result.get("secure_url") or result.get("url")
        if not url:
            raise ImageUploadError("No URL returned from Cloudinary")

        return UploadedFile(url=url, filename=filename, mime=mime)
