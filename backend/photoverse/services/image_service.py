"""
PhotoVerse Backend — Uploaded Photo Validation
================================================

What:  Validates an uploaded photo and turns it into the (base64, mime type)
       pair the providers expect.
Why:   Both providers reject unsupported formats and oversized payloads with
       opaque errors. Rejecting them here gives the user a clear 400 instead.
How:   Checks run cheapest first. The header checks run before the upload is
       read into memory; the byte checks run on the content itself.

Validation order:
    Before reading (filename and multipart headers only):
        1. Extension
        2. Declared Content-Type (non-image types rejected)
        3. Reported size
    After reading:
        4. Actual size (empty or over the cap)
        5. Image format from the file header via Pillow (catches renamed files)

The MIME type sent to the providers is the detected one, not the declared
one. Nothing is written to disk: the photo lives only for the duration of
the request.
"""

import base64
import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from photoverse.config import settings
from photoverse.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Pillow format name → MIME type, for formats both providers accept
ALLOWED_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}

ALLOWED_MIME_TYPES = frozenset(ALLOWED_FORMATS.values())

EXTENSION_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class ImageService:

    # ── Header Checks (before reading) ───────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in EXTENSION_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(EXTENSION_MIME_TYPES))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(EXTENSION_MIME_TYPES)},
            )
        return ext

    def check_declared_type(self, content_type: Optional[str]) -> None:
        """Reject a declared Content-Type that is clearly not an image."""
        declared = (content_type or "").split(";")[0].strip().lower()
        if declared == "image/jpg":
            declared = "image/jpeg"
        if not declared or declared == "application/octet-stream" or declared in ALLOWED_MIME_TYPES:
            return
        raise ValidationError(
            message=(
                f"File content type '{declared}' is not supported. "
                "The file must be a PNG, JPEG, WEBP or GIF image."
            ),
            field="file",
            context={"content_type": declared, "allowed": sorted(ALLOWED_MIME_TYPES)},
        )

    def validate_reported_size(self, content_length: Optional[int]) -> None:
        if content_length and content_length > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

    def check_upload_headers(
        self,
        filename: str,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> None:
        """Everything that can be decided without reading the upload."""
        self.validate_extension(filename)
        self.check_declared_type(content_type)
        self.validate_reported_size(content_length)

    # ── Content Checks (after reading) ───────────────────────────────────

    def validate_size(self, actual_size: int) -> None:
        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if actual_size > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Detect the image format from the file header.

        Image.open only parses the header; pixel data is never decoded.

        Returns:
            Detected MIME type (e.g. "image/jpeg")

        Raises:
            ValidationError if the bytes are not an image in an allowed format
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                image_format = img.format
        except Image.DecompressionBombError as e:
            raise ValidationError(
                message="The image dimensions are too large.",
                field="file",
                context={"error": str(e)},
            ) from e
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(
                message="The uploaded file is not a readable image.",
                field="file",
                context={"error": str(e)},
            ) from e

        mime_type = ALLOWED_FORMATS.get(image_format or "")
        if mime_type is None:
            raise ValidationError(
                message=(
                    f"Image format '{image_format}' is not supported. "
                    "The file must be a PNG, JPEG, WEBP or GIF image."
                ),
                field="file",
                context={"detected_format": image_format, "allowed": sorted(ALLOWED_FORMATS)},
            )
        return mime_type

    def prepare_upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Validate an upload and encode it for the providers.

        Returns:
            (image_base64, detected mime_type)
        """
        self.check_upload_headers(filename, content_type, content_length)
        self.validate_size(len(content))
        mime_type = self.validate_mime_type(content)

        logger.debug("Accepted upload %s (%s, %d bytes)", Path(filename).name, mime_type, len(content))
        return base64.b64encode(content).decode("ascii"), mime_type


image_service = ImageService()
