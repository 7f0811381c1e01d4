"""
PhotoVerse Backend — Image Service Unit Tests
===============================================

What:  Tests for ImageService upload validation (extension, content type,
       size, header sniffing).
Why:   Rejecting a bad upload here is cheaper and clearer than letting a
       provider reject it.

Test Strategy:
    ✅ Allowed extensions (.png, .jpg, .jpeg, .webp, .gif), case-insensitive
    ✅ Detected format decides the MIME type sent to providers
    ❌ Unsupported extensions and non-image content types
    ❌ Renamed non-image files and images in unsupported formats
    ❌ Empty and oversized files, oversized reported before reading
"""

import base64
import io
from unittest.mock import patch

import pytest
from PIL import Image

from photoverse.exceptions import ValidationError
from photoverse.services.image_service import ImageService


class TestImageValidation:
    """Tests for ImageService validation steps."""

    def setup_method(self):
        """Create a fresh ImageService instance for each test."""
        self.service = ImageService()

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["photo.png", "photo.jpg", "photo.jpeg", "photo.webp", "photo.gif"])
    def test_allowed_extensions(self, filename):
        self.service.validate_extension(filename)

    def test_extension_case_insensitive(self):
        assert self.service.validate_extension("IMG_0001.JPG") == ".jpg"

    @pytest.mark.parametrize("filename", ["scan.pdf", "image.bmp", "notes.txt", "photo", "tool.exe"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported") as exc_info:
            self.service.validate_extension(filename)
        assert exc_info.value.field == "file"

    # ── Declared Content Type ─────────────────────────────────────────────

    @pytest.mark.parametrize("content_type", [None, "", "application/octet-stream", "image/jpg", "image/png"])
    def test_declared_type_accepted(self, content_type):
        self.service.check_declared_type(content_type)

    def test_non_image_type_rejected(self):
        with pytest.raises(ValidationError, match="content type"):
            self.service.check_declared_type("text/html")

    # ── Size Validation ───────────────────────────────────────────────────

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0)

    def test_size_at_limit_accepted(self):
        with patch('photoverse.services.image_service.settings') as mock_settings:
            mock_settings.max_file_size = 1024
            self.service.validate_reported_size(1024)
            self.service.validate_size(1024)

    def test_size_over_limit_rejected(self):
        with patch('photoverse.services.image_service.settings') as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="exceeds maximum"):
                self.service.validate_size(1025)

    def test_reported_size_over_limit_rejected(self):
        """Content-Length alone is enough to reject, before any bytes are read."""
        with patch('photoverse.services.image_service.settings') as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="exceeds maximum"):
                self.service.check_upload_headers("photo.jpg", "image/jpeg", 4096)

    def test_unknown_reported_size_passes_header_check(self):
        self.service.check_upload_headers("photo.jpg", "image/jpeg", None)

    # ── Header Sniffing ───────────────────────────────────────────────────

    def test_detects_jpeg(self, sample_image_bytes):
        assert self.service.validate_mime_type(sample_image_bytes) == "image/jpeg"

    def test_detects_png(self, sample_png_bytes):
        assert self.service.validate_mime_type(sample_png_bytes) == "image/png"

    def test_non_image_bytes_rejected(self):
        with pytest.raises(ValidationError, match="not a readable image"):
            self.service.validate_mime_type(b"<html><body>not a photo</body></html>")

    def test_unsupported_image_format_rejected(self):
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4)).save(buffer, format="BMP")

        with pytest.raises(ValidationError, match="'BMP' is not supported") as exc_info:
            self.service.validate_mime_type(buffer.getvalue())

        assert exc_info.value.context["detected_format"] == "BMP"


class TestPrepareUpload:

    def test_returns_base64_and_mime(self, sample_image_bytes):
        image_base64, mime_type = ImageService().prepare_upload(
            filename="beach.jpeg",
            content=sample_image_bytes,
            content_type="image/jpeg",
            content_length=len(sample_image_bytes),
        )
        assert mime_type == "image/jpeg"
        assert base64.b64decode(image_base64) == sample_image_bytes

    def test_detected_type_wins_over_declared(self, sample_png_bytes):
        """A PNG uploaded as photo.jpg is sent to the providers as image/png."""
        _, mime_type = ImageService().prepare_upload(
            filename="photo.jpg",
            content=sample_png_bytes,
            content_type="image/jpeg",
        )
        assert mime_type == "image/png"

    def test_renamed_text_file_rejected(self):
        with pytest.raises(ValidationError, match="not a readable image"):
            ImageService().prepare_upload(
                filename="photo.png",
                content=b"just some text pretending to be a photo",
                content_type="image/png",
            )

    def test_extension_checked_before_size(self):
        """A .pdf is rejected for its type even when it is also empty."""
        with pytest.raises(ValidationError, match="not supported"):
            ImageService().prepare_upload(filename="doc.pdf", content=b"")

    def test_empty_checked_before_sniffing(self):
        with pytest.raises(ValidationError, match="empty"):
            ImageService().prepare_upload(filename="photo.jpg", content=b"")
