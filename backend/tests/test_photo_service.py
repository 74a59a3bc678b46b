"""
Wishlist Backend — Photo Service Unit Tests
===========================================

What:  Validation of uploaded photos (declared MIME type, size, sniffed
       content) and the object names derived from them.
How:   Pure unit tests; PhotoService touches neither the database nor the
       object store.
"""

import uuid

import pytest

from wishlist.exceptions import ValidationError
from wishlist.services.photo_service import CONTENT_TYPES, PhotoService


class TestContentTypeValidation:
    def setup_method(self):
        self.service = PhotoService(max_file_size=1024)

    # ── Accepted ──────────────────────────────────────────────────────────

    def test_jpeg_maps_to_jpeg_extension(self):
        assert self.service.validate_content_type("image/jpeg") == "jpeg"

    def test_png_maps_to_png_extension(self):
        assert self.service.validate_content_type("image/png") == "png"

    def test_parameters_and_case_are_ignored(self):
        assert self.service.validate_content_type("Image/PNG; charset=binary") == "png"

    def test_progressive_jpeg_alias(self):
        assert self.service.validate_content_type("image/pjpeg") == "jpeg"

    # ── Rejected ──────────────────────────────────────────────────────────

    def test_pdf_rejected(self):
        with pytest.raises(ValidationError, match="has to be an image"):
            self.service.validate_content_type("application/pdf")

    def test_missing_content_type_rejected(self):
        with pytest.raises(ValidationError, match="has to be an image") as exc_info:
            self.service.validate_content_type(None)
        assert exc_info.value.field == "photo"

    def test_unknown_image_subtype_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_content_type("image/x-made-up")


class TestSizeValidation:
    def setup_method(self):
        self.service = PhotoService(max_file_size=1024)

    def test_within_limit(self):
        self.service.validate_size(content_length=None, actual_size=1000)

    def test_exactly_at_limit(self):
        self.service.validate_size(content_length=1024, actual_size=1024)

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(content_length=None, actual_size=0)

    def test_actual_size_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="exceeds"):
            self.service.validate_size(content_length=None, actual_size=1025)

    def test_declared_size_over_limit_rejected_early(self):
        """A too-large Content-Length is rejected even if fewer bytes arrived."""
        with pytest.raises(ValidationError, match="exceeds"):
            self.service.validate_size(content_length=5000, actual_size=10)


class TestValidate:
    def setup_method(self):
        self.service = PhotoService(max_file_size=1024)

    def test_returns_normalized_photo(self, sample_image_bytes):
        photo = self.service.validate(
            content=sample_image_bytes,
            content_type="IMAGE/JPEG",
            filename="front.jpg",
        )
        assert photo.content == sample_image_bytes
        assert photo.content_type == "image/jpeg"
        assert photo.extension == "jpeg"

    def test_type_checked_before_size(self):
        """An empty PDF reports the type problem, not the size problem."""
        with pytest.raises(ValidationError, match="has to be an image"):
            self.service.validate(content=b"", content_type="application/pdf")

    def test_object_name_uses_location_id(self, sample_png_bytes):
        location_id = uuid.uuid4()
        photo = self.service.validate(content=sample_png_bytes, content_type="image/png")
        assert photo.object_name(location_id) == f"{location_id}.png"

    def test_object_names_differ_per_location(self, sample_png_bytes):
        photo = self.service.validate(content=sample_png_bytes, content_type="image/png")
        assert photo.object_name(uuid.uuid4()) != photo.object_name(uuid.uuid4())

    def test_explicit_zero_limit_is_kept(self):
        assert PhotoService(max_file_size=0).max_file_size == 0


class TestContentSniffing:
    def setup_method(self):
        self.service = PhotoService(max_file_size=1024)

    def test_shell_script_declared_as_png_rejected(self):
        with pytest.raises(ValidationError, match="has to be an image") as exc_info:
            self.service.validate(
                content=b"#!/bin/sh\necho hi\n",
                content_type="image/png",
                filename="photo.png",
            )
        assert exc_info.value.context["declared_extension"] == "png"
        assert not exc_info.value.context["detected_type"].startswith("image/")

    def test_jpeg_bytes_declared_as_png_rejected(self, sample_image_bytes):
        with pytest.raises(ValidationError, match="has to be an image") as exc_info:
            self.service.validate(content=sample_image_bytes, content_type="image/png")
        assert exc_info.value.context["detected_type"] == "image/jpeg"

    def test_matching_content_accepted(self, sample_png_bytes):
        assert self.service.validate_content(sample_png_bytes, "png") == "image/png"


class TestContentTypesLookup:
    def test_jpeg_extension_serves_canonical_type(self):
        assert CONTENT_TYPES["jpeg"] == "image/jpeg"

    def test_svg_not_served_as_image(self):
        assert "svg" not in CONTENT_TYPES

    def test_svg_upload_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            PhotoService().validate_content_type("image/svg+xml")
