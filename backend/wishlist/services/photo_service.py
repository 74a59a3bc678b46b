"""
Wishlist Backend — Photo Validation Service
===========================================

What:  Validates an uploaded Location photo and derives its object name.
How:   Checks the declared MIME type against the supported image types, then
       the byte size, then sniffs the real type from the header bytes with
       python-magic (libmagic) and requires it to match the declared one.
       Nothing here touches the database, so a rejected photo never leaves
       a Location row behind.
Who:   Called by LocationService.add_location() before the row is created.

Object naming:
    <location id>.<extension>    e.g. 3f2c...-9a1b.jpeg

    The Location id is a fresh UUID, so two Locations can never collide
    in the bucket, and the object for a Location can always be found again
    from the row alone (used by rejection and reconciliation).
"""

import logging
from dataclasses import dataclass
from typing import Optional

import magic

from wishlist.config import settings
from wishlist.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ── Supported Image Types ─────────────────────────────────────────────────
# MIME type → extension used in the object name
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpeg",
    "image/pjpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/x-ms-bmp": "bmp",
    "image/tiff": "tif",
    "image/heic": "heic",
    "image/heif": "heif",
    "image/avif": "avif",
}

# No SVG: it is XML that may carry <script> and would be served back from
# the API origin by the local store route

# extension → MIME type, for serving objects back from the local store
# (first MIME type listed for an extension wins)
CONTENT_TYPES = {ext: mime for mime, ext in reversed(list(IMAGE_EXTENSIONS.items()))}

# libmagic only needs the file header
SNIFF_BYTES = 2048


@dataclass(frozen=True)
class ValidatedPhoto:
    """A photo that passed validation and is ready to be written."""

    content: bytes
    content_type: str
    extension: str

    def object_name(self, location_id) -> str:
        return f"{location_id}.{self.extension}"


class PhotoService:
    """
    Validation pipeline for uploaded photos.

    Order (cheapest first):
        1. Declared MIME type must be an image type we can name
        2. Declared Content-Length (if any) within max_file_size
        3. Actual byte count non-zero and within max_file_size
        4. Type sniffed from the content maps to the same extension
    """

    def __init__(self, max_file_size: Optional[int] = None):
        self.max_file_size = (
            settings.max_file_size if max_file_size is None else max_file_size
        )

    @staticmethod
    def normalize_content_type(content_type: Optional[str]) -> str:
        """'Image/PNG; charset=binary' → 'image/png'."""
        if not content_type:
            return ""
        return content_type.split(";", 1)[0].strip().lower()

    def validate_content_type(self, content_type: Optional[str]) -> str:
        """
        Returns the object-name extension for an accepted MIME type.

        Raises:
            ValidationError if the type is not an image, or is an image
            subtype without a known extension.
        """
        mime = self.normalize_content_type(content_type)

        if not mime.startswith("image/"):
            raise ValidationError(
                message="The uploaded file has to be an image",
                field="photo",
                context={"content_type": mime or None},
            )

        extension = IMAGE_EXTENSIONS.get(mime)
        if extension is None:
            raise ValidationError(
                message=(
                    f"Image type '{mime}' is not supported. "
                    f"Allowed types: {', '.join(sorted(IMAGE_EXTENSIONS))}"
                ),
                field="photo",
                context={"content_type": mime, "allowed": sorted(IMAGE_EXTENSIONS)},
            )
        return extension

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Rejects empty photos and photos above max_file_size.

        content_length is the client-declared size (may be None or wrong);
        actual_size is the number of bytes actually received.
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if content_length and content_length > self.max_file_size:
            raise ValidationError(
                message=f"Photo exceeds the maximum size of {max_mb:.0f}MB.",
                field="photo",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size == 0:
            raise ValidationError(message="The uploaded photo is empty", field="photo")

        if actual_size > self.max_file_size:
            raise ValidationError(
                message=(
                    f"Photo size ({actual_size / (1024 * 1024):.1f}MB) exceeds "
                    f"the maximum of {max_mb:.0f}MB."
                ),
                field="photo",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_content(self, content: bytes, extension: str) -> str:
        """
        Sniff the real type from the header bytes (libmagic) and require it
        to agree with the declared type.

        A script or document renamed to photo.png and sent as image/png is
        detected here as text/x-shellscript, application/pdf, etc.

        Returns:
            The detected MIME type.
        """
        detected = magic.from_buffer(content[:SNIFF_BYTES], mime=True)

        if IMAGE_EXTENSIONS.get(detected) != extension:
            logger.warning(
                "Photo content mismatch: declared .%s, detected %s",
                extension,
                detected,
            )
            raise ValidationError(
                message="The uploaded file has to be an image",
                field="photo",
                context={"declared_extension": extension, "detected_type": detected},
            )
        return detected

    def validate(
        self,
        content: bytes,
        content_type: Optional[str],
        filename: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> ValidatedPhoto:
        """Runs the full pipeline and returns the photo ready for storage."""
        extension = self.validate_content_type(content_type)
        self.validate_size(content_length, len(content))
        self.validate_content(content, extension)

        logger.debug(
            "Photo accepted: filename=%s type=%s size=%d",
            filename or "unknown",
            self.normalize_content_type(content_type),
            len(content),
        )
        return ValidatedPhoto(
            content=content,
            content_type=self.normalize_content_type(content_type),
            extension=extension,
        )
