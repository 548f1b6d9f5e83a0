"""
Upload Validation Utilities for Tubely

Checks applied to an upload request before any bytes are spooled:
- Video id must be a UUID
- Declared media type is parsed like a MIME header and checked against the
  accepted set (exactly ``video/mp4`` for videos; ``image/jpeg`` or
  ``image/png`` for thumbnails)
- Declared request size must not exceed the upload ceiling

All failures raise subclasses of UploadValidationError.
"""

import re
from uuid import UUID

from tubely.core.exceptions import (
    InvalidVideoIDError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
)


# =============================================================================
# CONSTANTS - Accepted Media Types
# =============================================================================

VIDEO_MEDIA_TYPE: str = "video/mp4"

ALLOWED_VIDEO_MEDIA_TYPES: frozenset[str] = frozenset({VIDEO_MEDIA_TYPE})

ALLOWED_THUMBNAIL_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png"})

# type/subtype tokens per RFC 2045
_MEDIA_TYPE_PATTERN = re.compile(r"^[A-Za-z0-9!#$&^_.+-]+/[A-Za-z0-9!#$&^_.+-]+$")


# =============================================================================
# Identifiers
# =============================================================================


def parse_video_id(raw: str) -> UUID:
    """
    Parse a path-supplied video id.

    Raises:
        InvalidVideoIDError: If ``raw`` is not a UUID.
    """
    try:
        return UUID(str(raw))
    except (TypeError, ValueError) as error:
        raise InvalidVideoIDError(f"Invalid video id: {raw!r}") from error


# =============================================================================
# Media Types
# =============================================================================


def parse_media_type(content_type: str | None) -> str:
    """
    Extract the bare ``type/subtype`` from a Content-Type value.

    Parameters (``; codecs=...``) are dropped and the result is lower-cased.

    Example:
        >>> parse_media_type("Video/MP4; codecs=avc1")
        'video/mp4'

    Raises:
        UnsupportedMediaTypeError: If the value is missing or malformed.
    """
    if not content_type:
        raise UnsupportedMediaTypeError("Missing media type")

    media_type = content_type.split(";", 1)[0].strip().lower()
    if not _MEDIA_TYPE_PATTERN.match(media_type):
        raise UnsupportedMediaTypeError(f"Unable to parse media type: {content_type!r}")
    return media_type


def _validate_media_type(content_type: str | None, allowed: frozenset[str]) -> str:
    media_type = parse_media_type(content_type)
    if media_type not in allowed:
        raise UnsupportedMediaTypeError(
            f"Unsupported media type '{media_type}'. Allowed: {', '.join(sorted(allowed))}"
        )
    return media_type


def validate_video_media_type(content_type: str | None) -> str:
    """Return the parsed media type if it is accepted for video uploads."""
    return _validate_media_type(content_type, ALLOWED_VIDEO_MEDIA_TYPES)


def validate_thumbnail_media_type(content_type: str | None) -> str:
    """Return the parsed media type if it is accepted for thumbnails."""
    return _validate_media_type(content_type, ALLOWED_THUMBNAIL_MEDIA_TYPES)


def media_type_extension(media_type: str) -> str:
    """
    File extension for a validated media type: its subtype.

    ``video/mp4`` -> ``mp4``, ``image/png`` -> ``png``.
    """
    return media_type.split("/", 1)[1]


# =============================================================================
# Size
# =============================================================================


def check_declared_size(declared_size: int | None, max_bytes: int) -> None:
    """
    Reject a request whose declared size is already over the ceiling.

    An unknown size (None) passes; the spooler still enforces the ceiling
    while copying.

    Raises:
        UploadTooLargeError: If ``declared_size`` exceeds ``max_bytes``.
    """
    if declared_size is not None and declared_size > max_bytes:
        raise UploadTooLargeError(
            f"Upload of {declared_size} bytes exceeds the maximum size of {max_bytes} bytes",
            max_bytes=max_bytes,
        )


__all__ = [
    "VIDEO_MEDIA_TYPE",
    "ALLOWED_VIDEO_MEDIA_TYPES",
    "ALLOWED_THUMBNAIL_MEDIA_TYPES",
    "parse_video_id",
    "parse_media_type",
    "validate_video_media_type",
    "validate_thumbnail_media_type",
    "media_type_extension",
    "check_declared_size",
]
