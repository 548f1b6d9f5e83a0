"""
Utilities Package for the Tubely Backend Application.

Modules:
--------
file_validator:
    Video id parsing, media type parsing and validation, declared size checks.

logger:
    JSON and text log formatters, setup_logging for application-wide
    configuration, and add_log_context for per-request context fields.

spooling:
    Bounded copies of upload streams into scoped scratch files.

storage_keys:
    Random asset ids and orientation-partitioned object keys.

Usage:
------
    from tubely.utils import (
        validate_video_media_type,
        spool_upload,
        build_storage_key,
        setup_logging,
    )
"""

from tubely.utils.file_validator import (
    check_declared_size,
    parse_media_type,
    parse_video_id,
    validate_thumbnail_media_type,
    validate_video_media_type,
)
from tubely.utils.logger import add_log_context, setup_logging
from tubely.utils.spooling import save_upload, spool_upload
from tubely.utils.storage_keys import asset_filename, build_storage_key, random_asset_id


__all__ = [
    "add_log_context",
    "asset_filename",
    "build_storage_key",
    "check_declared_size",
    "parse_media_type",
    "parse_video_id",
    "random_asset_id",
    "save_upload",
    "setup_logging",
    "spool_upload",
    "validate_thumbnail_media_type",
    "validate_video_media_type",
]
