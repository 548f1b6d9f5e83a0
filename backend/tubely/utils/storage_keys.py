"""
Object key generation.

Keys look like ``{orientation}/{random-id}.{extension}``. The random id is
32 bytes from the OS CSPRNG encoded as unpadded URL-safe base64, so keys
never collide in practice and never need escaping in a URL path.
"""

import base64
import secrets

from tubely.core.exceptions import KeyGenerationError
from tubely.models.video import Orientation
from tubely.utils.file_validator import media_type_extension


RANDOM_ID_BYTES = 32


def random_asset_id() -> str:
    """
    Return 256 random bits as unpadded URL-safe base64 (43 characters).

    Raises:
        KeyGenerationError: If the OS random source is unavailable.
    """
    try:
        raw = secrets.token_bytes(RANDOM_ID_BYTES)
    except (OSError, NotImplementedError) as error:
        raise KeyGenerationError(f"Unable to read random bytes: {error}") from error
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def asset_filename(media_type: str) -> str:
    """Random filename carrying the media type's extension."""
    return f"{random_asset_id()}.{media_type_extension(media_type)}"


def build_storage_key(orientation: Orientation, media_type: str) -> str:
    """
    Build an object key partitioned by orientation.

    Example:
        >>> build_storage_key(Orientation.LANDSCAPE, "video/mp4")  # doctest: +SKIP
        'landscape/4b3Jx...Q.mp4'
    """
    return f"{Orientation(orientation).value}/{asset_filename(media_type)}"
