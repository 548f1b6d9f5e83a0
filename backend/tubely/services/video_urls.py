"""
Storage references and signed video URLs.

A stored video's location is persisted on its record as the string
``"{bucket},{key}"``. Existing records use that exact format, so it is kept
byte for byte. Clients never see it: on every read the reference is
resolved into a presigned GET URL valid for a short window (5 minutes by
default), placed in the response copy of the record only.
"""

import logging

from dataclasses import dataclass
from typing import Protocol

from tubely.config import Settings, get_settings
from tubely.models.video import Video


logger = logging.getLogger(__name__)

REFERENCE_DELIMITER = ","


@dataclass(frozen=True)
class StorageReference:
    bucket: str
    key: str


def encode_storage_reference(bucket: str, key: str) -> str:
    """
    Example:
        >>> encode_storage_reference("tubely-videos", "landscape/abc.mp4")
        'tubely-videos,landscape/abc.mp4'
    """
    return f"{bucket}{REFERENCE_DELIMITER}{key}"


def decode_storage_reference(value: str | None) -> StorageReference | None:
    """
    Split a persisted reference at its first delimiter.

    Returns None for an absent or empty value, one without a delimiter, or
    one with an empty bucket or key. Everything after the first delimiter
    belongs to the key.
    """
    if not value:
        return None
    bucket, found, key = value.partition(REFERENCE_DELIMITER)
    if not found or not bucket or not key:
        return None
    return StorageReference(bucket=bucket, key=key)


class DownloadURLPresigner(Protocol):
    async def generate_presigned_download_url(
        self, key: str, bucket: str | None = None, expires_in: int | None = None
    ) -> str: ...


class VideoURLSigner:
    """Turns records holding storage references into client-facing records."""

    def __init__(self, presigner: DownloadURLPresigner, settings: Settings | None = None) -> None:
        self.presigner = presigner
        self.settings = settings or get_settings()

    async def resolve(self, video: Video) -> Video:
        """
        Return ``video`` with its reference swapped for a signed URL.

        Records with no reference, or a reference that does not decode, are
        returned as they are. The passed-in record is never modified.

        Raises:
            StorageOperationError: If signing fails.
        """
        reference = decode_storage_reference(video.video_url)
        if reference is None:
            if video.video_url:
                logger.warning(
                    "Video %s has an unreadable storage reference, leaving it unresolved",
                    video.id,
                )
            return video

        signed_url = await self.presigner.generate_presigned_download_url(
            reference.key,
            bucket=reference.bucket,
            expires_in=self.settings.signed_url_expiration_seconds,
        )
        return video.model_copy(update={"video_url": signed_url})

    async def resolve_all(self, videos: list[Video]) -> list[Video]:
        return [await self.resolve(video) for video in videos]
