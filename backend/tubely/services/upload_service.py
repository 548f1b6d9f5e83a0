"""
Tubely Upload Service Module

Runs the upload pipelines behind the upload endpoints.

Video uploads (``upload_video``) go through these steps in order, each one
finishing before the next starts:

1. Validate the id, the caller's ownership, the media type and the declared size
2. Spool the upload stream into a scratch file under the 1 GiB ceiling
3. Classify the spooled file's orientation (ffprobe; failures degrade to "other")
4. Remux the spooled file for fast start (ffmpeg, stream copy)
5. Build an orientation-partitioned object key
6. Upload the remuxed file to the bucket
7. Persist the ``"bucket,key"`` reference on the record
8. Return the record with the reference resolved to a signed URL

The record is only written after the object upload succeeds, so a record
never points at an object that is not there. Scratch files are removed on
every exit path. Nothing is retried.

Thumbnail uploads (``upload_thumbnail``) validate and spool the same way,
then write the image under the local assets directory.
"""

import logging

from pathlib import Path
from typing import Protocol
from uuid import UUID

from tubely.config import Settings, get_settings
from tubely.core.exceptions import NotVideoOwnerError, RecordStoreError, SpoolingError
from tubely.models.video import Video
from tubely.services.media_service import ContainerNormalizer, OrientationClassifier
from tubely.services.video_urls import VideoURLSigner, encode_storage_reference
from tubely.utils.file_validator import (
    check_declared_size,
    parse_video_id,
    validate_thumbnail_media_type,
    validate_video_media_type,
)
from tubely.utils.logger import add_log_context
from tubely.utils.spooling import AsyncReadable, remove_quietly, save_upload, spool_upload
from tubely.utils.storage_keys import asset_filename, build_storage_key


logger = logging.getLogger(__name__)


class VideoRecords(Protocol):
    async def get(self, video_id: UUID) -> Video: ...

    async def update(self, video: Video) -> None: ...


class ObjectUploader(Protocol):
    bucket_name: str

    async def upload_file(self, file_path: str | Path, key: str, content_type: str) -> None: ...


class UploadSource(AsyncReadable, Protocol):
    """An uploaded multipart part, e.g. FastAPI's UploadFile."""

    content_type: str | None


class VideoUploadService:
    """
    Upload pipeline service.

    Attributes:
        store: Metadata store holding video records
        storage: Object store client receiving normalized videos
        classifier: Orientation classifier (ffprobe-backed in production)
        normalizer: Fast-start remuxer (ffmpeg-backed in production)
        signer: Resolves stored references to signed URLs
        settings: Application settings

    Example:
        ```python
        service = VideoUploadService(
            store=VideoStore(collection),
            storage=get_storage_client(),
            classifier=OrientationClassifier(FFprobeProber()),
            normalizer=ContainerNormalizer(FFmpegRemuxer()),
            signer=VideoURLSigner(get_storage_client()),
        )
        video = await service.upload_video(video_id, user_id, upload_file)
        ```
    """

    def __init__(
        self,
        store: VideoRecords,
        storage: ObjectUploader,
        classifier: OrientationClassifier,
        normalizer: ContainerNormalizer,
        signer: VideoURLSigner,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.classifier = classifier
        self.normalizer = normalizer
        self.signer = signer
        self.settings = settings or get_settings()

    async def _load_owned_video(self, video_id: UUID, user_id: UUID) -> Video:
        video = await self.store.get(video_id)
        if video.user_id != user_id:
            raise NotVideoOwnerError("Not your video")
        return video

    async def upload_video(
        self,
        video_id: str,
        user_id: UUID,
        source: UploadSource,
        declared_size: int | None = None,
    ) -> Video:
        """
        Store an uploaded MP4 and point the record at it.

        Args:
            video_id: Record id as received in the request path.
            user_id: Authenticated caller.
            source: The uploaded video part.
            declared_size: Request size as declared by the client, if known.

        Returns:
            Video: The updated record, with ``video_url`` as a signed URL.

        Raises:
            UploadValidationError: Bad id, media type other than video/mp4,
                or an upload over the size ceiling.
            VideoNotFoundError: If the record does not exist.
            NotVideoOwnerError: If the caller does not own the record.
            ProcessingError: Spooling, remux or key generation failure.
            StoreError: Object store or metadata store failure.
        """
        record_id = parse_video_id(video_id)
        log = add_log_context(logger, video_id=str(record_id), user_id=str(user_id))

        video = await self._load_owned_video(record_id, user_id)
        media_type = validate_video_media_type(source.content_type)
        max_bytes = self.settings.max_video_upload_bytes
        check_declared_size(declared_size, max_bytes)

        log.info("Starting video upload")

        async with spool_upload(
            source,
            max_bytes,
            directory=self.settings.upload_temp_dir,
            prefix="tubely-upload-",
            suffix=".mp4",
            chunk_size=self.settings.upload_chunk_size_bytes,
        ) as spooled:
            orientation = await self.classifier.classify(spooled.path)

            async with self.normalizer.normalized(spooled.path) as normalized_path:
                key = build_storage_key(orientation, media_type)
                await self.storage.upload_file(normalized_path, key, media_type)

        video.video_url = encode_storage_reference(self.storage.bucket_name, key)
        try:
            await self.store.update(video)
        except RecordStoreError:
            log.error(
                "Uploaded object is orphaned: record update failed",
                extra={"bucket": self.storage.bucket_name, "key": key},
            )
            raise

        log.info(
            "Video upload complete",
            extra={"key": key, "orientation": orientation.value, "size": spooled.size},
        )
        return await self.signer.resolve(video)

    async def upload_thumbnail(
        self,
        video_id: str,
        user_id: UUID,
        source: UploadSource,
        declared_size: int | None = None,
    ) -> Video:
        """
        Save a JPEG or PNG thumbnail under the assets directory.

        Returns:
            Video: The updated record, resolved like any other read.
        """
        record_id = parse_video_id(video_id)
        log = add_log_context(logger, video_id=str(record_id), user_id=str(user_id))

        media_type = validate_thumbnail_media_type(source.content_type)
        max_bytes = self.settings.max_thumbnail_upload_bytes
        check_declared_size(declared_size, max_bytes)

        video = await self._load_owned_video(record_id, user_id)

        assets_root = Path(self.settings.assets_root)
        try:
            assets_root.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise SpoolingError(f"Unable to create assets directory: {error}") from error
        filename = asset_filename(media_type)
        size = await save_upload(
            source,
            assets_root / filename,
            max_bytes,
            chunk_size=self.settings.upload_chunk_size_bytes,
        )

        video.thumbnail_url = f"{self.settings.thumbnail_base_url}/{filename}"
        try:
            await self.store.update(video)
        except RecordStoreError:
            # Nothing points at the saved image
            remove_quietly(assets_root / filename)
            raise

        log.info("Thumbnail upload complete", extra={"file": filename, "size": size})
        return await self.signer.resolve(video)
