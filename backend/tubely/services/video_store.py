"""
Video metadata store.

MongoDB-backed repository for Video records. Records are stored with
string UUIDs (``_id`` and ``user_id``). Every driver failure is raised as
RecordStoreError; a missing record on read is VideoNotFoundError.
"""

import logging

from datetime import UTC, datetime
from uuid import UUID

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from tubely.core.database import get_db_client
from tubely.core.exceptions import RecordStoreError, VideoNotFoundError
from tubely.models.video import Video


logger = logging.getLogger(__name__)


class VideoStore:
    """
    Repository over the ``videos`` collection.

    Example:
        ```python
        store = VideoStore(get_db_client().get_videos_collection())
        video = await store.get(video_id)
        video.title = "Renamed"
        await store.update(video)
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get(self, video_id: UUID) -> Video:
        """
        Raises:
            VideoNotFoundError: If no record has this id.
            RecordStoreError: If the query fails.
        """
        try:
            document = await self.collection.find_one({"_id": str(video_id)})
        except PyMongoError as error:
            logger.exception("Failed to load video %s", video_id)
            raise RecordStoreError(f"Couldn't get video: {error}") from error

        if document is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        return Video.from_document(document)

    async def create(self, video: Video) -> Video:
        try:
            await self.collection.insert_one(video.to_document())
        except PyMongoError as error:
            logger.exception("Failed to create video %s", video.id)
            raise RecordStoreError(f"Couldn't create video: {error}") from error

        logger.info("Created video %s for user %s", video.id, video.user_id)
        return video

    async def update(self, video: Video) -> None:
        """
        Replace the stored record with ``video`` and stamp ``updated_at``.

        Raises:
            RecordStoreError: If the record no longer exists or the write fails.
        """
        video.updated_at = datetime.now(UTC)
        try:
            result = await self.collection.replace_one(
                {"_id": str(video.id)}, video.to_document()
            )
        except PyMongoError as error:
            logger.exception("Failed to update video %s", video.id)
            raise RecordStoreError(f"Couldn't update video: {error}") from error

        if result.matched_count == 0:
            raise RecordStoreError(f"Couldn't update video: {video.id} no longer exists")

    async def list_for_user(self, user_id: UUID) -> list[Video]:
        """All records owned by ``user_id``, newest first."""
        try:
            cursor = self.collection.find({"user_id": str(user_id)}).sort(
                "created_at", DESCENDING
            )
            documents = await cursor.to_list(length=None)
        except PyMongoError as error:
            logger.exception("Failed to list videos for user %s", user_id)
            raise RecordStoreError(f"Couldn't retrieve videos: {error}") from error

        return [Video.from_document(document) for document in documents]

    async def delete(self, video_id: UUID) -> None:
        try:
            result = await self.collection.delete_one({"_id": str(video_id)})
        except PyMongoError as error:
            logger.exception("Failed to delete video %s", video_id)
            raise RecordStoreError(f"Couldn't delete video: {error}") from error

        if result.deleted_count == 0:
            raise VideoNotFoundError(f"Video {video_id} not found")
        logger.info("Deleted video %s", video_id)


def get_video_store() -> VideoStore:
    """FastAPI dependency returning a store bound to the shared database client."""
    return VideoStore(get_db_client().get_videos_collection())
