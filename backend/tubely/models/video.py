"""
Video Pydantic models for Tubely.

Defines the video metadata record kept in MongoDB, the request model used
to create draft records, and the orientation categories used to partition
stored videos.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Orientation(str, Enum):
    """
    Orientation category derived from a video's encoded width and height.

    The value doubles as the first path segment of the object key.
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class Video(BaseModel):
    """
    Video metadata record.

    ``video_url`` holds the persisted storage reference (``"bucket,key"``)
    while the record is in the store. Responses carry a copy whose
    ``video_url`` has been swapped for a short-lived signed URL.

    Attributes:
        id: Record identifier (stored as ``_id``)
        user_id: Owner of the record
        title: Display title
        description: Free-form description
        thumbnail_url: Public URL of the uploaded thumbnail
        video_url: Storage reference, or signed URL in responses
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(default_factory=uuid4, alias="_id")
    user_id: UUID
    title: str = Field(default="", max_length=300)
    description: str = Field(default="", max_length=5000)
    thumbnail_url: str | None = None
    video_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB, storing UUIDs as strings."""
        document = self.model_dump(by_alias=True)
        document["_id"] = str(self.id)
        document["user_id"] = str(self.user_id)
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Video":
        return cls.model_validate(document)

    def to_response(self) -> dict[str, Any]:
        """JSON-ready representation using ``id`` rather than ``_id``."""
        return self.model_dump(mode="json")


class VideoCreate(BaseModel):
    """Request body for creating a draft video record."""

    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="", max_length=5000)
