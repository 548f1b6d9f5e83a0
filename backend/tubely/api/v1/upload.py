"""
FastAPI Upload Router for Tubely

Endpoints:
- POST /video_upload/{video_id} - Upload the MP4 for a video (field "video", 1 GiB max)
- POST /thumbnail_upload/{video_id} - Upload a JPEG/PNG thumbnail (field "thumbnail", 10 MiB max)

Both return the updated video record with its video URL signed. Pipeline
failures are raised as TubelyError subclasses and turned into JSON error
responses by the application's exception handler.
"""

import logging

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile

from tubely.api.v1.dependencies import get_upload_service
from tubely.core.auth import get_current_user_id
from tubely.services.upload_service import VideoUploadService


logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"description": "Invalid video id"},
    401: {"description": "Not authenticated"},
    403: {"description": "Not the video owner"},
    404: {"description": "Video not found"},
    413: {"description": "Upload too large"},
    415: {"description": "Unsupported media type"},
    500: {"description": "Processing or storage failure"},
}


def declared_content_length(request: Request) -> int | None:
    """The request's Content-Length, or None when absent or unreadable."""
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@router.post(
    "/video_upload/{video_id}",
    summary="Upload a video file",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_video(
    video_id: str,
    request: Request,
    video: UploadFile = File(..., description="MP4 video"),
    user_id: UUID = Depends(get_current_user_id),
    upload_service: VideoUploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    logger.info("Video upload request for %s from user %s", video_id, user_id)
    try:
        updated = await upload_service.upload_video(
            video_id,
            user_id,
            video,
            declared_size=declared_content_length(request),
        )
    finally:
        await video.close()
    return updated.to_response()


@router.post(
    "/thumbnail_upload/{video_id}",
    summary="Upload a thumbnail image",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    thumbnail: UploadFile = File(..., description="JPEG or PNG image"),
    user_id: UUID = Depends(get_current_user_id),
    upload_service: VideoUploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    logger.info("Thumbnail upload request for %s from user %s", video_id, user_id)
    try:
        updated = await upload_service.upload_thumbnail(
            video_id,
            user_id,
            thumbnail,
            declared_size=declared_content_length(request),
        )
    finally:
        await thumbnail.close()
    return updated.to_response()
