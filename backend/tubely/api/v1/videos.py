"""
FastAPI Video Records Router for Tubely

Endpoints:
- POST /videos - Create a draft video record
- GET /videos - List the caller's videos
- GET /videos/{video_id} - Get one of the caller's videos
- DELETE /videos/{video_id} - Delete one of the caller's videos

Every record returned here has its stored video reference resolved to a
short-lived signed URL.
"""

import logging

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from tubely.api.v1.dependencies import get_storage, get_url_signer
from tubely.core.auth import get_current_user_id
from tubely.core.exceptions import NotVideoOwnerError, StorageOperationError
from tubely.core.storage import StorageClient
from tubely.models.video import Video, VideoCreate
from tubely.services.video_store import VideoStore, get_video_store
from tubely.services.video_urls import VideoURLSigner, decode_storage_reference
from tubely.utils.file_validator import parse_video_id


logger = logging.getLogger(__name__)

router = APIRouter()


async def get_owned_video(video_id: str, user_id: UUID, store: VideoStore) -> Video:
    """Load a record and check that ``user_id`` owns it."""
    video = await store.get(parse_video_id(video_id))
    if video.user_id != user_id:
        raise NotVideoOwnerError("Not your video")
    return video


@router.post(
    "/videos",
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft video",
    responses={401: {"description": "Not authenticated"}},
)
async def create_video(
    body: VideoCreate,
    user_id: UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
) -> dict[str, Any]:
    video = Video(user_id=user_id, title=body.title, description=body.description)
    await store.create(video)
    return video.to_response()


@router.get("/videos", summary="List the caller's videos")
async def list_videos(
    user_id: UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> list[dict[str, Any]]:
    videos = await store.list_for_user(user_id)
    resolved = await signer.resolve_all(videos)
    return [video.to_response() for video in resolved]


@router.get(
    "/videos/{video_id}",
    summary="Get a video",
    responses={
        400: {"description": "Invalid video id"},
        403: {"description": "Not the video owner"},
        404: {"description": "Video not found"},
    },
)
async def get_video(
    video_id: str,
    user_id: UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> dict[str, Any]:
    video = await get_owned_video(video_id, user_id, store)
    resolved = await signer.resolve(video)
    return resolved.to_response()


@router.delete(
    "/videos/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a video",
    responses={
        403: {"description": "Not the video owner"},
        404: {"description": "Video not found"},
    },
)
async def delete_video(
    video_id: str,
    user_id: UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    storage: StorageClient = Depends(get_storage),
) -> Response:
    """
    Delete the record, then its stored object.

    The object goes second so a record never points at a deleted object. A
    failed object delete only leaves an unreferenced object behind, so it is
    logged and the request still succeeds.
    """
    video = await get_owned_video(video_id, user_id, store)
    await store.delete(video.id)

    reference = decode_storage_reference(video.video_url)
    if reference is not None:
        try:
            await storage.delete_file(reference.key, bucket=reference.bucket)
        except StorageOperationError:
            logger.warning(
                "Video %s deleted but its object %s/%s was not",
                video.id,
                reference.bucket,
                reference.key,
            )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
