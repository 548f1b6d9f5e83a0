"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter mounted by the
application under /api/v1:

    - /videos: Video record endpoints (create, list, get, delete)
    - /video_upload/{video_id}: Video upload pipeline
    - /thumbnail_upload/{video_id}: Thumbnail upload
"""

import logging

from fastapi import APIRouter

from tubely.api.v1.upload import router as upload_router
from tubely.api.v1.videos import router as videos_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(videos_router, tags=["videos"])
api_router.include_router(upload_router, tags=["upload"])


__all__ = ["api_router"]
