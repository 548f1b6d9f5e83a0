"""
Dependency providers shared by the v1 routers.

Each provider builds one collaborator from the process-wide clients. Tests
swap them through ``app.dependency_overrides``.
"""

from fastapi import Depends

from tubely.config import get_settings
from tubely.core.storage import StorageClient, get_storage_client
from tubely.services.media_service import (
    ContainerNormalizer,
    FFmpegRemuxer,
    FFprobeProber,
    OrientationClassifier,
)
from tubely.services.upload_service import VideoUploadService
from tubely.services.video_store import VideoStore, get_video_store
from tubely.services.video_urls import VideoURLSigner


def get_storage() -> StorageClient:
    return get_storage_client()


def get_url_signer(storage: StorageClient = Depends(get_storage)) -> VideoURLSigner:
    return VideoURLSigner(storage, get_settings())


def get_upload_service(
    store: VideoStore = Depends(get_video_store),
    storage: StorageClient = Depends(get_storage),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> VideoUploadService:
    """Upload service wired to ffprobe, ffmpeg, S3 and MongoDB."""
    settings = get_settings()
    return VideoUploadService(
        store=store,
        storage=storage,
        classifier=OrientationClassifier(FFprobeProber(settings)),
        normalizer=ContainerNormalizer(FFmpegRemuxer(settings)),
        signer=signer,
        settings=settings,
    )
