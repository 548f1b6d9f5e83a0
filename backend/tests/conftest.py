"""
Pytest Configuration and Test Fixtures for the Tubely Backend

Provides:
- Test settings pointing scratch and asset directories at tmp_path
- In-memory fakes for the video record store and the object store
- Fake ffprobe/ffmpeg implementations for the media pipeline
- Upload stream doubles behaving like FastAPI's UploadFile
- A TestClient with dependency overrides for auth and services

None of the fixtures need MongoDB, S3/MinIO, ffprobe or ffmpeg.
"""

from pathlib import Path
from uuid import UUID, uuid4

import pytest

from fastapi.testclient import TestClient

from tests.fakes import (
    TEST_BUCKET,
    FakeObjectStore,
    FakeProber,
    FakeRemuxer,
    FakeUploadFile,
    FakeVideoStore,
)
from tubely.config import Settings
from tubely.models.video import Video
from tubely.services.media_service import (
    ContainerNormalizer,
    OrientationClassifier,
    StreamInfo,
)
from tubely.services.upload_service import VideoUploadService
from tubely.services.video_urls import VideoURLSigner


TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: mark test as unit test")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Settings isolated to tmp_path with a local MinIO-style endpoint."""
    spool_dir = tmp_path / "spool"
    spool_dir.mkdir()
    return Settings(
        app_env="testing",
        app_name="Tubely-Test",
        debug=False,
        json_logs=False,
        port=8091,
        jwt_secret=TEST_JWT_SECRET,
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="tubely_test",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        s3_region="us-east-1",
        upload_temp_dir=str(spool_dir),
        upload_chunk_size_bytes=64 * 1024,
        assets_root=str(tmp_path / "assets"),
        ffprobe_path="tubely-test-missing-ffprobe",
        ffmpeg_path="tubely-test-missing-ffmpeg",
    )


# ==============================================================================
# Upload Stream Doubles
# ==============================================================================


@pytest.fixture
def make_upload():
    def _make(data: bytes = b"\x00\x00\x00\x18ftypmp42fake-video", content_type: str | None = "video/mp4"):
        return FakeUploadFile(data, content_type)

    return _make


# ==============================================================================
# Store Fakes
# ==============================================================================


@pytest.fixture
def video_store() -> FakeVideoStore:
    return FakeVideoStore()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


# ==============================================================================
# Media Tool Fakes
# ==============================================================================


@pytest.fixture
def landscape_prober() -> FakeProber:
    return FakeProber([StreamInfo("audio"), StreamInfo("video", width=1280, height=720)])


@pytest.fixture
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


# ==============================================================================
# Records and Services
# ==============================================================================


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def draft_video(video_store: FakeVideoStore, owner_id: UUID) -> Video:
    return video_store.add(Video(user_id=owner_id, title="Boots", description="A boot video"))


@pytest.fixture
def url_signer(object_store: FakeObjectStore, mock_settings: Settings) -> VideoURLSigner:
    return VideoURLSigner(object_store, mock_settings)


@pytest.fixture
def make_upload_service(video_store, object_store, url_signer, mock_settings, remuxer):
    def _make(prober=None, remux=None) -> VideoUploadService:
        return VideoUploadService(
            store=video_store,
            storage=object_store,
            classifier=OrientationClassifier(prober or FakeProber()),
            normalizer=ContainerNormalizer(remux or remuxer),
            signer=url_signer,
            settings=mock_settings,
        )

    return _make


@pytest.fixture
def upload_service(make_upload_service, landscape_prober) -> VideoUploadService:
    return make_upload_service(prober=landscape_prober)


# ==============================================================================
# API Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    owner_id: UUID,
    video_store: FakeVideoStore,
    object_store: FakeObjectStore,
    url_signer: VideoURLSigner,
    upload_service: VideoUploadService,
):
    """TestClient authenticated as ``owner_id`` with every service faked."""
    from tubely.api.v1.dependencies import get_storage, get_upload_service, get_url_signer
    from tubely.core.auth import get_current_user_id
    from tubely.main import app
    from tubely.services.video_store import get_video_store

    app.dependency_overrides[get_current_user_id] = lambda: owner_id
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_storage] = lambda: object_store
    app.dependency_overrides[get_url_signer] = lambda: url_signer
    app.dependency_overrides[get_upload_service] = lambda: upload_service

    yield TestClient(app)

    app.dependency_overrides.clear()
