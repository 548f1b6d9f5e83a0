"""
Tests for upload request validation helpers.
"""

from uuid import UUID

import pytest

from tubely.core.exceptions import (
    InvalidVideoIDError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
)
from tubely.utils.file_validator import (
    check_declared_size,
    media_type_extension,
    parse_media_type,
    parse_video_id,
    validate_thumbnail_media_type,
    validate_video_media_type,
)


class TestParseVideoId:
    def test_parses_uuid(self) -> None:
        raw = "0f8fad5b-d9cb-469f-a165-70867728950e"

        assert parse_video_id(raw) == UUID(raw)

    @pytest.mark.parametrize("raw", ["", "123", "0f8fad5b-d9cb-469f-a165"])
    def test_rejects_non_uuid(self, raw: str) -> None:
        with pytest.raises(InvalidVideoIDError):
            parse_video_id(raw)


class TestMediaTypes:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("video/mp4", "video/mp4"),
            ("Video/MP4", "video/mp4"),
            ("  video/mp4 ; codecs=avc1", "video/mp4"),
            ("image/png; charset=binary", "image/png"),
        ],
    )
    def test_parse_strips_parameters_and_case(self, header: str, expected: str) -> None:
        assert parse_media_type(header) == expected

    @pytest.mark.parametrize("header", [None, "", "video", "/mp4", "video/", "video mp4"])
    def test_parse_rejects_malformed(self, header) -> None:
        with pytest.raises(UnsupportedMediaTypeError):
            parse_media_type(header)

    def test_video_accepts_only_mp4(self) -> None:
        assert validate_video_media_type("video/mp4") == "video/mp4"
        with pytest.raises(UnsupportedMediaTypeError, match="video/mp4"):
            validate_video_media_type("video/webm")

    @pytest.mark.parametrize("header", ["image/jpeg", "image/png"])
    def test_thumbnail_accepts_jpeg_and_png(self, header: str) -> None:
        assert validate_thumbnail_media_type(header) == header

    def test_thumbnail_rejects_gif(self) -> None:
        with pytest.raises(UnsupportedMediaTypeError):
            validate_thumbnail_media_type("image/gif")

    def test_extension(self) -> None:
        assert media_type_extension("video/mp4") == "mp4"


class TestDeclaredSize:
    def test_unknown_and_small_sizes_pass(self) -> None:
        check_declared_size(None, 10)
        check_declared_size(10, 10)

    def test_over_ceiling_raises(self) -> None:
        with pytest.raises(UploadTooLargeError) as exc_info:
            check_declared_size(11, 10)

        assert exc_info.value.max_bytes == 10
