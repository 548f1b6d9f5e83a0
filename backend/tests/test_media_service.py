"""
Tests for ffprobe/ffmpeg tooling and the orientation and remux stages.

Test Organization:
- TestClassifyOrientation: Ratio ranges and their boundaries
- TestParseProbeOutput: ffprobe JSON handling, including junk output
- TestRunMediaTool: Subprocess execution, missing tools and deadlines
- TestCommands: ffprobe and ffmpeg argument lists
- TestOrientationClassifier: Stream selection and failure degradation
- TestContainerNormalizer: Output file lifetime
"""

import asyncio
import json
import logging

from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from tests.fakes import FakeProber, FakeRemuxer
from tubely.core.exceptions import (
    ToolNotFoundError,
    ToolTimeoutError,
    TranscodeError,
)
from tubely.models.video import Orientation
from tubely.services.media_service import (
    ContainerNormalizer,
    FFmpegRemuxer,
    FFprobeProber,
    OrientationClassifier,
    StreamInfo,
    ToolResult,
    classify_orientation,
    parse_probe_output,
    run_media_tool,
)


class TestClassifyOrientation:
    @pytest.mark.parametrize(
        ("width", "height", "expected"),
        [
            (1280, 720, Orientation.LANDSCAPE),
            (1920, 1080, Orientation.LANDSCAPE),
            (720, 1280, Orientation.PORTRAIT),
            (1080, 1920, Orientation.PORTRAIT),
            (1000, 1000, Orientation.OTHER),
            (640, 480, Orientation.OTHER),
        ],
    )
    def test_common_resolutions(self, width: int, height: int, expected: Orientation) -> None:
        assert classify_orientation(width, height) == expected

    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [
            (1700, Orientation.LANDSCAPE),
            (1850, Orientation.LANDSCAPE),
            (1699, Orientation.OTHER),
            (1851, Orientation.OTHER),
            (520, Orientation.PORTRAIT),
            (600, Orientation.PORTRAIT),
            (519, Orientation.OTHER),
            (601, Orientation.OTHER),
        ],
    )
    def test_range_boundaries(self, ratio: int, expected: Orientation) -> None:
        """height=1000 makes the ratio equal to the width."""
        assert classify_orientation(ratio, 1000) == expected

    def test_ratio_truncates_rather_than_rounds(self) -> None:
        """1699.9 must truncate to 1699, which is outside the landscape range."""
        # 16999 * 1000 // 10000 == 1699
        assert classify_orientation(16999, 10000) == Orientation.OTHER

    def test_non_positive_dimensions_are_other(self) -> None:
        assert classify_orientation(0, 720) == Orientation.OTHER
        assert classify_orientation(1280, 0) == Orientation.OTHER


class TestParseProbeOutput:
    def test_parses_streams(self) -> None:
        raw = json.dumps(
            {
                "streams": [
                    {"index": 0, "codec_type": "video", "width": 1280, "height": 720},
                    {"index": 1, "codec_type": "audio", "sample_rate": "48000"},
                ]
            }
        )

        streams = parse_probe_output(raw)

        assert streams == [
            StreamInfo("video", width=1280, height=720),
            StreamInfo("audio", width=0, height=0),
        ]

    @pytest.mark.parametrize("raw", [b"", b"not json", b"[1, 2]", b'{"streams": "nope"}', b"{}"])
    def test_unusable_output_yields_no_streams(self, raw: bytes) -> None:
        assert parse_probe_output(raw) == []

    def test_skips_non_object_entries_and_bad_dimensions(self) -> None:
        raw = b'{"streams": [42, {"codec_type": "video", "width": "1280", "height": true}]}'

        streams = parse_probe_output(raw)

        assert streams == [StreamInfo("video", width=0, height=0)]
        assert not streams[0].is_usable_video


class TestRunMediaTool:
    @pytest.mark.asyncio
    async def test_returns_exit_status_and_output(self) -> None:
        process = Mock()
        process.communicate = AsyncMock(return_value=(b"{}", b"warning"))
        process.returncode = 3

        with patch(
            "tubely.services.media_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as create:
            result = await run_media_tool(["ffprobe", "-v", "error", "in.mp4"], timeout=5)

        assert result == ToolResult(returncode=3, stdout=b"{}", stderr=b"warning")
        assert create.call_args.args == ("ffprobe", "-v", "error", "in.mp4")

    @pytest.mark.asyncio
    async def test_missing_executable_raises_tool_not_found(self) -> None:
        with pytest.raises(ToolNotFoundError):
            await run_media_tool(["tubely-test-no-such-tool", "--version"], timeout=5)

    @pytest.mark.asyncio
    async def test_deadline_kills_process(self) -> None:
        async def hang():
            await asyncio.sleep(10)

        process = Mock()
        process.communicate = Mock(side_effect=lambda: hang())
        process.kill = Mock()
        process.wait = AsyncMock(return_value=-9)

        with patch(
            "tubely.services.media_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(ToolTimeoutError):
                await run_media_tool(["ffmpeg", "-i", "in.mp4"], timeout=0.01)

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self) -> None:
        started = asyncio.Event()

        async def hang():
            started.set()
            await asyncio.sleep(10)

        process = Mock()
        process.communicate = Mock(side_effect=lambda: hang())
        process.kill = Mock()
        process.wait = AsyncMock(return_value=-9)

        with patch(
            "tubely.services.media_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            task = asyncio.create_task(run_media_tool(["ffmpeg", "-i", "in.mp4"], timeout=30))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()


class TestCommands:
    def test_ffprobe_command(self, mock_settings) -> None:
        command = FFprobeProber(mock_settings).build_command(Path("/tmp/in.mp4"))

        assert command == [
            "tubely-test-missing-ffprobe",
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            "/tmp/in.mp4",
        ]

    def test_ffmpeg_command_is_stream_copy_faststart(self, mock_settings) -> None:
        command = FFmpegRemuxer(mock_settings).build_command(
            Path("/tmp/in.mp4"), Path("/tmp/in.mp4.processing")
        )

        assert command == [
            "tubely-test-missing-ffmpeg",
            "-i",
            "/tmp/in.mp4",
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            "/tmp/in.mp4.processing",
        ]

    @pytest.mark.asyncio
    async def test_probe_parses_output_even_on_failure_exit(self, mock_settings) -> None:
        result = ToolResult(
            returncode=1,
            stdout=b'{"streams": [{"codec_type": "video", "width": 720, "height": 1280}]}',
            stderr=b"moov atom not found",
        )
        with patch(
            "tubely.services.media_service.run_media_tool", AsyncMock(return_value=result)
        ):
            streams = await FFprobeProber(mock_settings).probe(Path("/tmp/in.mp4"))

        assert streams == [StreamInfo("video", width=720, height=1280)]

    @pytest.mark.asyncio
    async def test_remux_failure_raises_transcode_error(self, mock_settings) -> None:
        result = ToolResult(returncode=1, stdout=b"", stderr=b"Invalid data found")
        with patch(
            "tubely.services.media_service.run_media_tool", AsyncMock(return_value=result)
        ):
            with pytest.raises(TranscodeError, match="Invalid data found"):
                await FFmpegRemuxer(mock_settings).remux(Path("/tmp/a"), Path("/tmp/b"))


class TestOrientationClassifier:
    @pytest.mark.asyncio
    async def test_uses_first_usable_video_stream(self) -> None:
        prober = FakeProber(
            [
                StreamInfo("audio"),
                StreamInfo("video", width=0, height=0),
                StreamInfo("video", width=1080, height=1920),
                StreamInfo("video", width=1920, height=1080),
            ]
        )

        assert await OrientationClassifier(prober).classify(Path("in.mp4")) == Orientation.PORTRAIT

    @pytest.mark.asyncio
    async def test_no_video_stream_is_other(self, caplog) -> None:
        prober = FakeProber([StreamInfo("audio")])

        with caplog.at_level(logging.WARNING, logger="tubely.services.media_service"):
            orientation = await OrientationClassifier(prober).classify(Path("in.mp4"))

        assert orientation == Orientation.OTHER
        assert "No usable video stream" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_probe_tool_degrades_to_other(self, mock_settings, caplog) -> None:
        """A real ffprobe invocation of a missing binary still classifies."""
        classifier = OrientationClassifier(FFprobeProber(mock_settings))

        with caplog.at_level(logging.WARNING, logger="tubely.services.media_service"):
            orientation = await classifier.classify(Path("in.mp4"))

        assert orientation == Orientation.OTHER
        assert "Probing" in caplog.text

    @pytest.mark.asyncio
    async def test_probe_timeout_degrades_to_other(self) -> None:
        prober = FakeProber(error=ToolTimeoutError("'ffprobe' did not finish within 30s"))

        assert await OrientationClassifier(prober).classify(Path("in.mp4")) == Orientation.OTHER


class TestContainerNormalizer:
    @pytest.mark.asyncio
    async def test_output_sits_beside_input_and_is_removed(self, tmp_path: Path) -> None:
        source = tmp_path / "upload.mp4"
        source.write_bytes(b"video-bytes")
        remuxer = FakeRemuxer()

        async with ContainerNormalizer(remuxer).normalized(source) as output:
            assert output == tmp_path / "upload.mp4.processing"
            assert output.read_bytes() == b"video-bytes"

        assert not output.exists()
        assert source.exists()

    @pytest.mark.asyncio
    async def test_failed_remux_leaves_no_output(self, tmp_path: Path) -> None:
        source = tmp_path / "upload.mp4"
        source.write_bytes(b"video-bytes")

        with pytest.raises(TranscodeError):
            async with ContainerNormalizer(FakeRemuxer(fail=True)).normalized(source):
                pytest.fail("block must not run when the remux fails")

        assert not (tmp_path / "upload.mp4.processing").exists()
