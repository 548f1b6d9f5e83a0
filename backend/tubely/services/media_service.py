"""
Media tooling for the Tubely upload pipeline.

Wraps the two external tools the pipeline depends on behind narrow
interfaces so the pipeline can be exercised with fakes:

- MediaProber.probe(path) -> list[StreamInfo]   (ffprobe)
- MediaRemuxer.remux(input_path, output_path)    (ffmpeg)

On top of those sit the two pipeline stages:

- OrientationClassifier: picks the first usable video stream and maps its
  width/height to landscape, portrait or other. Probe failures never fail
  the upload; they are logged at WARNING and classify as ``other``.
- ContainerNormalizer: rewrites the container with the index up front
  ("faststart") using stream copy, and owns the lifetime of the output file.

Every tool invocation runs under a deadline. An expired deadline kills the
process and raises ToolTimeoutError.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from tubely.config import Settings, get_settings
from tubely.core.exceptions import (
    MediaToolError,
    ToolNotFoundError,
    ToolTimeoutError,
    TranscodeError,
)
from tubely.models.video import Orientation
from tubely.utils.spooling import remove_quietly


logger = logging.getLogger(__name__)

# ratio = width * 1000 // height; 16:9 is 1777, 9:16 is 562
LANDSCAPE_RATIO_RANGE = (1700, 1850)
PORTRAIT_RATIO_RANGE = (520, 600)

# Suffix appended to the spooled path for the remuxed copy
NORMALIZED_SUFFIX = ".processing"

# Characters of tool stderr kept in error messages
STDERR_TAIL_CHARS = 2000


# =============================================================================
# Data
# =============================================================================


@dataclass(frozen=True)
class StreamInfo:
    """The parts of one ffprobe stream entry the pipeline cares about."""

    codec_type: str
    width: int = 0
    height: int = 0

    @property
    def is_usable_video(self) -> bool:
        return self.codec_type == "video" and self.width > 0 and self.height > 0


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: bytes
    stderr: bytes


def _as_int(value: Any) -> int:
    # bool is an int subclass; treat it as absent
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    return 0


def parse_probe_output(raw: bytes | str) -> list[StreamInfo]:
    """
    Parse ``ffprobe -print_format json -show_streams`` output.

    Empty, non-JSON or oddly shaped output yields an empty list rather
    than an error; entries that are not objects are skipped.
    """
    if not raw:
        return []
    try:
        document = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(document, dict):
        return []

    streams = document.get("streams")
    if not isinstance(streams, list):
        return []

    parsed: list[StreamInfo] = []
    for entry in streams:
        if not isinstance(entry, dict):
            continue
        codec_type = entry.get("codec_type")
        parsed.append(
            StreamInfo(
                codec_type=codec_type if isinstance(codec_type, str) else "",
                width=_as_int(entry.get("width")),
                height=_as_int(entry.get("height")),
            )
        )
    return parsed


def classify_orientation(width: int, height: int) -> Orientation:
    """
    Map frame dimensions to an orientation category.

    Uses integer math only: ``ratio = width * 1000 // height``. Ranges are
    inclusive and checked landscape first.

    Example:
        >>> classify_orientation(1280, 720)
        <Orientation.LANDSCAPE: 'landscape'>
    """
    if width <= 0 or height <= 0:
        return Orientation.OTHER

    ratio = (width * 1000) // height
    if LANDSCAPE_RATIO_RANGE[0] <= ratio <= LANDSCAPE_RATIO_RANGE[1]:
        return Orientation.LANDSCAPE
    if PORTRAIT_RATIO_RANGE[0] <= ratio <= PORTRAIT_RATIO_RANGE[1]:
        return Orientation.PORTRAIT
    return Orientation.OTHER


# =============================================================================
# Process execution
# =============================================================================


async def run_media_tool(args: list[str], timeout: float) -> ToolResult:
    """
    Run an external tool to completion under a deadline.

    Args:
        args: Executable followed by its arguments.
        timeout: Seconds to wait before killing the process.

    Returns:
        ToolResult: Exit status and captured output. A non-zero exit is
        returned, not raised; callers decide what it means.

    Raises:
        ToolNotFoundError: If the executable cannot be started.
        ToolTimeoutError: If the deadline expires.
    """
    tool = args[0]
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as error:
        raise ToolNotFoundError(f"Unable to run '{tool}': {error}") from error
    except OSError as error:
        raise MediaToolError(f"Unable to start '{tool}': {error}") from error

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as error:
        await _kill_and_reap(process)
        raise ToolTimeoutError(f"'{tool}' did not finish within {timeout:g}s") from error
    except asyncio.CancelledError:
        # Request or server shutdown; the child must not outlive the task
        await _kill_and_reap(process)
        raise

    returncode = process.returncode if process.returncode is not None else -1
    return ToolResult(returncode=returncode, stdout=stdout, stderr=stderr)


async def _kill_and_reap(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()


def _stderr_tail(stderr: bytes) -> str:
    return stderr.decode("utf-8", errors="replace").strip()[-STDERR_TAIL_CHARS:]


# =============================================================================
# Tool interfaces
# =============================================================================


class MediaProber(Protocol):
    async def probe(self, path: Path) -> list[StreamInfo]: ...


class MediaRemuxer(Protocol):
    async def remux(self, input_path: Path, output_path: Path) -> None: ...


class FFprobeProber:
    """MediaProber backed by ffprobe's JSON stream listing."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_command(self, path: Path) -> list[str]:
        return [
            self.settings.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

    async def probe(self, path: Path) -> list[StreamInfo]:
        """
        Probe ``path`` and return its stream entries.

        A non-zero exit is logged and whatever was printed is still parsed.

        Raises:
            MediaToolError: If ffprobe cannot be started or times out.
        """
        result = await run_media_tool(
            self.build_command(path), timeout=self.settings.probe_timeout_seconds
        )
        if result.returncode != 0:
            logger.warning(
                "ffprobe exited with status %d for %s: %s",
                result.returncode,
                path,
                _stderr_tail(result.stderr),
            )
        return parse_probe_output(result.stdout)


class FFmpegRemuxer:
    """MediaRemuxer that moves the MP4 index to the front without re-encoding."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self.settings.ffmpeg_path,
            "-i",
            str(input_path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(output_path),
        ]

    async def remux(self, input_path: Path, output_path: Path) -> None:
        """
        Raises:
            TranscodeError: If ffmpeg exits non-zero.
            MediaToolError: If ffmpeg cannot be started or times out.
        """
        result = await run_media_tool(
            self.build_command(input_path, output_path),
            timeout=self.settings.transcode_timeout_seconds,
        )
        if result.returncode != 0:
            raise TranscodeError(
                f"ffmpeg exited with status {result.returncode}: {_stderr_tail(result.stderr)}"
            )


# =============================================================================
# Pipeline stages
# =============================================================================


class OrientationClassifier:
    """Classifies a spooled video; never fails the pipeline."""

    def __init__(self, prober: MediaProber) -> None:
        self.prober = prober

    async def classify(self, path: Path) -> Orientation:
        try:
            streams = await self.prober.probe(path)
        except MediaToolError as error:
            logger.warning(
                "Probing %s failed, classifying as '%s': %s",
                path,
                Orientation.OTHER.value,
                error,
            )
            return Orientation.OTHER

        for stream in streams:
            if stream.is_usable_video:
                orientation = classify_orientation(stream.width, stream.height)
                logger.debug(
                    "Classified %s (%dx%d) as %s",
                    path,
                    stream.width,
                    stream.height,
                    orientation.value,
                )
                return orientation

        logger.warning(
            "No usable video stream found in %s, classifying as '%s'",
            path,
            Orientation.OTHER.value,
        )
        return Orientation.OTHER


class ContainerNormalizer:
    """Produces a fast-start copy of a video next to the original."""

    def __init__(self, remuxer: MediaRemuxer) -> None:
        self.remuxer = remuxer

    @contextlib.asynccontextmanager
    async def normalized(self, input_path: Path) -> AsyncIterator[Path]:
        """
        Remux ``input_path`` and yield the output path.

        The output file is removed when the block exits, including when the
        remux itself fails part way through.

        Raises:
            ProcessingError: If the remux fails.
        """
        output_path = Path(f"{input_path}{NORMALIZED_SUFFIX}")
        try:
            await self.remuxer.remux(input_path, output_path)
            logger.debug("Remuxed %s to %s", input_path, output_path)
            yield output_path
        finally:
            remove_quietly(output_path)
