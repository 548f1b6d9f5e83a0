"""
Upload spooling helpers.

Network upload streams are not seekable, while ffprobe and ffmpeg need a
real file they can open and seek. ``spool_upload`` copies an upload into a
randomly named scratch file under a byte ceiling and hands back a rewound
read/write handle. The scratch file is removed when the ``async with``
block exits, whatever the outcome.
"""

import contextlib
import logging
import os
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import aiofiles

from tubely.core.exceptions import SpoolingError, UploadTooLargeError


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


class AsyncReadable(Protocol):
    """Anything with an async ``read(size)``, e.g. FastAPI's UploadFile."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class SpooledAsset:
    """A fully spooled upload, rewound to offset zero."""

    path: Path
    size: int
    handle: Any


def remove_quietly(path: Path | str | None) -> None:
    """Delete a scratch file, tolerating it already being gone."""
    if path is None:
        return
    try:
        os.remove(path)
        logger.debug("Removed scratch file %s", path)
    except FileNotFoundError:
        pass
    except OSError as error:
        logger.warning("Failed to remove scratch file '%s': %s", path, error)


async def copy_bounded(
    source: AsyncReadable,
    handle: Any,
    max_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Copy ``source`` into an open aiofiles handle, enforcing ``max_bytes``.

    The ceiling is checked before each chunk is written, so an oversized
    stream is rejected mid-copy without writing past the limit.

    Returns:
        int: Number of bytes written.

    Raises:
        UploadTooLargeError: If the stream is longer than ``max_bytes``.
        SpoolingError: If the scratch storage rejects the write.
    """
    written = 0
    while True:
        chunk = await source.read(chunk_size)
        if not chunk:
            break
        written += len(chunk)
        if written > max_bytes:
            raise UploadTooLargeError(
                f"Upload exceeds the maximum size of {max_bytes} bytes", max_bytes=max_bytes
            )
        try:
            await handle.write(chunk)
        except OSError as error:
            raise SpoolingError(f"Unable to write upload to scratch storage: {error}") from error

    try:
        await handle.flush()
    except OSError as error:
        raise SpoolingError(f"Unable to flush upload to scratch storage: {error}") from error
    return written


@contextlib.asynccontextmanager
async def spool_upload(
    source: AsyncReadable,
    max_bytes: int,
    *,
    directory: str | None = None,
    prefix: str = "tubely-upload-",
    suffix: str = "",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[SpooledAsset]:
    """
    Spool an upload stream into a scoped scratch file.

    Example:
        ```python
        async with spool_upload(file, settings.max_video_upload_bytes) as spooled:
            orientation = await classifier.classify(spooled.path)
        # the scratch file is gone here
        ```

    Args:
        source: Upload stream with an async ``read``.
        max_bytes: Size ceiling; exceeding it raises UploadTooLargeError.
        directory: Scratch directory (system temp directory when None).
        prefix: Scratch filename prefix; a random part is always appended.
        suffix: Scratch filename suffix (e.g. ".mp4").
        chunk_size: Bytes read per iteration.

    Yields:
        SpooledAsset: Path, size and a read/write handle positioned at 0.
    """
    try:
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
        os.close(fd)
    except OSError as error:
        raise SpoolingError(f"Unable to create scratch file: {error}") from error

    path = Path(name)
    try:
        handle = await aiofiles.open(path, "w+b")
    except OSError as error:
        remove_quietly(path)
        raise SpoolingError(f"Unable to open scratch file: {error}") from error

    try:
        size = await copy_bounded(source, handle, max_bytes, chunk_size)
        try:
            await handle.seek(0)
        except OSError as error:
            raise SpoolingError(f"Unable to rewind scratch file: {error}") from error

        logger.debug("Spooled %d bytes to %s", size, path)
        yield SpooledAsset(path=path, size=size, handle=handle)
    finally:
        await handle.close()
        remove_quietly(path)


async def save_upload(
    source: AsyncReadable,
    destination: Path,
    max_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Write an upload stream to a permanent ``destination`` under a ceiling.

    A partially written destination is removed if the copy fails.
    """
    try:
        handle = await aiofiles.open(destination, "wb")
    except OSError as error:
        raise SpoolingError(f"Unable to create '{destination.name}': {error}") from error

    try:
        written = await copy_bounded(source, handle, max_bytes, chunk_size)
    except BaseException:
        await handle.close()
        remove_quietly(destination)
        raise

    await handle.close()
    return written
