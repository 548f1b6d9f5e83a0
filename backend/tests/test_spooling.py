"""
Tests for scratch-file spooling of upload streams.
"""

import os

from pathlib import Path
from unittest.mock import patch

import pytest

from tests.fakes import FakeUploadFile
from tubely.core.exceptions import SpoolingError, UploadTooLargeError
from tubely.utils.spooling import remove_quietly, save_upload, spool_upload


class TestSpoolUpload:
    @pytest.mark.asyncio
    async def test_spools_and_rewinds(self, tmp_path: Path) -> None:
        source = FakeUploadFile(b"0123456789" * 1000)

        async with spool_upload(source, 20_000, directory=str(tmp_path), chunk_size=1024) as spooled:
            assert spooled.size == 10_000
            assert spooled.path.parent == tmp_path
            assert spooled.path.name.startswith("tubely-upload-")
            assert await spooled.handle.read(10) == b"0123456789"
            assert spooled.path.read_bytes() == b"0123456789" * 1000

        assert not spooled.path.exists()

    @pytest.mark.asyncio
    async def test_file_is_removed_when_block_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            async with spool_upload(FakeUploadFile(b"abc"), 10, directory=str(tmp_path)):
                raise RuntimeError("downstream failure")

        assert os.listdir(tmp_path) == []

    @pytest.mark.asyncio
    async def test_oversized_stream_leaves_nothing_behind(self, tmp_path: Path) -> None:
        source = FakeUploadFile(b"x" * 5000)

        with pytest.raises(UploadTooLargeError):
            async with spool_upload(source, 4096, directory=str(tmp_path), chunk_size=1024):
                pytest.fail("block must not run for an oversized upload")

        assert os.listdir(tmp_path) == []

    @pytest.mark.asyncio
    async def test_exactly_at_ceiling_is_accepted(self, tmp_path: Path) -> None:
        async with spool_upload(
            FakeUploadFile(b"x" * 4096), 4096, directory=str(tmp_path), chunk_size=1024
        ) as spooled:
            assert spooled.size == 4096

    @pytest.mark.asyncio
    async def test_unusable_scratch_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SpoolingError):
            async with spool_upload(
                FakeUploadFile(b"abc"), 10, directory=str(tmp_path / "missing")
            ):
                pytest.fail("block must not run without a scratch file")


class TestSaveUpload:
    @pytest.mark.asyncio
    async def test_writes_destination(self, tmp_path: Path) -> None:
        destination = tmp_path / "thumb.png"

        written = await save_upload(FakeUploadFile(b"png-bytes"), destination, 100)

        assert written == 9
        assert destination.read_bytes() == b"png-bytes"

    @pytest.mark.asyncio
    async def test_partial_destination_is_removed(self, tmp_path: Path) -> None:
        destination = tmp_path / "thumb.png"

        with pytest.raises(UploadTooLargeError):
            await save_upload(FakeUploadFile(b"x" * 3000), destination, 2048, chunk_size=1024)

        assert not destination.exists()


class TestRemoveQuietly:
    def test_missing_file_is_fine(self, tmp_path: Path) -> None:
        remove_quietly(tmp_path / "never-existed")
        remove_quietly(None)

    def test_other_errors_are_logged(self, tmp_path: Path, caplog) -> None:
        with patch("tubely.utils.spooling.os.remove", side_effect=PermissionError("denied")):
            remove_quietly(tmp_path / "locked")

        assert "Failed to remove scratch file" in caplog.text
