"""Unit tests for file reading and atomic writes."""

import os

import pytest

from orgtree.services.exceptions import FileModifiedError
from orgtree.services.file_operations import (
    atomic_write,
    file_mtime,
    read_lines,
    read_lines_async,
)


class TestReadLines:
    """Tests for read_lines and read_lines_async."""

    def test_reads_lines(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\nbody\n")

        assert read_lines(path) == ["* A", "body"]

    def test_keeps_inner_blank_lines(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\n\nbody\n\n")

        assert read_lines(path) == ["* A", "", "body", ""]

    def test_without_final_newline(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\nbody")

        assert read_lines(path) == ["* A", "body"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.org"
        path.write_text("")

        assert read_lines(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_lines(tmp_path / "missing.org")

    def test_directory(self, tmp_path):
        """Test a failing read stage surfaces its own error."""
        folder = tmp_path / "folder.org"
        folder.mkdir()
        (folder / "inside.org").write_text("* A\n")

        with pytest.raises(IsADirectoryError):
            read_lines(folder)

    def test_failed_stage_error_survives_failed_close(self, tmp_path, monkeypatch):
        """Test a close error after a failed stat does not replace the stat error."""
        path = tmp_path / "notes.org"
        path.write_text("* A\n")
        real_open, real_close = os.open, os.close
        opened = []

        def tracking_open(*args, **kwargs):
            fd = real_open(*args, **kwargs)
            opened.append(fd)
            return fd

        def failing_fstat(fd):
            raise PermissionError("stat denied")

        def failing_close(fd):
            if fd in opened:
                raise OSError("close failed")
            real_close(fd)

        with monkeypatch.context() as m:
            m.setattr(os, "open", tracking_open)
            m.setattr(os, "fstat", failing_fstat)
            m.setattr(os, "close", failing_close)
            with pytest.raises(PermissionError, match="stat denied"):
                read_lines(path)

        for fd in opened:
            real_close(fd)
        assert len(opened) == 1

    @pytest.mark.asyncio
    async def test_async_reads_lines(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\nbody\n")

        assert await read_lines_async(path) == ["* A", "body"]

    @pytest.mark.asyncio
    async def test_async_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await read_lines_async(tmp_path / "missing.org")


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_writes_content(self, tmp_path):
        path = tmp_path / "notes.org"

        atomic_write(path, "* A\n")

        assert path.read_text() == "* A\n"
        assert list(tmp_path.iterdir()) == [path]

    def test_replaces_with_expected_mtime(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\n")

        atomic_write(path, "* B\n", expected_mtime=file_mtime(path))

        assert path.read_text() == "* B\n"

    def test_rejects_modified_file(self, tmp_path):
        path = tmp_path / "notes.org"
        path.write_text("* A\n")
        stale = file_mtime(path) - 10
        os.utime(path, (stale + 20, stale + 20))

        with pytest.raises(FileModifiedError):
            atomic_write(path, "* B\n", expected_mtime=stale)

        assert path.read_text() == "* A\n"
        assert list(tmp_path.iterdir()) == [path]
