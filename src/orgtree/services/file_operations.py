"""Reading org files into lines and writing edited buffers back.

Reads run as a fixed chain of stages (open, stat, read, close). The first
stage that fails aborts the chain and its ``OSError`` reaches the caller
unchanged; no partial result is ever returned.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional

import structlog

from orgtree.services.exceptions import FileModifiedError

logger = structlog.get_logger()


def _split_lines(data: bytes) -> list[str]:
    lines = data.decode("utf-8").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _close_quietly(fd: int) -> None:
    """Close after a failed stage; the stage's own error is the one reported."""
    try:
        os.close(fd)
    except OSError:
        pass


def read_lines(path: Path) -> list[str]:
    """Read ``path`` and return its lines without line terminators.

    Raises:
        OSError: From whichever of open/stat/read/close failed first
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        size = os.fstat(fd).st_size
        data = os.read(fd, size) if size else b""
    except OSError:
        _close_quietly(fd)
        raise
    os.close(fd)
    return _split_lines(data)


async def read_lines_async(path: Path) -> list[str]:
    """Async variant of ``read_lines``; each stage runs in a worker thread."""
    fd = await asyncio.to_thread(os.open, path, os.O_RDONLY)
    try:
        stat = await asyncio.to_thread(os.fstat, fd)
        data = await asyncio.to_thread(os.read, fd, stat.st_size) if stat.st_size else b""
    except OSError:
        await asyncio.to_thread(_close_quietly, fd)
        raise
    await asyncio.to_thread(os.close, fd)
    return _split_lines(data)


def file_mtime(path: Path) -> float:
    return os.stat(path).st_mtime


def atomic_write(path: Path, content: str, expected_mtime: Optional[float] = None) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    This function implements safe file writing with:
    1. Early modification check (before write)
    2. Write to temporary file
    3. fsync to ensure data is on disk
    4. Late modification check (after write, before rename)
    5. Atomic rename to replace original file

    Args:
        path: Target file path
        content: Content to write
        expected_mtime: mtime the file had when it was read (None skips the checks)

    Raises:
        FileModifiedError: If file was modified during write operation
        OSError: On file I/O errors
    """
    path = Path(path)

    def modified() -> bool:
        return (
            expected_mtime is not None
            and path.exists()
            and file_mtime(path) != expected_mtime
        )

    if modified():
        raise FileModifiedError(str(path), "File was modified before write (early check)")

    # Same directory, so the rename stays on one filesystem
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        temp_path.write_text(content, encoding="utf-8")

        with open(temp_path, "r+", encoding="utf-8") as f:
            f.flush()
            os.fsync(f.fileno())

        if modified():
            raise FileModifiedError(str(path), "File was modified during write (late check)")

        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except FileModifiedError:
        if temp_path.exists():
            temp_path.unlink()
        raise

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise
