"""Text buffer host used by headline mutations.

Headlines never own text. They keep an in-memory model and push the
minimal line edits implied by a change into a ``TextBuffer``.
"""

import itertools
from typing import Any, Protocol, runtime_checkable

_buffer_ids = itertools.count(1)


@runtime_checkable
class TextBuffer(Protocol):
    """Line-oriented buffer with 1-based line numbers."""

    def get_line(self, lnum: int) -> str: ...

    def set_line(self, lnum: int, text: str) -> None: ...

    def append_lines(self, after_line: int, lines: list[str]) -> None: ...

    def delete_line(self, lnum: int) -> None: ...

    def line_count(self) -> int: ...

    def save_view(self) -> Any: ...

    def restore_view(self, view: Any) -> None: ...

    def current_buffer_id(self) -> int: ...


class MemoryBuffer:
    """In-memory ``TextBuffer`` backed by a list of lines.

    The view is a ``(line, col)`` cursor, kept inside the buffer bounds.

    Examples:
        >>> buf = MemoryBuffer(["* Heading", "body"])
        >>> buf.append_lines(1, ["SCHEDULED: <2024-01-01 Mon>"])
        >>> buf.get_line(2)
        'SCHEDULED: <2024-01-01 Mon>'
    """

    def __init__(self, lines: list[str] | None = None):
        self.lines: list[str] = list(lines or [])
        self.cursor: tuple[int, int] = (1, 0)
        self._id = next(_buffer_ids)

    @classmethod
    def from_text(cls, text: str) -> "MemoryBuffer":
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return cls(lines)

    def _check(self, lnum: int) -> int:
        if not 1 <= lnum <= len(self.lines):
            raise IndexError(f"Line {lnum} out of range (1-{len(self.lines)})")
        return lnum - 1

    def get_line(self, lnum: int) -> str:
        return self.lines[self._check(lnum)]

    def set_line(self, lnum: int, text: str) -> None:
        self.lines[self._check(lnum)] = text

    def append_lines(self, after_line: int, lines: list[str]) -> None:
        if not 0 <= after_line <= len(self.lines):
            raise IndexError(f"Line {after_line} out of range (0-{len(self.lines)})")
        self.lines[after_line:after_line] = list(lines)

    def delete_line(self, lnum: int) -> None:
        del self.lines[self._check(lnum)]
        line, col = self.cursor
        self.cursor = (max(1, min(line, len(self.lines))), col)

    def line_count(self) -> int:
        return len(self.lines)

    def save_view(self) -> tuple[int, int]:
        return self.cursor

    def restore_view(self, view: tuple[int, int]) -> None:
        self.cursor = view

    def current_buffer_id(self) -> int:
        return self._id

    def text(self) -> str:
        """Full buffer contents with a trailing newline."""
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"
