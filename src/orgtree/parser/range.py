"""Line/column spans inside an org buffer."""

from dataclasses import dataclass


@dataclass
class Range:
    """Span of buffer text.

    Lines are 1-based. Columns are 0-based; ``end_col`` is exclusive.
    A headline range only uses lines, and ``end_line`` stays equal to
    ``start_line`` until the parser seals it.
    """

    start_line: int
    start_col: int = 0
    end_line: int = 0
    end_col: int = 0

    def __post_init__(self):
        if self.end_line < self.start_line:
            self.end_line = self.start_line

    @classmethod
    def from_line(cls, lnum: int) -> "Range":
        return cls(start_line=lnum, end_line=lnum)

    def copy(self) -> "Range":
        return Range(self.start_line, self.start_col, self.end_line, self.end_col)

    def contains_line(self, lnum: int) -> bool:
        return self.start_line <= lnum <= self.end_line

    def move(self, after_line: int, delta: int) -> None:
        """Move a single-line range that sits below an edit point."""
        if self.start_line > after_line:
            self.start_line += delta
            self.end_line += delta

    def shift(self, after_line: int, delta: int) -> None:
        """Adjust for ``delta`` lines inserted (or removed) after ``after_line``.

        Ranges entirely below the edit move; ranges that enclose it grow or shrink.
        """
        if self.start_line > after_line:
            self.start_line += delta
            self.end_line += delta
        elif self.end_line >= after_line:
            self.end_line += delta
