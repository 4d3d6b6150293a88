"""Org document: headline arena plus the line-by-line parse driver."""

from pathlib import Path
from typing import Iterator, Optional

import structlog

from orgtree.models.config import OrgSettings
from orgtree.parser.content import classify_line, match_headline
from orgtree.parser.headline import Headline
from orgtree.services.buffer import MemoryBuffer, TextBuffer
from orgtree.services.exceptions import HeadlineNotFoundError
from orgtree.services.file_operations import read_lines, read_lines_async

logger = structlog.get_logger()

ARCHIVE_SUFFIX = ".org_archive"


class OrgDocument:
    """Parsed org buffer.

    Headlines live in ``nodes``, keyed by their id (the line they were parsed
    from). The synthetic root has id 0. Nodes refer to each other by id, so
    parent links never form object cycles.

    Attributes:
        buffer: Text buffer edits are written to
        settings: Read-only parser settings
        category: Default category for headlines without a CATEGORY property
        file: Source file path, if any
        nodes: Headline arena
        root: Level 0 node owning the top-level headlines
    """

    def __init__(
        self,
        buffer: TextBuffer,
        settings: Optional[OrgSettings] = None,
        category: str = "",
        file: str = "",
        archived: bool = False,
    ):
        self.buffer = buffer
        self.settings = settings or OrgSettings()
        self.category = category
        self.file = file
        self.archived = archived
        self.nodes: dict[int, Headline] = {}
        self.root = Headline.root(self, category=category, file=file)

    @classmethod
    def parse(
        cls,
        buffer: TextBuffer,
        settings: Optional[OrgSettings] = None,
        category: str = "",
        file: str = "",
        archived: bool = False,
    ) -> "OrgDocument":
        """Parse every line of ``buffer`` into a headline tree."""
        document = cls(buffer, settings, category=category, file=file, archived=archived)
        document._build()
        return document

    @classmethod
    def from_text(
        cls,
        text: str,
        settings: Optional[OrgSettings] = None,
        category: str = "",
        file: str = "",
    ) -> "OrgDocument":
        return cls.parse(MemoryBuffer.from_text(text), settings, category=category, file=file)

    @classmethod
    def load(cls, path: Path, settings: Optional[OrgSettings] = None) -> "OrgDocument":
        """Read and parse an org file; the category defaults to the file stem."""
        lines = read_lines(path)
        return cls._from_file_lines(path, lines, settings)

    @classmethod
    async def load_async(cls, path: Path, settings: Optional[OrgSettings] = None) -> "OrgDocument":
        lines = await read_lines_async(path)
        return cls._from_file_lines(path, lines, settings)

    @classmethod
    def _from_file_lines(
        cls, path: Path, lines: list[str], settings: Optional[OrgSettings]
    ) -> "OrgDocument":
        path = Path(path)
        document = cls.parse(
            MemoryBuffer(lines),
            settings,
            category=path.stem,
            file=str(path),
            archived=path.suffix == ARCHIVE_SUFFIX,
        )
        logger.info("document_loaded", path=str(path), headlines=len(document.nodes) - 1)
        return document

    def _build(self) -> None:
        stack = [self.root]
        total = self.buffer.line_count()
        for lnum in range(1, total + 1):
            line = self.buffer.get_line(lnum)
            level = match_headline(line)
            if level is None:
                current = stack[-1]
                current.add_content(classify_line(line, lnum, current.classify_context()))
                continue

            while len(stack) > 1 and stack[-1].level >= level:
                stack.pop().set_range_end(lnum - 1)
            parent = stack[-1]
            headline = Headline(
                lnum,
                line,
                parent=parent,
                category=self.category,
                file=self.file,
                archived=self.archived,
            )
            parent.add_headline(headline)
            stack.append(headline)

        for headline in reversed(stack):
            headline.set_range_end(total)
        logger.debug("document_parsed", lines=total, headlines=len(self.nodes) - 1)

    def walk(self) -> Iterator[Headline]:
        """Yield every real headline in document (pre-)order."""
        pending = list(reversed(self.root.headlines))
        while pending:
            headline = pending.pop()
            yield headline
            pending.extend(reversed(headline.headlines))

    def all_headlines(self) -> list[Headline]:
        return list(self.walk())

    def find_headline(self, lnum: int) -> Headline:
        """Headline whose title currently sits on ``lnum``.

        Raises:
            HeadlineNotFoundError: If no title line is at ``lnum``
        """
        for headline in self.walk():
            if headline.range.start_line == lnum:
                return headline
        raise HeadlineNotFoundError(lnum)

    def get_headline_at(self, lnum: int) -> Optional[Headline]:
        """Innermost headline whose range holds ``lnum``, or None before the first one."""
        found = None
        candidates = self.root.headlines
        while candidates:
            match = next((h for h in candidates if h.range.contains_line(lnum)), None)
            if match is None:
                break
            found = match
            candidates = match.headlines
        return found

    def shift_lines(self, after_line: int, delta: int) -> None:
        """Keep every stored range coherent after a buffer insert or delete.

        ``delta`` lines were inserted below ``after_line`` (or, when negative,
        line ``after_line`` was removed). Ids are left untouched.
        """
        seen: set[int] = set()

        def move(line_range):
            if line_range is None or id(line_range) in seen:
                return
            seen.add(id(line_range))
            line_range.move(after_line, delta)

        for headline in self.nodes.values():
            headline.range.shift(after_line, delta)
            if headline.properties.range is not None:
                headline.properties.range.shift(after_line, delta)
            move(headline.todo_keyword.range)
            for content in headline.content:
                move(content.range)
                for date in content.dates:
                    move(date.range)
            for date in headline.dates:
                move(date.range)

    def text(self) -> str:
        return "\n".join(
            self.buffer.get_line(lnum) for lnum in range(1, self.buffer.line_count() + 1)
        ) + ("\n" if self.buffer.line_count() else "")
