"""Headline nodes of a parsed org document.

A ``Headline`` owns the content lines directly below its title (up to the
first child headline) and derives todo state, priority, tags, dates and
properties from them. Mutations keep the node consistent first and then
push the minimal set of line edits into the document's ``TextBuffer``;
nothing is ever re-read from the buffer.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import structlog

from orgtree.models.date import CLOSED, DEADLINE, NONE, SCHEDULED, OrgDate
from orgtree.parser.content import ClassifyContext, Content, classify_line
from orgtree.parser.range import Range
from orgtree.parser.tags import parse_tags_string, tags_to_string
from orgtree.services.exceptions import OrgTreeError, SealedHeadlineError
from orgtree.utils.messages import echo_warning

if TYPE_CHECKING:
    from orgtree.parser.document import OrgDocument

logger = structlog.get_logger()

STARS_RE = re.compile(r"^\*+(?:\s+|$)")
PRIORITY_RE = re.compile(r"^\s+\[#([A-Za-z0-9])\]")
TAG_RUN_RE = re.compile(r"(?:^|\s)(:\S*:)\s*$")
CLOSED_PREFIX_RE = re.compile(r"\s*CLOSED:\s*$")
DATE_PART_RE = re.compile(r"\d{4}-\d{2}-\d{2}(?: [^\s\d>\]+.-][^\s>\]]*)?")


@dataclass
class TodoKeyword:
    """Workflow keyword of a headline; ``type`` is "TODO", "DONE" or ""."""

    value: str = ""
    type: str = ""
    range: Optional[Range] = None


@dataclass
class PropertyBlock:
    """The ``:PROPERTIES:`` drawer of a headline.

    Only a drawer right below the title (or right below the planning line)
    is ``valid``. ``unfinished`` stays True until its ``:END:`` is seen.
    """

    valid: bool = False
    unfinished: bool = False
    range: Optional[Range] = None
    items: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PropertiesResult:
    """Outcome of ``Headline.add_properties``.

    Attributes:
        is_new: True when a whole drawer was created
        indent: Indentation used for the drawer lines
        end_line: Line of the new ``:END:`` (only for new drawers)
    """

    is_new: bool
    indent: str
    end_line: Optional[int] = None


class Headline:
    """One outline heading.

    Attributes:
        id: Line number the headline was parsed from; never changes
        level: Number of leading stars (0 for the synthetic root)
        line: Current title line text
        range: Lines spanned by the headline and its descendants
        content: Non-headline lines before the first child, in order
        todo_keyword: Matched workflow keyword
        priority: Priority character, or ""
        title: Title without stars, keyword, priority cookie and tags
        tags: Inherited tags followed by own tags, without duplicates
        properties: Property drawer state
        dates: Title dates followed by planning and content dates
        archived: Explicit archive flag (see ``is_archived``)
    """

    def __init__(
        self,
        lnum: int,
        line: Optional[str],
        parent: Optional["Headline"] = None,
        document: Optional["OrgDocument"] = None,
        category: str = "",
        file: str = "",
        archived: bool = False,
    ):
        if document is None:
            if parent is None:
                raise ValueError("A headline needs a parent or a document")
            document = parent.document
        self.document = document
        self.id = lnum
        self.parent_id: Optional[int] = parent.id if parent is not None else None
        self.headline_ids: list[int] = []
        self.line = line
        self.level = len(STARS_RE.match(line).group(0).rstrip()) if line else 0
        self.range = Range.from_line(lnum)
        self.content: list[Content] = []
        self.todo_keyword = TodoKeyword()
        self.priority = ""
        self.title = ""
        self.category = category
        self.file = file
        self.dates: list[OrgDate] = []
        self.properties = PropertyBlock()
        self.archived = archived
        self.tags = self.settings.get_inheritable_tags(parent)
        self.sealed = False
        document.nodes[self.id] = self
        if line:
            self._parse_line()

    @classmethod
    def root(cls, document: "OrgDocument", category: str = "", file: str = "") -> "Headline":
        """Synthetic level 0 node that owns the top-level headlines."""
        return cls(0, None, document=document, category=category, file=file)

    def __repr__(self) -> str:
        return f"Headline(id={self.id}, level={self.level}, title={self.title!r})"

    @property
    def settings(self):
        return self.document.settings

    @property
    def buffer(self):
        return self.document.buffer

    @property
    def parent(self) -> Optional["Headline"]:
        if self.parent_id is None:
            return None
        return self.document.nodes[self.parent_id]

    @property
    def headlines(self) -> list["Headline"]:
        return [self.document.nodes[child_id] for child_id in self.headline_ids]

    def is_root(self) -> bool:
        return self.level == 0

    def is_headline(self) -> bool:
        return True

    def is_content(self) -> bool:
        return False

    # -- building -----------------------------------------------------------

    def add_headline(self, headline: "Headline") -> "Headline":
        if self.sealed:
            raise SealedHeadlineError(self.id)
        if self.headline_ids and headline.id <= self.headline_ids[-1]:
            raise ValueError(
                f"Headline {headline.id} must come after headline {self.headline_ids[-1]}"
            )
        headline.parent_id = self.id
        self.headline_ids.append(headline.id)
        return headline

    def classify_context(self) -> ClassifyContext:
        """Context for classifying the next line attached to this headline."""
        return ClassifyContext(
            position=len(self.content) + 1,
            first_is_planning=bool(self.content) and self.content[0].is_planning(),
            in_property_drawer=self.properties.valid and self.properties.unfinished,
            allow_planning=not self.is_root(),
        )

    def add_content(self, content: Content) -> Content:
        if self.sealed:
            raise SealedHeadlineError(self.id)
        if not self._parse_planning(content):
            self._parse_dates(content)
        self.content.append(content)
        self._parse_properties(content)
        return content

    def set_range_end(self, lnum: int) -> None:
        self.range.end_line = lnum
        self.sealed = True

    def _parse_planning(self, content: Content) -> bool:
        if content.is_planning() and not self.content:
            self.dates.extend(content.dates)
            return True
        return False

    def _parse_dates(self, content: Content) -> None:
        for date in content.dates:
            self.dates.append(date.clone(type=NONE))

    def _parse_properties(self, content: Content) -> None:
        if content.is_properties_start():
            in_slot = len(self.content) == 1 or (
                len(self.content) == 2 and self.content[0].is_planning()
            )
            if not in_slot:
                return
            self.properties.range = Range.from_line(content.range.start_line)
            self.properties.valid = True
            self.properties.unfinished = True

        if content.is_parent_end() and self.properties.valid and self.properties.unfinished:
            drawer = self.properties.range
            drawer.end_line = content.range.start_line
            for entry in self.content:
                if drawer.contains_line(entry.range.start_line) and entry.drawer_properties:
                    self.properties.items.update(entry.drawer_properties)
            self.properties.unfinished = False

    def _parse_line(self) -> None:
        star = STARS_RE.match(self.line).group(0)
        text = self.line[len(star):]

        self._parse_todo_keyword(star)
        if self.todo_keyword.value:
            text = text[len(self.todo_keyword.value):]
            priority = PRIORITY_RE.match(text)
            if priority:
                self.priority = priority.group(1)
                text = text[priority.end():]

        text = self._parse_tags(text)
        self.title = text.strip()
        self.dates.extend(
            OrgDate.parse_all_from_line(self.line, self.range.start_line, detect_planning=False)
        )

    def _parse_todo_keyword(self, star: str) -> None:
        keywords = self.settings.todo_keyword_sets
        rest = self.line[len(star):]
        for word in keywords["ALL"]:
            if rest == word or (rest.startswith(word) and rest[len(word):len(word) + 1].isspace()):
                self.todo_keyword = TodoKeyword(
                    value=word,
                    type="DONE" if word in keywords["DONE"] else "TODO",
                    range=Range(
                        start_line=self.range.start_line,
                        start_col=len(star),
                        end_line=self.range.start_line,
                        end_col=len(star) + len(word),
                    ),
                )
                break

    def _parse_tags(self, text: str) -> str:
        """Collect own tags and return ``text`` without the tag run."""
        match = TAG_RUN_RE.search(text)
        if not match:
            return text
        own_tags = parse_tags_string(match.group(1))
        if not own_tags:
            return text
        for tag in own_tags:
            if tag not in self.tags:
                self.tags.append(tag)
        return text[:match.start(1)]

    # -- queries ------------------------------------------------------------

    def is_first_headline(self) -> bool:
        parent = self.parent
        if parent is None:
            return True
        return parent.headline_ids[0] == self.id

    def is_last_headline(self) -> bool:
        parent = self.parent
        if parent is None:
            return True
        return parent.headline_ids[-1] == self.id

    def get_next_headline_same_level(self) -> Optional["Headline"]:
        if self.is_last_headline():
            return None
        for headline in self.parent.headlines:
            if headline.id > self.id and headline.level == self.level:
                return headline
        return None

    def get_prev_headline_same_level(self) -> Optional["Headline"]:
        if self.is_first_headline():
            return None
        for headline in reversed(self.parent.headlines):
            if headline.id < self.id and headline.level == self.level:
                return headline
        return None

    def is_done(self) -> bool:
        return self.todo_keyword.type == "DONE"

    def is_todo(self) -> bool:
        return self.todo_keyword.type == "TODO"

    def has_priority(self) -> bool:
        return self.priority != ""

    def get_priority_number(self) -> int:
        if self.priority == self.settings.priority_highest:
            return 2000
        if self.priority == self.settings.priority_lowest:
            return 0
        return 1000

    def get_property(self, name: str) -> Optional[str]:
        return self.properties.items.get(name)

    def get_category(self) -> str:
        if "CATEGORY" in self.properties.items:
            return self.properties.items["CATEGORY"]
        return self.category

    def is_archived(self) -> bool:
        return self.archived or any(tag.upper() == "ARCHIVE" for tag in self.tags)

    def get_own_tags(self) -> list[str]:
        """Tags written on this headline's own line, ignoring inheritance."""
        if not self.line:
            return []
        match = TAG_RUN_RE.search(self.line)
        return parse_tags_string(match.group(1)) if match else []

    def tags_to_string(self) -> str:
        return tags_to_string(self.tags)

    def get_repeater_dates(self) -> list[OrgDate]:
        return [date for date in self.dates if date.get_repeater()]

    def get_deadline_and_scheduled_dates(self) -> list[OrgDate]:
        return [date for date in self.dates if date.is_deadline() or date.is_scheduled()]

    def get_scheduled_date(self) -> Optional[OrgDate]:
        return next((date for date in self.dates if date.is_scheduled()), None)

    def get_deadline_date(self) -> Optional[OrgDate]:
        return next((date for date in self.dates if date.is_deadline()), None)

    def _get_closed_date(self) -> Optional[OrgDate]:
        return next((date for date in self.dates if date.is_closed()), None)

    def get_valid_dates_for_agenda(self) -> list[OrgDate]:
        """Active dates an agenda should show.

        A typed range start also yields a plain clone, so the range shows up
        both as its planning role and as an ordinary dated entry.
        """
        dates = []
        for date in self.dates:
            if date.active and not date.is_closed() and not date.is_obsolete_range_end():
                dates.append(date)
                if not date.is_none() and date.is_date_range_start:
                    dates.append(date.clone(type=NONE))
        return dates

    def get_content_matching(self, pattern: str) -> Optional[Content]:
        regex = re.compile(pattern)
        for content in self.content:
            if regex.search(content.line):
                return content
        return None

    def _get_content_by_lnum(self, lnum: int) -> Optional[Content]:
        for content in self.content:
            if content.range.start_line == lnum:
                return content
        return None

    def _get_content_with_property(self, name: str, value: str) -> Optional[Content]:
        for content in self.content:
            if content.drawer_properties and content.drawer_properties.get(name) == value:
                return content
        return None

    # -- mutations ----------------------------------------------------------

    def _ensure_editable(self) -> None:
        if self.is_root():
            raise OrgTreeError("The document root has no title line to edit")

    def _content_indent(self) -> str:
        if self.settings.is_indent_mode():
            return " " * (self.level + 1)
        return ""

    def _insert_content(
        self, index: int, after_line: int, lines: list[str], in_drawer: bool = False
    ) -> list[Content]:
        """Insert ``lines`` below ``after_line`` as content entries starting at ``index``."""
        self.document.shift_lines(after_line, len(lines))
        inserted = []
        for offset, text in enumerate(lines):
            lnum = after_line + 1 + offset
            drawer_open = in_drawer or (bool(inserted) and inserted[0].is_properties_start())
            context = ClassifyContext(
                position=index + offset + 1,
                first_is_planning=bool(self.content) and self.content[0].is_planning(),
                in_property_drawer=drawer_open,
            )
            content = classify_line(text, lnum, context)
            self.content.insert(index + offset, content)
            inserted.append(content)
            if content.is_planning() and index + offset == 0:
                self._set_line_dates(lnum, list(content.dates))
            else:
                self._set_line_dates(lnum, [date.clone(type=NONE) for date in content.dates])
        self.buffer.append_lines(after_line, lines)
        return inserted

    def _set_line_dates(self, lnum: int, new_dates: list[OrgDate]) -> None:
        kept = [date for date in self.dates if date.range.start_line != lnum]
        index = sum(1 for date in kept if date.range.start_line < lnum)
        kept[index:index] = new_dates
        self.dates = kept

    def _shift_columns(self, lnum: int, from_col: int, delta: int) -> None:
        seen = set()
        all_dates = list(self.dates)
        for content in self.content:
            all_dates.extend(content.dates)
        for date in all_dates:
            if id(date) in seen or date.range.start_line != lnum:
                continue
            seen.add(id(date))
            if date.range.start_col >= from_col:
                date.range.start_col += delta
                date.range.end_col += delta
        keyword_range = self.todo_keyword.range
        if keyword_range is None or keyword_range.start_line != lnum:
            return
        if keyword_range.start_col >= from_col:
            keyword_range.start_col += delta
            keyword_range.end_col += delta

    def add_properties(self, properties: dict[str, str]) -> PropertiesResult:
        """Set properties, creating the drawer when there is no valid one.

        Existing keys are rewritten in place; new keys go right below
        ``:PROPERTIES:`` using the drawer's indentation.
        """
        self._ensure_editable()
        if self.properties.valid:
            start = self._get_content_by_lnum(self.properties.range.start_line)
            indent = start.indent
            insert_after = self.properties.range.start_line
            for name, value in properties.items():
                if name in self.properties.items:
                    self._replace_property_value(name, value)
                    continue
                index = self.content.index(self._get_content_by_lnum(insert_after)) + 1
                line = f"{indent}:{name}: {value}"
                self._insert_content(index, insert_after, [line], in_drawer=True)
                self.properties.items[name] = value
                insert_after += 1
            logger.debug("properties_updated", headline=self.id, keys=list(properties))
            return PropertiesResult(is_new=False, indent=indent)

        index = 1 if self.content and self.content[0].is_planning() else 0
        after_line = self.content[0].range.start_line if index else self.range.start_line
        indent = self._content_indent()
        lines = [f"{indent}:PROPERTIES:"]
        lines.extend(f"{indent}:{name}: {value}" for name, value in properties.items())
        lines.append(f"{indent}:END:")
        self._insert_content(index, after_line, lines)
        self.properties = PropertyBlock(
            valid=True,
            unfinished=False,
            range=Range(start_line=after_line + 1, end_line=after_line + len(lines)),
            items=dict(properties),
        )
        logger.debug("properties_drawer_created", headline=self.id, keys=list(properties))
        return PropertiesResult(is_new=True, indent=indent, end_line=after_line + len(lines))

    def _replace_property_value(self, name: str, value: str) -> None:
        old_value = self.properties.items[name]
        existing = self._get_content_with_property(name, old_value)
        if existing is None:
            return
        key = f":{name}:"
        key_end = existing.line.index(key) + len(key)
        head, tail = existing.line[:key_end], existing.line[key_end:]
        if old_value:
            new_line = head + tail.replace(old_value, value, 1)
        else:
            new_line = f"{head} {value}"
        lnum = existing.range.start_line
        existing.line = new_line
        existing.range.end_col = len(new_line)
        existing.drawer_properties[name] = value
        existing.dates = OrgDate.parse_all_from_line(new_line, lnum, detect_planning=False)
        self._set_line_dates(lnum, [date.clone(type=NONE) for date in existing.dates])
        self.properties.items[name] = value
        self.buffer.set_line(lnum, new_line)

    def add_scheduled_date(self, date: OrgDate):
        scheduled_date = self.get_scheduled_date()
        if scheduled_date:
            return self._update_date(scheduled_date, date)
        return self._add_planning_date(date, SCHEDULED, True)

    def add_deadline_date(self, date: OrgDate):
        deadline_date = self.get_deadline_date()
        if deadline_date:
            return self._update_date(deadline_date, date)
        return self._add_planning_date(date, DEADLINE, True)

    def add_closed_date(self):
        if self._get_closed_date():
            return None
        return self._add_planning_date(OrgDate.now(), CLOSED, False)

    def _line_of(self, lnum: int) -> Optional[Content]:
        content = self._get_content_by_lnum(lnum)
        if content is None:
            raise OrgTreeError(f"Line {lnum} does not belong to headline {self.id}")
        return content

    def _update_date(self, date: OrgDate, new_date: OrgDate) -> bool:
        """Rewrite the calendar day of ``date`` in place, keeping time and cookies."""
        lnum = date.range.start_line
        content = self._line_of(lnum)
        line = content.line
        inner_start = date.range.start_col + 1
        old_part = DATE_PART_RE.match(line, inner_start)

        date.set(year=new_date.year, month=new_date.month, day=new_date.day)
        new_part = f"{date.year:04d}-{date.month:02d}-{date.day:02d} {date.dow}"
        new_line = line[:inner_start] + new_part + line[old_part.end():]
        delta = len(new_line) - len(line)
        date.range.end_col += delta
        self._shift_columns(lnum, date.range.end_col - delta, delta)
        content.line = new_line
        content.range.end_col = len(new_line)

        view = self.buffer.save_view()
        self.buffer.set_line(lnum, new_line)
        self.buffer.restore_view(view)
        logger.debug("date_updated", headline=self.id, line=lnum, date=date.to_string())
        return True

    def _add_planning_date(self, date: OrgDate, keyword: str, active: bool = False) -> Content:
        self._ensure_editable()
        date_string = date.to_wrapped_string(active)
        planning = self.content[0] if self.content else None
        if planning is not None and planning.is_planning():
            lnum = planning.range.start_line
            old_length = len(planning.line)
            new_line = f"{planning.line} {keyword}: {date_string}"
            added = [
                parsed
                for parsed in OrgDate.parse_all_from_line(new_line, lnum)
                if parsed.range.start_col >= old_length
            ]
            planning.line = new_line
            planning.range.end_col = len(new_line)
            planning.dates.extend(added)
            self._set_line_dates(lnum, planning.dates)
            self.buffer.set_line(lnum, new_line)
        else:
            line = f"{self._content_indent()}{keyword}: {date_string}"
            planning = self._insert_content(0, self.range.start_line, [line])[0]
        logger.debug("planning_date_added", headline=self.id, keyword=keyword, date=date_string)
        return planning

    def remove_closed_date(self):
        closed_date = self._get_closed_date()
        if not closed_date:
            return None
        planning = self.content[0]
        lnum = planning.range.start_line
        line = planning.line
        prefix = line[:closed_date.range.start_col]
        keyword = CLOSED_PREFIX_RE.search(prefix)
        head = prefix[:keyword.start()]
        tail = line[closed_date.range.end_col:]
        if head.strip():
            new_line = head + tail
        else:
            new_line = planning.indent + tail.lstrip()

        planning.dates.remove(closed_date)
        self.dates = [date for date in self.dates if date is not closed_date]

        if new_line.strip() == "":
            self.content.pop(0)
            self.dates = [date for date in self.dates if date.range.start_line != lnum]
            self.document.shift_lines(lnum, -1)
            self.buffer.delete_line(lnum)
            logger.debug("planning_line_removed", headline=self.id, line=lnum)
            return True

        delta = len(new_line) - len(line)
        self._shift_columns(lnum, closed_date.range.end_col, delta)
        planning.line = new_line
        planning.range.end_col = len(new_line)
        self.buffer.set_line(lnum, new_line)
        logger.debug("closed_date_removed", headline=self.id, line=lnum)
        return True

    def demote(self, amount: int = 1, demote_child_headlines: bool = False) -> bool:
        self._ensure_editable()
        _check_amount(amount)
        self.line = "*" * amount + self.line
        self.level += amount
        self._shift_columns(self.range.start_line, 0, amount)
        self.buffer.set_line(self.range.start_line, self.line)
        if self.settings.is_indent_mode():
            for content in self.content:
                content.line = " " * amount + content.line
                content.range.end_col = len(content.line)
                self._shift_columns(content.range.start_line, 0, amount)
                self.buffer.set_line(content.range.start_line, content.line)
        if demote_child_headlines:
            for headline in self.headlines:
                headline.demote(amount, True)
        return True

    def promote(self, amount: int = 1, promote_child_headlines: bool = False) -> bool:
        self._ensure_editable()
        _check_amount(amount)
        if self.level == 1:
            echo_warning("Cannot promote top level heading.")
            return False
        if amount >= self.level:
            echo_warning(f"Cannot promote a level {self.level} heading by {amount}.")
            return False
        self.line = self.line[amount:]
        self.level -= amount
        self._shift_columns(self.range.start_line, 0, -amount)
        self.buffer.set_line(self.range.start_line, self.line)
        if self.settings.is_indent_mode():
            for content in self.content:
                if content.line[:amount].strip() == "":
                    content.line = content.line[amount:]
                    content.range.end_col = len(content.line)
                    self._shift_columns(content.range.start_line, 0, -amount)
                    self.buffer.set_line(content.range.start_line, content.line)
        if promote_child_headlines:
            for headline in self.headlines:
                headline.promote(amount, True)
        return True


def _check_amount(amount: int) -> None:
    if amount < 1:
        raise ValueError(f"Level change must be at least 1, got {amount}")
