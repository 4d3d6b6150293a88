"""Line classification for org outlines.

Every physical line is either a headline start or one ``Content`` entry
owned by the headline above it. Classification never fails: a line that
does not meet the syntactic or positional preconditions of a special kind
falls through to ``ContentKind.GENERIC``.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from orgtree.models.date import OrgDate
from orgtree.parser.range import Range

HEADLINE_RE = re.compile(r"^(?P<stars>\*+)(?:\s|$)")
PLANNING_LINE_RE = re.compile(r"^\s*(SCHEDULED|DEADLINE|CLOSED):")
PROPERTIES_START_RE = re.compile(r"^\s*:PROPERTIES:\s*$", re.IGNORECASE)
DRAWER_END_RE = re.compile(r"^\s*:END:\s*$", re.IGNORECASE)
PROPERTY_RE = re.compile(r"^\s*:(?P<name>[^\s:]+):(?:\s+(?P<value>.*?))?\s*$")


class ContentKind(Enum):
    """What a non-headline line is."""

    PLANNING = "planning"
    PROPERTIES_START = "properties_start"
    PROPERTY = "property"
    PROPERTIES_END = "properties_end"
    GENERIC = "generic"


DRAWER_KINDS = (ContentKind.PROPERTIES_START, ContentKind.PROPERTY, ContentKind.PROPERTIES_END)


@dataclass(frozen=True)
class ClassifyContext:
    """Where a line would land inside its headline.

    Attributes:
        position: 1-based index the line would take in ``Headline.content``
        first_is_planning: Whether the headline's first content entry is a planning line
        in_property_drawer: Whether a valid property drawer is open
        allow_planning: False for the synthetic document root
    """

    position: int = 1
    first_is_planning: bool = False
    in_property_drawer: bool = False
    allow_planning: bool = True

    @property
    def properties_slot(self) -> bool:
        """True where a property drawer may legally start."""
        return self.position == 1 or (self.position == 2 and self.first_is_planning)


@dataclass
class Content:
    """A non-headline line belonging to a headline.

    Attributes:
        kind: Classification result
        line: Raw line text
        range: Buffer position of the line
        dates: Timestamps found on the line
        drawer_properties: ``{NAME: value}`` for property lines inside a drawer
    """

    kind: ContentKind
    line: str
    range: Range
    dates: list[OrgDate] = field(default_factory=list)
    drawer_properties: Optional[dict[str, str]] = None

    def is_headline(self) -> bool:
        return False

    def is_content(self) -> bool:
        return True

    def is_planning(self) -> bool:
        return self.kind is ContentKind.PLANNING

    def is_properties_start(self) -> bool:
        return self.kind is ContentKind.PROPERTIES_START

    def is_parent_end(self) -> bool:
        return self.kind is ContentKind.PROPERTIES_END

    def is_drawer(self) -> bool:
        return self.kind in DRAWER_KINDS

    @property
    def indent(self) -> str:
        return self.line[: len(self.line) - len(self.line.lstrip())]


def match_headline(line: str) -> Optional[int]:
    """Return the headline level of ``line``, or None for non-headlines.

    Examples:
        >>> match_headline("** TODO Something")
        2
        >>> match_headline("***")
        3
        >>> match_headline("*bold* text") is None
        True
    """
    match = HEADLINE_RE.match(line)
    if not match:
        return None
    return len(match.group("stars"))


def classify_line(line: str, lnum: int, context: ClassifyContext) -> Content:
    """Classify one non-headline line.

    Args:
        line: Raw line text
        lnum: 1-based buffer line number
        context: Position of the line inside its headline

    Returns:
        A ``Content`` of the matching kind, ``GENERIC`` when nothing else fits
    """
    line_range = Range.from_line(lnum)
    line_range.end_col = len(line)

    if context.in_property_drawer:
        if DRAWER_END_RE.match(line):
            return Content(ContentKind.PROPERTIES_END, line, line_range)
        prop = PROPERTY_RE.match(line)
        if prop:
            return Content(
                ContentKind.PROPERTY,
                line,
                line_range,
                dates=OrgDate.parse_all_from_line(line, lnum, detect_planning=False),
                drawer_properties={prop.group("name"): prop.group("value") or ""},
            )

    in_slot = context.properties_slot and not context.in_property_drawer
    if in_slot and PROPERTIES_START_RE.match(line):
        return Content(ContentKind.PROPERTIES_START, line, line_range)

    if context.allow_planning and context.position == 1 and PLANNING_LINE_RE.match(line):
        dates = OrgDate.parse_all_from_line(line, lnum)
        if any(date.is_planning() for date in dates):
            return Content(ContentKind.PLANNING, line, line_range, dates=dates)

    return Content(
        ContentKind.GENERIC,
        line,
        line_range,
        dates=OrgDate.parse_all_from_line(line, lnum, detect_planning=False),
    )
