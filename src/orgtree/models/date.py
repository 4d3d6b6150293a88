"""Org timestamps.

Handles the ``<2024-01-01 Mon 10:00-11:00 +1w -2d>`` family of timestamps,
active (``<...>``) and inactive (``[...]``), plus ``<a>--<b>`` date ranges.
Each parsed date remembers where it sits in the buffer so headline mutations
can splice a new value in place.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date as _date
from datetime import datetime
from typing import Optional

from orgtree.parser.range import Range

NONE = "NONE"
SCHEDULED = "SCHEDULED"
DEADLINE = "DEADLINE"
CLOSED = "CLOSED"

PLANNING_KEYWORDS = (SCHEDULED, DEADLINE, CLOSED)

# Locale independent, org writes English day names
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

TIMESTAMP_RE = re.compile(
    r"(?P<open>[<\[])"
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?: (?P<dow>[^\s\d>\]+.-][^\s>\]]*))?"
    r"(?: (?P<hour>\d{1,2}):(?P<minute>\d{2})(?:-(?P<end_hour>\d{1,2}):(?P<end_minute>\d{2}))?)?"
    r"(?P<modifiers>(?: (?:\+\+|\.\+|\+|--|-)\d+[hdwmy])*)"
    r"\s*(?P<close>[>\]])"
)
MODIFIER_RE = re.compile(r"(?P<mark>\+\+|\.\+|\+|--|-)(?P<value>\d+)(?P<unit>[hdwmy])")
PLANNING_PREFIX_RE = re.compile(r"(SCHEDULED|DEADLINE|CLOSED):\s*$")
RANGE_JOINER = "--"


@dataclass
class OrgDate:
    """A single org timestamp.

    Attributes:
        year, month, day: Calendar date
        hour, minute: Time of day (None for date-only timestamps)
        end_hour, end_minute: End of an in-day time span (``10:00-11:00``)
        repeater: Repeater cookie such as ``+1w`` (None if absent)
        warning: Warning period cookie such as ``-2d`` (None if absent)
        active: True for ``<...>``, False for ``[...]``
        type: NONE, SCHEDULED, DEADLINE or CLOSED
        range: Buffer position of the whole timestamp, delimiters included
    """

    year: int
    month: int
    day: int
    hour: Optional[int] = None
    minute: Optional[int] = None
    end_hour: Optional[int] = None
    end_minute: Optional[int] = None
    repeater: Optional[str] = None
    warning: Optional[str] = None
    active: bool = True
    type: str = NONE
    range: Range = field(default_factory=lambda: Range.from_line(0))
    is_date_range_start: bool = False
    is_date_range_end: bool = False
    related_date_range: Optional["OrgDate"] = field(default=None, repr=False, compare=False)

    @classmethod
    def now(cls) -> "OrgDate":
        current = datetime.now()
        return cls(
            year=current.year,
            month=current.month,
            day=current.day,
            hour=current.hour,
            minute=current.minute,
            active=False,
        )

    @classmethod
    def from_string(cls, text: str, active: bool = True) -> Optional["OrgDate"]:
        """Parse a timestamp with or without delimiters.

        Returns None when ``text`` is not a timestamp.

        Examples:
            >>> OrgDate.from_string("2024-01-01").day
            1
            >>> OrgDate.from_string("[2024-03-05 Tue 09:30]").active
            False
        """
        text = text.strip()
        if not text.startswith(("<", "[")):
            text = f"<{text}>" if active else f"[{text}]"
        dates = cls.parse_all_from_line(text, 0, detect_planning=False)
        if not dates:
            return None
        return dates[0]

    @classmethod
    def parse_all_from_line(
        cls, line: str, lnum: int, detect_planning: bool = True
    ) -> list["OrgDate"]:
        """Find every timestamp in ``line``.

        A timestamp directly preceded by ``SCHEDULED:``, ``DEADLINE:`` or
        ``CLOSED:`` takes that keyword as its type when ``detect_planning``
        is set. Both halves of a ``<a>--<b>`` range are returned, linked to
        each other, and the end takes the type of the start.
        """
        dates: list[OrgDate] = []
        previous: Optional[OrgDate] = None
        previous_end = -1
        for match in TIMESTAMP_RE.finditer(line):
            if not _delimiters_match(match.group("open"), match.group("close")):
                continue
            parsed = cls._from_match(match, lnum)
            if parsed is None:
                continue

            if previous is not None and line[previous_end:match.start()] == RANGE_JOINER:
                previous.is_date_range_start = True
                previous.related_date_range = parsed
                parsed.is_date_range_end = True
                parsed.related_date_range = previous
                parsed.type = previous.type
            elif detect_planning:
                keyword = PLANNING_PREFIX_RE.search(line[:match.start()])
                if keyword:
                    parsed.type = keyword.group(1)

            dates.append(parsed)
            previous = parsed
            previous_end = match.end()
        return dates

    @classmethod
    def _from_match(cls, match: re.Match, lnum: int) -> Optional["OrgDate"]:
        try:
            _date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
        except ValueError:
            return None

        repeater = None
        warning = None
        for modifier in MODIFIER_RE.finditer(match.group("modifiers") or ""):
            if modifier.group("mark").startswith("-"):
                warning = modifier.group(0)
            else:
                repeater = modifier.group(0)

        def as_int(name):
            value = match.group(name)
            return int(value) if value is not None else None

        return cls(
            year=int(match.group("year")),
            month=int(match.group("month")),
            day=int(match.group("day")),
            hour=as_int("hour"),
            minute=as_int("minute"),
            end_hour=as_int("end_hour"),
            end_minute=as_int("end_minute"),
            repeater=repeater,
            warning=warning,
            active=match.group("open") == "<",
            range=Range(
                start_line=lnum,
                start_col=match.start(),
                end_line=lnum,
                end_col=match.end(),
            ),
        )

    def is_deadline(self) -> bool:
        return self.type == DEADLINE

    def is_scheduled(self) -> bool:
        return self.type == SCHEDULED

    def is_closed(self) -> bool:
        return self.type == CLOSED

    def is_none(self) -> bool:
        return self.type == NONE

    def is_planning(self) -> bool:
        return self.type in PLANNING_KEYWORDS

    def get_repeater(self) -> Optional[str]:
        return self.repeater

    def is_obsolete_range_end(self) -> bool:
        """A range end on the same day as its start adds nothing to an agenda."""
        return (
            self.is_date_range_end
            and self.related_date_range is not None
            and self.related_date_range.is_same(self, "day")
        )

    def is_same(self, other: "OrgDate", span: str = "day") -> bool:
        if span == "day":
            return self.to_date() == other.to_date()
        if span == "month":
            return (self.year, self.month) == (other.year, other.month)
        if span == "year":
            return self.year == other.year
        raise ValueError(f"Unknown span: {span}")

    def to_date(self) -> _date:
        return _date(self.year, self.month, self.day)

    @property
    def dow(self) -> str:
        return DAY_NAMES[self.to_date().weekday()]

    def clone(self, **overrides) -> "OrgDate":
        """Copy the date with its own range, applying ``overrides``."""
        overrides.setdefault("range", self.range.copy())
        return replace(self, **overrides)

    def set(self, **fields) -> "OrgDate":
        """Update fields in place; the day name follows the new date."""
        for name in fields:
            if not hasattr(self, name):
                raise AttributeError(f"OrgDate has no field {name!r}")
        # Reject impossible days such as February 30th before touching anything
        _date(
            fields.get("year", self.year),
            fields.get("month", self.month),
            fields.get("day", self.day),
        )
        for name, value in fields.items():
            setattr(self, name, value)
        return self

    def to_string(self) -> str:
        """Render without delimiters, e.g. ``2024-01-01 Mon 10:00 +1w``."""
        text = f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.dow}"
        if self.hour is not None:
            text += f" {self.hour:02d}:{self.minute or 0:02d}"
            if self.end_hour is not None:
                text += f"-{self.end_hour:02d}:{self.end_minute or 0:02d}"
        if self.repeater:
            text += f" {self.repeater}"
        if self.warning:
            text += f" {self.warning}"
        return text

    def to_wrapped_string(self, active: Optional[bool] = None) -> str:
        if active is None:
            active = self.active
        if active:
            return f"<{self.to_string()}>"
        return f"[{self.to_string()}]"

    def __str__(self) -> str:
        return self.to_wrapped_string()


def _delimiters_match(opening: str, closing: str) -> bool:
    return (opening, closing) in (("<", ">"), ("[", "]"))
