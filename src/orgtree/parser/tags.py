"""Helpers for org ``:tag1:tag2:`` blocks."""

import re
from typing import Iterable, Optional

TAG_RE = re.compile(r"^[\w%@#]+$")


def parse_tags_string(tags: Optional[str]) -> list[str]:
    """Split a ``:a:b:`` run into tags, dropping empty or malformed segments.

    Examples:
        >>> parse_tags_string(":work:urgent:")
        ['work', 'urgent']
        >>> parse_tags_string(":30 :work:")
        ['work']
    """
    return [tag for tag in (tags or "").split(":") if TAG_RE.match(tag)]


def tags_to_string(tags: Iterable[str]) -> str:
    tags = list(tags)
    if not tags:
        return ""
    return ":" + ":".join(tags) + ":"
