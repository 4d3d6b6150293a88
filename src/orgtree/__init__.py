"""orgtree - Parse and edit org-mode outlines.

This package turns org text into a tree of headlines with typed content
(planning lines, property drawers, timestamps, tags, todo state) and edits
headlines in place while keeping the tree and the text buffer consistent.

Key features:
- Line classification into planning, property drawer and generic content
- Headline tree with tag inheritance, properties and dates
- In-place mutations: properties, SCHEDULED/DEADLINE/CLOSED, promote/demote

Example:
    >>> from orgtree import OrgDocument
    >>> doc = OrgDocument.from_text("* TODO [#A] Write paper :work:\\n")
    >>> doc.root.headlines[0].title
    'Write paper'
"""

from orgtree.models.config import OrgSettings
from orgtree.models.date import OrgDate
from orgtree.parser.content import Content, ContentKind, classify_line, match_headline
from orgtree.parser.document import OrgDocument
from orgtree.parser.headline import Headline, PropertiesResult
from orgtree.services.buffer import MemoryBuffer, TextBuffer

__version__ = "0.1.0"

__all__ = [
    "OrgDocument",
    "Headline",
    "PropertiesResult",
    "Content",
    "ContentKind",
    "classify_line",
    "match_headline",
    "OrgDate",
    "OrgSettings",
    "MemoryBuffer",
    "TextBuffer",
]
