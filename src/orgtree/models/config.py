"""Settings consumed by the org parser and headline mutations."""

from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

if TYPE_CHECKING:
    from orgtree.parser.headline import Headline

KEYWORD_SEPARATOR = "|"


class OrgSettings(BaseModel):
    """Read-only settings injected into the parser at construction.

    ``todo_keywords`` follows org's own notation: keywords before ``|`` are
    TODO-class, keywords after it are DONE-class. Without a separator only
    the last keyword counts as DONE-class.
    """

    todo_keywords: list[str] = Field(
        default_factory=lambda: ["TODO", KEYWORD_SEPARATOR, "DONE"],
        description="Ordered workflow keywords, optionally split by '|'",
    )

    indent_mode: Literal["indent", "noindent"] = Field(
        default="indent",
        description="Whether content is indented to the headline depth",
    )

    priority_highest: str = Field(default="A", min_length=1, max_length=1)
    priority_default: str = Field(default="B", min_length=1, max_length=1)
    priority_lowest: str = Field(default="C", min_length=1, max_length=1)

    tags_exclude_from_inheritance: list[str] = Field(
        default_factory=list,
        description="Tags that children never inherit",
    )

    model_config = {"frozen": True}

    @field_validator("todo_keywords")
    @classmethod
    def validate_todo_keywords(cls, v: list[str]) -> list[str]:
        """Require at least one real keyword, each a single word."""
        words = [word for word in v if word != KEYWORD_SEPARATOR]
        if not words:
            raise ValueError("todo_keywords must contain at least one keyword")
        if v.count(KEYWORD_SEPARATOR) > 1:
            raise ValueError("todo_keywords may contain at most one '|' separator")
        for word in words:
            if not word or any(ch.isspace() for ch in word):
                raise ValueError(f"Invalid todo keyword: {word!r}")
        if len(set(words)) != len(words):
            raise ValueError("todo_keywords must not repeat a keyword")
        return v

    @model_validator(mode="after")
    def validate_priorities(self) -> "OrgSettings":
        if self.priority_highest == self.priority_lowest:
            raise ValueError("priority_highest and priority_lowest must differ")
        return self

    @property
    def todo_keyword_sets(self) -> dict[str, list[str]]:
        """Keywords grouped as ``{"ALL", "TODO", "DONE"}``, in configured order."""
        if KEYWORD_SEPARATOR in self.todo_keywords:
            split = self.todo_keywords.index(KEYWORD_SEPARATOR)
            todo = list(self.todo_keywords[:split])
            done = list(self.todo_keywords[split + 1:])
        else:
            todo = list(self.todo_keywords[:-1])
            done = [self.todo_keywords[-1]]
        return {"ALL": todo + done, "TODO": todo, "DONE": done}

    def is_indent_mode(self) -> bool:
        return self.indent_mode == "indent"

    def get_inheritable_tags(self, headline: Optional["Headline"]) -> list[str]:
        """Tags a child of ``headline`` starts with (a copy, never shared)."""
        if headline is None or not headline.tags:
            return []
        excluded = set(self.tags_exclude_from_inheritance)
        return [tag for tag in headline.tags if tag not in excluded]
