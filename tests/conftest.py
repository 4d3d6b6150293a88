"""Shared test fixtures for all test modules."""

from textwrap import dedent

import pytest

from orgtree.models.config import OrgSettings
from orgtree.parser.document import OrgDocument

ENV_VARS = [
    "ORGTREE_TODO_KEYWORDS",
    "ORGTREE_INDENT_MODE",
    "ORGTREE_PRIORITY_HIGHEST",
    "ORGTREE_PRIORITY_DEFAULT",
    "ORGTREE_PRIORITY_LOWEST",
    "ORGTREE_LOG_FILE",
    "ORGTREE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's ORGTREE_* variables out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    return OrgSettings()


@pytest.fixture
def parse(settings):
    """Parse a dedented org snippet into an OrgDocument."""

    def _parse(text: str, settings_override: OrgSettings | None = None, **kwargs) -> OrgDocument:
        return OrgDocument.from_text(dedent(text), settings_override or settings, **kwargs)

    return _parse
