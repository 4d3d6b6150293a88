"""Settings loader with YAML and environment variable support.

Reads ~/.config/orgtree/config.yaml and lets ORGTREE_* variables override it.

Environment variables:
- ORGTREE_TODO_KEYWORDS: Space separated keywords, e.g. "TODO NEXT | DONE"
- ORGTREE_INDENT_MODE: "indent" or "noindent"
- ORGTREE_PRIORITY_HIGHEST: Highest priority character
- ORGTREE_PRIORITY_DEFAULT: Default priority character
- ORGTREE_PRIORITY_LOWEST: Lowest priority character
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml

from orgtree.models.config import OrgSettings

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "orgtree" / "config.yaml"


def load_settings(config_path: Optional[Path] = None) -> OrgSettings:
    """Load settings from YAML with environment variable overrides.

    A missing config file is not an error; defaults apply.

    Args:
        config_path: Path to config file. If None, uses ~/.config/orgtree/config.yaml

    Returns:
        Validated OrgSettings object

    Raises:
        ValueError: If the YAML is not a mapping
        pydantic.ValidationError: If a setting is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        with config_path.open() as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")
        logger.debug("settings_file_loaded", path=str(config_path))
    else:
        data = {}

    data = _apply_env_overrides(data)

    return OrgSettings(**data)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply ORGTREE_* environment overrides on top of file data."""
    if env_keywords := os.getenv("ORGTREE_TODO_KEYWORDS"):
        data["todo_keywords"] = env_keywords.split()

    if env_indent := os.getenv("ORGTREE_INDENT_MODE"):
        data["indent_mode"] = env_indent

    if env_highest := os.getenv("ORGTREE_PRIORITY_HIGHEST"):
        data["priority_highest"] = env_highest

    if env_default := os.getenv("ORGTREE_PRIORITY_DEFAULT"):
        data["priority_default"] = env_default

    if env_lowest := os.getenv("ORGTREE_PRIORITY_LOWEST"):
        data["priority_lowest"] = env_lowest

    return data
