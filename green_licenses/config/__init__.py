"""Configuration handling for green-licenses."""
from __future__ import annotations

from green_licenses.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from green_licenses.config.loader import (
    find_config_file,
    get_github_config,
    get_local_config,
    load_config_file,
    parse_config_content,
    strip_json_comments,
)
from green_licenses.models.config import CheckerConfig

__all__ = [
    "CheckerConfig",
    "DEFAULT_CONFIG_NAMES",
    "find_config_file",
    "get_default_config",
    "get_github_config",
    "get_local_config",
    "load_config_file",
    "parse_config_content",
    "strip_json_comments",
]
