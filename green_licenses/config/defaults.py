"""Default configuration values for green-licenses."""

from __future__ import annotations

from green_licenses.models.config import CheckerConfig

# Configuration file names to search for, in order of precedence
DEFAULT_CONFIG_NAMES = [
    "js-green-licenses.json",
    ".green-licenses.yaml",
    ".green-licenses.yml",
]


def get_default_config() -> CheckerConfig:
    """Get the default configuration.

    Returns:
        CheckerConfig with all defaults (all fields None).
    """
    return CheckerConfig()
