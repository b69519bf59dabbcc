"""Pydantic data models for green-licenses."""

from green_licenses.models.check import CheckError, CheckResult, NonGreenLicense
from green_licenses.models.config import CheckerConfig
from green_licenses.models.manifest import (
    LegacyLicense,
    Manifest,
    license_of,
    parse_manifest,
)
from green_licenses.models.rules import RuleSet

__all__ = [
    "CheckError",
    "CheckResult",
    "CheckerConfig",
    "LegacyLicense",
    "Manifest",
    "NonGreenLicense",
    "RuleSet",
    "license_of",
    "parse_manifest",
]
