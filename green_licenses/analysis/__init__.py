"""License classification logic for green-licenses."""
from green_licenses.analysis.licenses import (
    DEFAULT_GREEN_LICENSES,
    UNLICENSED,
    build_rule_set,
    correct_license_name,
    is_green_license,
    satisfies,
)

__all__ = [
    "DEFAULT_GREEN_LICENSES",
    "UNLICENSED",
    "build_rule_set",
    "correct_license_name",
    "is_green_license",
    "satisfies",
]
