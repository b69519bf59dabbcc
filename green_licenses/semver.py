"""npm-flavoured semantic version helpers.

Thin wrappers over ``semantic_version`` (Version and NpmSpec) that accept the
loose forms found in package.json files (``v1.2.3``, ``=1.2.3``, empty
ranges) and never raise on invalid input.
"""
from __future__ import annotations

from typing import Iterable, Optional

from semantic_version import NpmSpec, Version


def clean_version(version: str) -> str:
    """Strip whitespace and a leading ``=`` or ``v`` from a version string."""
    cleaned = version.strip()
    if cleaned.startswith("="):
        cleaned = cleaned[1:].strip()
    if cleaned[:1] in ("v", "V"):
        cleaned = cleaned[1:]
    return cleaned


def parse_version(version: str) -> Optional[Version]:
    """Parse a loose version string, returning None if it is not semver."""
    try:
        return Version(clean_version(version))
    except ValueError:
        return None


def is_valid_version(version: str) -> bool:
    """True if ``version`` is a (loose) semantic version."""
    return parse_version(version) is not None


def parse_range(range_spec: str) -> Optional[NpmSpec]:
    """Parse an npm range, returning None if it is not a valid range.

    An empty range means "any version", as in npm.
    """
    expression = range_spec.strip() or "*"
    try:
        return NpmSpec(expression)
    except ValueError:
        return None


def is_valid_range(range_spec: str) -> bool:
    """True if ``range_spec`` is a valid npm range."""
    return parse_range(range_spec) is not None


def satisfies(version: str, range_spec: str) -> bool:
    """True if ``version`` falls inside the npm range ``range_spec``."""
    parsed_version = parse_version(version)
    parsed_range = parse_range(range_spec)
    if parsed_version is None or parsed_range is None:
        return False
    return parsed_range.match(parsed_version)


def max_satisfying(versions: Iterable[str], range_spec: str) -> Optional[str]:
    """Get the highest version in ``versions`` that satisfies the range.

    Args:
        versions: Candidate version strings (invalid ones are ignored).
        range_spec: npm range expression.

    Returns:
        The matching version string exactly as given, or None.
    """
    parsed_range = parse_range(range_spec)
    if parsed_range is None:
        return None
    by_version: dict[Version, str] = {}
    for raw in versions:
        parsed = parse_version(raw)
        if parsed is not None:
            by_version[parsed] = raw
    best = parsed_range.select(by_version.keys())
    return by_version[best] if best is not None else None
