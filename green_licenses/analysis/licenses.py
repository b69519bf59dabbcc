"""License name correction and green-license classification.

Uses the license-expression library for SPDX parsing and validation. Free
form license strings found in package.json files ("Apache 2", "MIT License",
"GPLv3") are coerced into SPDX identifiers before they are compared against
the green license expression of the active rule set.
"""
from __future__ import annotations

import re
from functools import lru_cache
from itertools import product
from typing import Any, Optional

from license_expression import ExpressionError, get_spdx_licensing

from green_licenses.constants import PRIVATE_LICENSE
from green_licenses.logging import get_logger
from green_licenses.models.config import CheckerConfig
from green_licenses.models.rules import RuleSet

log = get_logger("green_licenses.licenses")

# Initialize SPDX licensing for parsing
_licensing = get_spdx_licensing()

# npm's marker for "no license granted"
UNLICENSED = "UNLICENSED"

# Valid license IDs defined in https://spdx.org/licenses/ must be used whenever
# possible. When adding new licenses, please consult the relevant documents.
DEFAULT_GREEN_LICENSES: list[str] = [
    "AFL-2.1",
    "AFL-3.0",
    "APSL-2.0",
    "Apache-1.1",
    "Apache-2.0",
    "Artistic-1.0",
    "Artistic-2.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "BSL-1.0",
    "CC-BY-1.0",
    "CC-BY-2.0",
    "CC-BY-2.5",
    "CC-BY-3.0",
    "CC-BY-4.0",
    "CC0-1.0",
    "CDDL-1.0",
    "CDDL-1.1",
    "CPL-1.0",
    "EPL-1.0",
    "FTL",
    "IPL-1.0",
    "ISC",
    "LGPL-2.0",
    "LGPL-2.1",
    "LGPL-3.0",
    "LPL-1.02",
    "MIT",
    "MPL-1.0",
    "MPL-1.1",
    "MPL-2.0",
    "MS-PL",
    "NCSA",
    "OpenSSL",
    "PHP-3.0",
    "Ruby",
    "Unlicense",
    "W3C",
    "Xnet",
    "ZPL-2.0",
    "Zend-2.0",
    "Zlib",
    "libtiff",
]

# Common non-SPDX spellings mapped to SPDX identifiers. Keys are lowercase
# with any "license"/"licence" word already removed.
LICENSE_ALIASES: dict[str, str] = {
    "apache": "Apache-2.0",
    "apache2": "Apache-2.0",
    "asl 2.0": "Apache-2.0",
    "asl2": "Apache-2.0",
    "artistic": "Artistic-2.0",
    "boost": "BSL-1.0",
    "bsd": "BSD-2-Clause",
    "bsd-2": "BSD-2-Clause",
    "simplified bsd": "BSD-2-Clause",
    "freebsd": "BSD-2-Clause",
    "bsd-3": "BSD-3-Clause",
    "new bsd": "BSD-3-Clause",
    "bsd new": "BSD-3-Clause",
    "modified bsd": "BSD-3-Clause",
    "revised bsd": "BSD-3-Clause",
    "3-clause bsd": "BSD-3-Clause",
    "2-clause bsd": "BSD-2-Clause",
    "cc0": "CC0-1.0",
    "eclipse public": "EPL-1.0",
    "expat": "MIT",
    "mit/x11": "MIT",
    "x11": "X11",
    "gpl": "GPL-3.0",
    "gnu gpl": "GPL-3.0",
    "lgpl": "LGPL-3.0",
    "gnu lgpl": "LGPL-3.0",
    "mpl": "MPL-2.0",
    "mozilla public": "MPL-2.0",
    "mozilla public 2.0": "MPL-2.0",
    "python": "Python-2.0",
    "the unlicense": "Unlicense",
    "zope": "ZPL-2.1",
}

_LICENSE_WORD = re.compile(r"\b(?:the\s+)?licen[cs]e\b", re.IGNORECASE)
_VERSION_WORD = re.compile(r"\s*,?\s*\bversion\b", re.IGNORECASE)
_FILLER_WORD = re.compile(r"\b(?:software|gnu)\b", re.IGNORECASE)
_TRAILING_ABBREVIATION = re.compile(r"^(.*\S)\s*\(([^()]+)\)$")
# "GPLv3", "Apache 2", "LGPL 2.1+", "MPL-v2" -> name, version, or-later marker
_NAME_VERSION = re.compile(r"^([A-Za-z][A-Za-z-]*?)[\s-]*v?(\d+(?:\.\d+)?)(\+)?$")
_OR_LATER = re.compile(r"^(.+)-(\d+(?:\.\d+)?)-or-later$")
_VERSIONED = re.compile(r"^(.+)-(\d+(?:\.\d+)?)(?:-only|-or-later)?$")


def _canonicalize(expression: str) -> Optional[str]:
    """Validate an SPDX expression and render it with canonical keys.

    Returns:
        Canonical rendering (e.g. "GPL-3.0" -> "GPL-3.0-only"), or None if
        the expression contains unknown license identifiers.
    """
    try:
        parsed = _licensing.parse(expression, validate=True)
    except ExpressionError:
        return None
    if parsed is None:
        return None
    return str(parsed.render("{symbol.key}"))


def _strip_outer_parens(text: str) -> str:
    """Remove one pair of parentheses that encloses the whole text."""
    if not (text.startswith("(") and text.endswith(")")):
        return text
    depth = 0
    for i, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        # "(MIT) OR (GPL-3.0)": the first group closes before the end
        if depth == 0 and i < len(text) - 1:
            return text
    return text[1:-1].strip()


def _squash(text: str) -> str:
    return " ".join(text.split()).strip(" ,-")


def _candidates(license_name: str) -> list[str]:
    """Generate spelling variants of a license name, best guesses first."""
    raw = license_name.strip().strip("\"'")
    stripped = _strip_outer_parens(raw)
    without_word = _squash(_LICENSE_WORD.sub(" ", stripped))
    # "Apache Software License, Version 2.0" -> "Apache 2.0"
    simplified = _squash(_FILLER_WORD.sub(" ", _VERSION_WORD.sub(" ", without_word)))

    candidates = [raw, stripped, without_word, stripped.replace(" ", "-"), simplified]
    for text in (stripped, without_word, simplified):
        match = _NAME_VERSION.match(text)
        if match:
            name, version, plus = match.groups()
            if "." not in version:
                version = f"{version}.0"
            candidates.append(f"{name.rstrip('-')}-{version}{plus or ''}")
        alias = LICENSE_ALIASES.get(text.lower())
        if alias:
            candidates.append(alias)
    return [c for c in dict.fromkeys(candidates) if c]


def _correct(license_name: str) -> Optional[str]:
    for candidate in _candidates(license_name):
        corrected = _canonicalize(candidate)
        if corrected is not None:
            return corrected

    # "MIT License (MIT)": accepted only when both parts agree
    abbreviated = _TRAILING_ABBREVIATION.match(license_name.strip())
    if abbreviated:
        long_form, short_form = (_correct(part) for part in abbreviated.groups())
        if long_form is not None and long_form == short_form:
            return long_form
    return None


def correct_license_name(license_name: str, verbose: bool = False) -> Optional[str]:
    """Coerce a free-form license string into an SPDX identifier.

    Args:
        license_name: License as declared in a package.json.
        verbose: Log corrections that change the string.

    Returns:
        Canonical SPDX identifier or expression, ``"UNLICENSED"`` for npm's
        no-license marker, or None if the string cannot be corrected.
    """
    if license_name.strip().upper() == UNLICENSED:
        return UNLICENSED

    corrected = _correct(license_name)

    if verbose and corrected and corrected != license_name:
        log.info("correcting license name", original=license_name, corrected=corrected)
    return corrected


@lru_cache(maxsize=32)
def _green_license_keys(green_license_expr: str) -> frozenset[str]:
    """Get the license keys that make up a green license disjunction."""
    if not green_license_expr:
        return frozenset()
    parsed = _licensing.parse(green_license_expr, validate=True)
    return frozenset(key for alt in _alternatives(parsed) for key in alt)


def _alternatives(node: Any) -> list[frozenset[str]]:
    """Expand a parsed expression into its OR-alternatives of AND-terms."""
    if isinstance(node, _licensing.OR):
        return [alt for child in node.args for alt in _alternatives(child)]
    if isinstance(node, _licensing.AND):
        expanded = [_alternatives(child) for child in node.args]
        return [frozenset().union(*combo) for combo in product(*expanded)]
    return [frozenset([str(node.render("{symbol.key}"))])]


def _version_tuple(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def _is_allowed(key: str, green_keys: frozenset[str]) -> bool:
    """Check one license key against the green keys.

    A ``-or-later`` key is also allowed when a green key of the same
    family has an equal or later version.
    """
    if key in green_keys:
        return True
    match = _OR_LATER.match(key)
    if not match:
        return False
    family, base = match.group(1), _version_tuple(match.group(2))
    for green in green_keys:
        green_match = _VERSIONED.match(green)
        if (
            green_match
            and green_match.group(1) == family
            and _version_tuple(green_match.group(2)) >= base
        ):
            return True
    return False


def satisfies(license_expr: str, green_license_expr: str) -> bool:
    """Check whether a license expression satisfies the green disjunction.

    The expression is satisfied when at least one of its OR-alternatives
    consists only of green licenses.

    Raises:
        ExpressionError: If either expression contains unknown identifiers.
    """
    green_keys = _green_license_keys(green_license_expr)
    if not green_keys:
        return False
    parsed = _licensing.parse(license_expr, validate=True)
    if parsed is None:
        return False
    return any(
        all(_is_allowed(key, green_keys) for key in alternative)
        for alternative in _alternatives(parsed)
    )


def is_green_license(
    license_name: Optional[str],
    rule_set: RuleSet,
    verbose: bool = False,
) -> bool:
    """Decide whether a declared license is green under a rule set.

    Args:
        license_name: Declared license string, or None when not declared.
        rule_set: Active classification rules.
        verbose: Log corrections and evaluation errors.

    Returns:
        True if the license is green.
    """
    if not license_name:
        return False
    if license_name == PRIVATE_LICENSE:
        return PRIVATE_LICENSE in rule_set.allowed_licenses

    corrected = correct_license_name(license_name, verbose=verbose)
    # Not a valid or correctable SPDX id. Check the raw allowlist.
    if corrected is None:
        return license_name in rule_set.allowed_licenses
    if corrected == UNLICENSED:
        return UNLICENSED in rule_set.allowed_licenses

    try:
        return satisfies(corrected, rule_set.green_license_expr)
    except ExpressionError as e:
        # Most likely because the license is not recognized.
        if verbose:
            log.info("license expression not recognized", license=corrected, error=str(e))
        return False


def build_rule_set(config: Optional[CheckerConfig], verbose: bool = False) -> RuleSet:
    """Build the rule set for one check run.

    Entries of the green license list that can be corrected to SPDX ids make
    up the green license expression; the others are allowed verbatim.

    Args:
        config: Configuration override, or None for defaults.
        verbose: Log license name corrections.

    Returns:
        Immutable RuleSet.
    """
    cfg = config or CheckerConfig()
    green_licenses = (
        cfg.green_licenses if cfg.green_licenses is not None else DEFAULT_GREEN_LICENSES
    )

    valid_green_licenses: list[str] = []
    allowed_licenses: list[str] = []
    for license_name in green_licenses:
        corrected = correct_license_name(license_name, verbose=verbose)
        if corrected is None:
            allowed_licenses.append(license_name)
        elif corrected == UNLICENSED:
            allowed_licenses.append(UNLICENSED)
        else:
            valid_green_licenses.append(corrected)

    green_license_expr = (
        f"({' OR '.join(valid_green_licenses)})" if valid_green_licenses else ""
    )
    return RuleSet(
        green_license_expr=green_license_expr,
        allowed_licenses=tuple(allowed_licenses),
        package_allowlist=tuple(cfg.package_allowlist or ()),
    )
