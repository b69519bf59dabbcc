"""Constants for green-licenses."""

# Exit codes
EXIT_SUCCESS = 0  # All green
EXIT_ISSUES = 1  # Non-green licenses or per-package errors found
EXIT_ERROR = 2  # Check could not run

# Name of the manifest file looked up in every package directory
PACKAGE_JSON = "package.json"

# Monorepo sub-packages live one level below this directory
MONOREPO_PACKAGES_DIR = "packages"

# Version used for allow-listed packages whose manifest has no usable version
SENTINEL_VERSION = "0.0.0"

# Pseudo-license synthesized for private packages without a license field
PRIVATE_LICENSE = "private"

# Placeholders for a checked package.json that cannot be read or validated
UNKNOWN_PACKAGE = "(unknown package)"
UNKNOWN_VERSION = "(unknown version)"
