"""License compliance checker for npm packages and their dependencies."""

__version__ = "0.1.0"
