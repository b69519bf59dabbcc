"""Output formatters for green-licenses."""

from green_licenses.output.json_report import JsonFormatter
from green_licenses.output.terminal import TerminalReporter

__all__ = [
    "JsonFormatter",
    "TerminalReporter",
]
