"""Structured logging for green-licenses.

Configures structlog with two output modes:

- **Console** (default): human-readable output, colored when stderr is a TTY.
- **JSON** (``--json-log``): one JSON object per line.

Both modes write to stderr so that stdout only carries the report
(e.g. ``green-licenses --format json foo | jq``).

Usage::

    from green_licenses.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger("green_licenses.checker")
    log.info("package allow-listed", package="foo")
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

# Env var names whose runtime values must never appear in logs.
_SENSITIVE_ENV_VARS: tuple[str, ...] = (
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "NPM_TOKEN",
)

_REDACTED = "[REDACTED]"

# Populated by configure_logging(); used by the redaction processor.
_secret_values: frozenset[str] = frozenset()


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for green-licenses.

    Should be called once at startup, before any logging calls.

    Args:
        verbose: Enable debug-level output.
        quiet: Suppress info-level output (only warnings and errors).
        json_log: Use JSON output instead of console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    global _secret_values  # noqa: PLW0603
    _secret_values = _build_secret_values()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_sensitive_values,
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = "green_licenses") -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger.

    Args:
        name: Logger name, used for filtering and identification.

    Returns:
        A structlog BoundLogger instance.
    """
    return structlog.get_logger(name)


def _build_secret_values() -> frozenset[str]:
    """Collect the current non-empty values of sensitive env vars."""
    return frozenset(
        value
        for value in (os.environ.get(name, "") for name in _SENSITIVE_ENV_VARS)
        if value
    )


def _scrub(value: object) -> object:
    """Replace any secret substring in a string value with ``[REDACTED]``."""
    if not isinstance(value, str) or not _secret_values:
        return value
    result = value
    for secret in _secret_values:
        if len(secret) >= 8 and secret in result:
            result = result.replace(secret, _REDACTED)
    return result


def redact_sensitive_values(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that scrubs token values from every event field."""
    return {key: _scrub(value) for key, value in event_dict.items()}
