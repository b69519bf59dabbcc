"""Configuration file discovery and loading for green-licenses."""
from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml
from pydantic import ValidationError

from green_licenses.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from green_licenses.exceptions import ConfigurationError
from green_licenses.logging import get_logger
from green_licenses.models.config import CheckerConfig

if TYPE_CHECKING:
    from green_licenses.resolvers.github import GitHubRepository

log = get_logger("green_licenses.config")


def strip_json_comments(content: str) -> str:
    """Remove ``//`` and ``/* */`` comments from JSON text.

    Comment characters inside string literals are preserved. Comments are
    replaced with whitespace so that line numbers in parse errors still
    point at the right place.

    Args:
        content: JSON text, possibly with comments.

    Returns:
        JSON text without comments.
    """
    result: list[str] = []
    i = 0
    length = len(content)
    in_string = False
    while i < length:
        char = content[i]
        if in_string:
            result.append(char)
            if char == "\\" and i + 1 < length:
                result.append(content[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            result.append(char)
            i += 1
        elif content.startswith("//", i):
            end = content.find("\n", i)
            end = length if end == -1 else end
            result.append(" " * (end - i))
            i = end
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            end = length if end == -1 else end + 2
            result.append("".join(c if c == "\n" else " " for c in content[i:end]))
            i = end
        else:
            result.append(char)
            i += 1
    return "".join(result)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file in the specified directory.

    Searches for ``js-green-licenses.json`` first, then
    ``.green-licenses.yaml`` and ``.green-licenses.yml``.

    Args:
        start_dir: Directory to search. Defaults to current working directory.

    Returns:
        Path to the configuration file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        config_path = search_dir / name
        if config_path.is_file():
            return config_path
    return None


def parse_config_content(content: str, source: str) -> CheckerConfig:
    """Parse and validate configuration text.

    Args:
        content: Raw file content.
        source: File name or path; ``.json`` files are parsed as JSON with
            comments, everything else as YAML.

    Returns:
        Validated CheckerConfig instance.

    Raises:
        ConfigurationError: If the content has invalid syntax or fails
            Pydantic validation.
    """
    # Handle empty files - return default config
    if not content.strip():
        return get_default_config()

    data: Any
    if source.endswith(".json"):
        try:
            data = json.loads(strip_json_comments(content))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON syntax in '{source}': {e}") from e
    else:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in '{source}': {e}") from e

    # Handle YAML that parses to None (empty or just comments)
    if data is None:
        return get_default_config()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{source}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )

    try:
        return CheckerConfig.model_validate(data)
    except ValidationError as e:
        error_messages = _format_validation_errors(e)
        raise ConfigurationError(
            f"Invalid configuration in '{source}': {error_messages}"
        ) from e


def _format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        msg = err["msg"]
        messages.append(f"{loc}: {msg}")
    return "; ".join(messages)


def load_config_file(path: Path) -> CheckerConfig:
    """Load and validate configuration from a file.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated CheckerConfig instance.

    Raises:
        ConfigurationError: If file cannot be read or its content is invalid.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file '{path}': {e}"
        ) from e
    return parse_config_content(content, str(path))


def get_local_config(directory: Path | str) -> Optional[CheckerConfig]:
    """Get the configuration stored in a local directory.

    A missing file is not an error. An invalid file is logged and ignored,
    so the check falls back to the defaults.

    Args:
        directory: Directory that may contain a configuration file.

    Returns:
        CheckerConfig, or None if there is no usable configuration file.
    """
    config_path = find_config_file(Path(directory))
    if config_path is None:
        return None
    try:
        return load_config_file(config_path)
    except ConfigurationError as e:
        log.error("error while reading config file", path=str(config_path), error=str(e))
        return None


async def get_github_config(
    repo: GitHubRepository, commit_sha: str
) -> Optional[CheckerConfig]:
    """Get the configuration stored at the root of a GitHub repository.

    Args:
        repo: Repository to read from.
        commit_sha: Commit to read the file at.

    Returns:
        CheckerConfig, or None if there is no usable configuration file.
    """
    for name in DEFAULT_CONFIG_NAMES:
        content = await repo.get_file_content(commit_sha, name)
        if not content:
            continue
        try:
            return parse_config_content(content, name)
        except ConfigurationError as e:
            log.error("error while reading config file", path=name, error=str(e))
            return None
    return None
