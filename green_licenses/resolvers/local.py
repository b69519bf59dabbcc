"""Local filesystem manifest sources.

Covers the two ways a check touches the local disk: walking a checked-out
directory (including ``packages/*`` monorepo layouts) and following
``file:`` dependencies to sibling packages.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from green_licenses.constants import MONOREPO_PACKAGES_DIR, PACKAGE_JSON
from green_licenses.exceptions import InvalidManifestError, PackageNotFoundError
from green_licenses.resolvers.base import ManifestFetcher

_FILE_PREFIX = "file:"
_RELATIVE_PREFIXES = ("./", "../", "~/", "/")


def find_local_manifest_files(directory: Path | str) -> list[Path]:
    """Find the package.json files of a local checkout.

    Args:
        directory: Root of the checkout.

    Returns:
        The top-level package.json (if present) followed by
        ``packages/<name>/package.json`` for every sub-package, sorted by
        directory name.
    """
    root = Path(directory)
    manifest_files: list[Path] = []

    top_level = root / PACKAGE_JSON
    if top_level.is_file():
        manifest_files.append(top_level)

    packages_dir = root / MONOREPO_PACKAGES_DIR
    if packages_dir.is_dir():
        for package_dir in sorted(packages_dir.iterdir(), key=lambda p: p.name):
            candidate = package_dir / PACKAGE_JSON
            if package_dir.is_dir() and candidate.is_file():
                manifest_files.append(candidate)

    return manifest_files


def read_manifest_file(path: Path | str) -> Any:
    """Read and decode a package.json file.

    Raises:
        PackageNotFoundError: If the file cannot be read.
        InvalidManifestError: If the file is not valid JSON.
    """
    manifest_path = Path(path)
    try:
        content = manifest_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PackageNotFoundError(f"Cannot read {manifest_path}: {e}") from e
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidManifestError(f"Invalid JSON in {manifest_path}: {e}") from e


def is_file_spec(version_spec: str) -> bool:
    """True if a dependency spec points at a path instead of the registry."""
    return version_spec.startswith(_FILE_PREFIX) or version_spec.startswith(
        _RELATIVE_PREFIXES
    )


def resolve_file_spec(version_spec: str, base_dir: Path | str) -> Path:
    """Resolve a ``file:`` or relative dependency spec to a directory.

    Args:
        version_spec: Spec such as ``file:../sibling`` or ``./vendor/lib``.
        base_dir: Directory of the package.json that declares the dependency.

    Returns:
        Absolute path of the dependency's directory.
    """
    target = version_spec
    if target.startswith(_FILE_PREFIX):
        target = target[len(_FILE_PREFIX) :]
    path = Path(target).expanduser()
    if not path.is_absolute():
        path = Path(base_dir) / path
    return path.resolve()


class LocalFileFetcher(ManifestFetcher):
    """Fetcher for dependencies linked with ``file:`` specs.

    Paths are resolved relative to ``base_dir``, the directory of the
    package.json that declares the dependency.
    """

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)

    def package_dir(self, version_spec: str) -> Path:
        """Get the directory a spec points at."""
        return resolve_file_spec(version_spec, self._base_dir)

    async def fetch_manifest(self, package_name: str, version_spec: str) -> Any:
        """Read the package.json of a path-linked dependency.

        Raises:
            PackageNotFoundError: If there is no readable package.json at the
                path (tarball paths are not supported).
            InvalidManifestError: If the package.json is not valid JSON.
        """
        package_dir = self.package_dir(version_spec)
        if not package_dir.is_dir():
            raise PackageNotFoundError(
                f"{package_name}@{version_spec}: {package_dir} is not a directory"
            )
        return read_manifest_file(package_dir / PACKAGE_JSON)
