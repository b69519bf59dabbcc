"""Manifest sources: npm registry, local checkouts and GitHub snapshots."""

from green_licenses.resolvers.base import ManifestFetcher
from green_licenses.resolvers.github import (
    GitHubRepository,
    PackageJsonFile,
    PRCommits,
)
from green_licenses.resolvers.local import (
    LocalFileFetcher,
    find_local_manifest_files,
    is_file_spec,
    read_manifest_file,
    resolve_file_spec,
)
from green_licenses.resolvers.registry import (
    NpmRegistryFetcher,
    PackageSpec,
    parse_package_spec,
    pick_version,
)

__all__ = [
    "GitHubRepository",
    "LocalFileFetcher",
    "ManifestFetcher",
    "NpmRegistryFetcher",
    "PRCommits",
    "PackageJsonFile",
    "PackageSpec",
    "find_local_manifest_files",
    "is_file_spec",
    "parse_package_spec",
    "pick_version",
    "read_manifest_file",
    "resolve_file_spec",
]
