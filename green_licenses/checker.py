"""Dependency-graph license checker.

The checker walks the dependency tree of a package, one manifest at a time,
and reports every package whose license is not green. Three starting points
are supported: a published npm package, a local checkout (monorepos with a
``packages/`` directory included) and the merge commit of a GitHub pull
request.

Results are delivered both incrementally, through listener objects, and as
a ``CheckResult`` returned by each entry point.
"""
from __future__ import annotations

import json
import re
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, NamedTuple, Optional

import httpx

from green_licenses.analysis.licenses import build_rule_set, is_green_license
from green_licenses.config.loader import get_github_config, get_local_config
from green_licenses.constants import UNKNOWN_PACKAGE, UNKNOWN_VERSION
from green_licenses.exceptions import (
    FetchError,
    GreenLicensesError,
    InvalidManifestError,
    InvalidSpecError,
    UnsupportedSpecError,
)
from green_licenses.logging import get_logger
from green_licenses.models.check import CheckError, CheckResult, NonGreenLicense
from green_licenses.models.config import CheckerConfig
from green_licenses.models.manifest import (
    Manifest,
    license_of,
    parse_manifest,
)
from green_licenses.models.rules import RuleSet
from green_licenses.resolvers.base import ManifestFetcher
from green_licenses.resolvers.github import GitHubRepository
from green_licenses.resolvers.local import (
    LocalFileFetcher,
    find_local_manifest_files,
    is_file_spec,
    read_manifest_file,
)
from green_licenses.resolvers.registry import (
    REGISTRY_SPEC_TYPES,
    NpmRegistryFetcher,
    parse_package_spec,
)
from green_licenses.semver import is_valid_version, satisfies

log = get_logger("green_licenses.checker")

_PR_PATH = re.compile(
    r"^(?:https?://github\.com/)?([^/\s]+)/([^/\s]+)/pull/(\d+)/?$"
)

Parents = tuple[str, ...]


class RootManifest(NamedTuple):
    """A checked package.json of a local or PR run, or why it is unusable."""

    file_path: str
    raw: Any
    error: Optional[GreenLicensesError]
    local_dir: Optional[Path]


def _read_local_root(path: Path) -> RootManifest:
    try:
        raw = read_manifest_file(path)
    except (FetchError, InvalidManifestError) as e:
        return RootManifest(str(path), None, e, path.parent)
    return RootManifest(str(path), raw, None, path.parent)


def _decode_root(file_path: str, content: str) -> RootManifest:
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        error = InvalidManifestError(f"Invalid JSON in {file_path}: {e}")
        return RootManifest(file_path, None, error, None)
    return RootManifest(file_path, raw, None, None)


class CheckListener:
    """Receiver of check events. Override the methods you need."""

    def on_non_green_license(self, finding: NonGreenLicense) -> None:
        """Called when a package with a non-green license is found."""

    def on_package_json(self, file_path: str) -> None:
        """Called before a local or PR package.json is checked."""

    def on_error(self, error: CheckError) -> None:
        """Called when a dependency cannot be fetched or validated."""

    def on_end(self) -> None:
        """Called once when a check run completes."""


class LicenseChecker:
    """Walks dependency graphs and classifies every package license.

    One instance may run several checks one after another; the traversal
    state is reset at the start of each entry point. Running checks
    concurrently on one instance is not supported.
    """

    def __init__(
        self,
        dev: bool = False,
        verbose: bool = False,
        registry: Optional[ManifestFetcher] = None,
        listeners: Iterable[CheckListener] = (),
    ) -> None:
        """Initialize the checker.

        Args:
            dev: Also check devDependencies.
            verbose: Log license name corrections and skipped packages.
            registry: Manifest source for registry dependencies. Defaults to
                the public npm registry, with one HTTP client per run.
            listeners: Receivers of check events.
        """
        self.dev = dev
        self.verbose = verbose
        self._registry = registry
        self._listeners: list[CheckListener] = list(listeners)

        self._fetcher: Optional[ManifestFetcher] = registry
        self._rule_set: RuleSet = build_rule_set(None)
        self._result = CheckResult()
        self._processed: set[str] = set()
        self._failed: set[str] = set()
        self._resolved_specs: dict[str, str] = {}
        self._local_packages: dict[str, set[str]] = {}

    def add_listener(self, listener: CheckListener) -> None:
        self._listeners.append(listener)

    # Events

    def _emit_non_green_license(self, finding: NonGreenLicense) -> None:
        self._result.findings.append(finding)
        for listener in self._listeners:
            listener.on_non_green_license(finding)

    def _emit_package_json(self, file_path: str) -> None:
        self._result.manifest_files.append(file_path)
        for listener in self._listeners:
            listener.on_package_json(file_path)

    def _emit_error(self, error: CheckError) -> None:
        self._result.errors.append(error)
        for listener in self._listeners:
            listener.on_error(error)

    def _emit_end(self) -> None:
        for listener in self._listeners:
            listener.on_end()

    # Run state

    @asynccontextmanager
    async def _run(self, config: Optional[CheckerConfig]) -> AsyncIterator[CheckResult]:
        """Reset the traversal state for a new run and emit ``end`` after it."""
        self._rule_set = build_rule_set(config, verbose=self.verbose)
        self._result = CheckResult()
        self._processed = set()
        self._failed = set()
        self._resolved_specs = {}
        self._local_packages = {}

        if self._registry is not None:
            self._fetcher = self._registry
            yield self._result
        else:
            # Use shared HTTP client for connection reuse
            async with httpx.AsyncClient() as client:
                self._fetcher = NpmRegistryFetcher(client=client)
                yield self._result
            self._fetcher = None
        self._emit_end()

    def _register_local_package(self, raw: Any) -> None:
        if not isinstance(raw, Mapping):
            return
        name, version = raw.get("name"), raw.get("version")
        if isinstance(name, str) and isinstance(version, str):
            self._local_packages.setdefault(name, set()).add(version)

    def _is_local_package(self, name: str, version_spec: str) -> bool:
        """Check whether a dependency is one of the packages being checked."""
        local_versions = self._local_packages.get(name)
        if not local_versions:
            return False
        version = version_spec[1:] if version_spec[:1] in ("^", "~") else version_spec
        if version in local_versions:
            return True
        return any(
            is_valid_version(local) and satisfies(local, version_spec)
            for local in local_versions
        )

    # Entry points

    async def check_remote_package(self, pkg: str) -> CheckResult:
        """Check a package published on the registry.

        Args:
            pkg: Package argument such as ``foo``, ``foo@1.2.3`` or
                ``@scope/foo@^2``. Configuration is read from the current
                working directory.

        Returns:
            CheckResult of the run.

        Raises:
            UnsupportedSpecError: For git, path, URL or alias arguments.
            InvalidSpecError: If the argument has no name or version spec.
        """
        spec = parse_package_spec(pkg)
        if spec.type not in REGISTRY_SPEC_TYPES:
            raise UnsupportedSpecError(
                f"Unsupported package spec type {spec.type!r} in {pkg!r}; "
                "only registry tags, versions and ranges can be checked"
            )
        if not spec.name or not spec.fetch_spec:
            raise InvalidSpecError(f"Invalid package spec: {pkg!r}")

        config = get_local_config(Path.cwd())
        async with self._run(config) as result:
            await self._check_licenses(spec.name, spec.fetch_spec, None, ())
        return result

    async def check_local_directory(self, directory: Path | str) -> CheckResult:
        """Check a local checkout, including ``packages/*`` sub-packages.

        Dependencies between the checked packages are not fetched, and
        ``file:`` dependencies are read from disk. A package.json that
        cannot be read or validated is reported as an error and the other
        files are still checked.

        Args:
            directory: Root of the checkout.

        Returns:
            CheckResult of the run.
        """
        root = Path(directory)
        config = get_local_config(root)
        async with self._run(config) as result:
            await self._check_roots(
                [_read_local_root(path) for path in find_local_manifest_files(root)]
            )
        return result

    async def check_github_pr(
        self, repo: GitHubRepository, merge_commit_sha: str
    ) -> CheckResult:
        """Check the package.json files of a pull request's merge commit.

        Args:
            repo: Repository the pull request belongs to.
            merge_commit_sha: Test merge commit of the pull request.

        Returns:
            CheckResult of the run.
        """
        config = await get_github_config(repo, merge_commit_sha)
        async with self._run(config) as result:
            files = await repo.get_package_json_files(merge_commit_sha)
            await self._check_roots(
                [_decode_root(file.file_path, file.content) for file in files]
            )
        return result

    def pr_path_to_github_repo_and_id(
        self, path: str, token: Optional[str] = None
    ) -> tuple[GitHubRepository, int]:
        """Parse ``<owner>/<repo>/pull/<id>`` into a repository and PR number.

        A full ``https://github.com/...`` URL is accepted too.

        Raises:
            InvalidSpecError: If the path is not a pull request reference.
        """
        match = _PR_PATH.match(path.strip())
        if not match:
            raise InvalidSpecError(
                f"Invalid PR path {path!r}: expected <owner>/<repo>/pull/<id>"
            )
        owner, repo, pr_id = match.groups()
        return GitHubRepository(owner, repo, token=token), int(pr_id)

    # Traversal

    async def _fetch(
        self, name: str, version_spec: str, local_dir: Optional[Path]
    ) -> tuple[Any, Optional[Path]]:
        """Fetch a dependency's raw manifest and the directory it lives in."""
        if local_dir is not None and is_file_spec(version_spec):
            local = LocalFileFetcher(local_dir)
            raw = await local.fetch_manifest(name, version_spec)
            return raw, local.package_dir(version_spec)
        if self._fetcher is None:
            self._fetcher = NpmRegistryFetcher()
        return await self._fetcher.fetch_manifest(name, version_spec), None

    async def _check_licenses(
        self,
        name: str,
        version_spec: str,
        local_dir: Optional[Path],
        parents: Parents,
    ) -> None:
        """Fetch one dependency edge and check it and its dependencies."""
        spec = f"{name}@{version_spec}"
        if spec in self._failed:
            return
        if self._is_local_package(name, version_spec):
            log.debug("skipping local package", package=spec)
            return
        if self._resolved_specs.get(spec) in self._processed:
            return

        try:
            raw, package_dir = await self._fetch(name, version_spec, local_dir)
            manifest = self._load_manifest(raw, name)
        except (FetchError, InvalidManifestError) as e:
            self._failed.add(spec)
            self._emit_error(
                CheckError(
                    error=e,
                    package_name=name,
                    version_spec=version_spec,
                    parent_packages=list(parents),
                )
            )
            return

        self._resolved_specs[spec] = manifest.package_and_version
        await self._check_manifest(manifest, package_dir, parents)

    async def _check_licenses_for_deps(
        self,
        deps: Mapping[str, str],
        local_dir: Optional[Path],
        parents: Parents,
    ) -> None:
        for name, version_spec in deps.items():
            await self._check_licenses(name, version_spec, local_dir, parents)

    async def _check_roots(self, roots: list[RootManifest]) -> None:
        """Check the package.json files of a local or PR run, in order.

        Every readable manifest is registered as local before any of them is
        classified, so dependencies between them are not fetched.
        """
        for root in roots:
            if root.error is None:
                self._register_local_package(root.raw)
        for root in roots:
            self._emit_package_json(root.file_path)
            if root.error is not None:
                self._emit_root_error(root.error, root.raw)
                continue
            try:
                await self._check_package_json(root.raw, None, root.local_dir, ())
            except InvalidManifestError as e:
                self._emit_root_error(e, root.raw)

    def _emit_root_error(self, error: GreenLicensesError, raw: Any) -> None:
        declared = raw if isinstance(raw, Mapping) else {}
        name, version = declared.get("name"), declared.get("version")
        self._emit_error(
            CheckError(
                error=error,
                package_name=name if isinstance(name, str) and name else UNKNOWN_PACKAGE,
                version_spec=(
                    version if isinstance(version, str) and version else UNKNOWN_VERSION
                ),
                parent_packages=[],
            )
        )

    def _load_manifest(self, raw: Any, expected_name: Optional[str]) -> Manifest:
        """Validate a raw manifest, trusting allow-listed packages as they are.

        Raises:
            InvalidManifestError: If a non allow-listed manifest is invalid.
        """
        declared_name = raw.get("name") if isinstance(raw, Mapping) else None
        package_name = expected_name or declared_name
        if self._rule_set.is_package_allowlisted(package_name):
            manifest = Manifest.allowlisted(raw)
            if manifest.name is None and package_name:
                manifest = manifest.model_copy(update={"name": package_name})
        else:
            manifest = parse_manifest(raw)
        if expected_name and manifest.name != expected_name:
            log.warning(
                "package name mismatch",
                expected=expected_name,
                actual=manifest.name,
            )
        return manifest

    async def _check_package_json(
        self,
        raw: Any,
        expected_name: Optional[str],
        local_dir: Optional[Path],
        parents: Parents,
    ) -> None:
        """Check a raw package.json and everything it depends on.

        Raises:
            InvalidManifestError: If the manifest is invalid and the package
                is not allow-listed.
        """
        manifest = self._load_manifest(raw, expected_name)
        await self._check_manifest(manifest, local_dir, parents)

    async def _check_manifest(
        self,
        manifest: Manifest,
        local_dir: Optional[Path],
        parents: Parents,
    ) -> None:
        package_and_version = manifest.package_and_version
        if package_and_version in self._processed:
            return
        self._processed.add(package_and_version)

        if self._rule_set.is_package_allowlisted(manifest.name):
            log.info(
                "package is allow-listed, not checking its license",
                package=package_and_version,
            )
        else:
            license_name = license_of(manifest)
            if not is_green_license(license_name, self._rule_set, verbose=self.verbose):
                self._emit_non_green_license(
                    NonGreenLicense(
                        package_name=manifest.name or "",
                        version=manifest.version or "",
                        license_name=license_name,
                        parent_packages=list(parents),
                    )
                )

        child_parents = (*parents, package_and_version)
        await self._check_licenses_for_deps(
            manifest.dependencies, local_dir, child_parents
        )
        if self.dev:
            await self._check_licenses_for_deps(
                manifest.dev_dependencies, local_dir, child_parents
            )
