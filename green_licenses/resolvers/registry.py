"""npm registry manifest fetcher and package specifier parsing."""
from __future__ import annotations

import re
from typing import Any, NamedTuple, Optional
from urllib.parse import quote

import httpx

from green_licenses.exceptions import (
    InvalidSpecError,
    NetworkError,
    PackageNotFoundError,
)
from green_licenses.resolvers.base import ManifestFetcher
from green_licenses.semver import (
    clean_version,
    is_valid_range,
    is_valid_version,
    max_satisfying,
    satisfies,
)

NPM_REGISTRY_URL = "https://registry.npmjs.org"

# Specifier types that can be resolved against the registry
REGISTRY_SPEC_TYPES = ("tag", "version", "range")

_PACKAGE_NAME = re.compile(
    r"^(?:@[a-z0-9-*~][a-z0-9-*._~]*/)?[a-z0-9-~][a-z0-9-._~]*$", re.IGNORECASE
)
_TAG_NAME = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")
_GIT_HOSTS = ("github:", "gitlab:", "bitbucket:", "gist:")
_GITHUB_SHORTCUT = re.compile(r"^[^@/\s]+/[^@/\s]+(?:#.*)?$")
_PATH_PREFIXES = ("./", "../", "/", "~/", ".\\", "..\\")
_TARBALL = re.compile(r"\.(?:tgz|tar\.gz|tar)$")
_LOCATION_PREFIXES = (
    "git+",
    "git://",
    "http://",
    "https://",
    "file:",
    *_GIT_HOSTS,
    *_PATH_PREFIXES,
)


class PackageSpec(NamedTuple):
    """A parsed ``name@spec`` package argument.

    Attributes:
        raw: The argument as given.
        name: Package name (None for bare paths and URLs).
        fetch_spec: What to fetch: version, range, tag, path or URL.
        type: One of tag, version, range, file, directory, git, remote, alias.
    """

    raw: str
    name: Optional[str]
    fetch_spec: Optional[str]
    type: str


def _classify_location(spec: str) -> Optional[str]:
    """Classify specs that point somewhere other than the registry."""
    if spec.startswith("npm:"):
        return "alias"
    if spec.startswith(("git+", "git://", *_GIT_HOSTS)):
        return "git"
    if spec.startswith(("http://", "https://")):
        return "git" if spec.endswith(".git") else "remote"
    if spec.startswith("file:") or spec.startswith(_PATH_PREFIXES):
        return "file" if _TARBALL.search(spec) else "directory"
    if _TARBALL.search(spec):
        return "file"
    if _GITHUB_SHORTCUT.match(spec):
        return "git"
    return None


def parse_package_spec(arg: str) -> PackageSpec:
    """Parse a package argument such as ``foo``, ``foo@^1.2.3`` or ``@s/foo@next``.

    Args:
        arg: Package argument.

    Returns:
        PackageSpec. A missing version means the ``latest`` tag.

    Raises:
        InvalidSpecError: If the package name or tag name is invalid.
    """
    raw = arg
    arg = arg.strip()

    # URLs and paths may contain "@" (git+ssh://git@host/...), classify first
    if arg.startswith(_LOCATION_PREFIXES):
        location_type = _classify_location(arg) or "directory"
        return PackageSpec(raw=raw, name=None, fetch_spec=arg, type=location_type)

    separator = arg.find("@", 1) if arg.startswith("@") else arg.find("@")
    if separator == -1:
        location_type = _classify_location(arg)
        if location_type is not None:
            return PackageSpec(raw=raw, name=None, fetch_spec=arg, type=location_type)
        name, spec = arg, ""
    else:
        name, spec = arg[:separator], arg[separator + 1 :].strip()

    if not _PACKAGE_NAME.match(name):
        raise InvalidSpecError(f"Invalid package name: {name!r} in {raw!r}")

    location_type = _classify_location(spec) if spec else None
    if location_type is not None:
        return PackageSpec(raw=raw, name=name, fetch_spec=spec, type=location_type)
    if not spec:
        return PackageSpec(raw=raw, name=name, fetch_spec="latest", type="tag")
    if is_valid_version(spec):
        return PackageSpec(
            raw=raw, name=name, fetch_spec=clean_version(spec), type="version"
        )
    if is_valid_range(spec):
        return PackageSpec(raw=raw, name=name, fetch_spec=spec, type="range")
    if _TAG_NAME.match(spec):
        return PackageSpec(raw=raw, name=name, fetch_spec=spec, type="tag")
    raise InvalidSpecError(f"Invalid tag name: {spec!r} in {raw!r}")


def pick_version(packument: dict[str, Any], version_spec: str) -> Optional[str]:
    """Pick the version of a package that a specifier refers to.

    Resolution order: dist-tag (only if it names a published version),
    exact version, then the highest version satisfying the range. For ranges the ``latest`` tag wins if it
    satisfies the range, as npm does.

    Args:
        packument: Full registry document of the package.
        version_spec: Dist-tag, version or range.

    Returns:
        Version string present in the document, or None.
    """
    dist_tags: dict[str, str] = packument.get("dist-tags") or {}
    versions: dict[str, Any] = packument.get("versions") or {}
    spec = version_spec.strip()

    if spec in dist_tags:
        tagged = dist_tags[spec]
        return tagged if tagged in versions else None
    if is_valid_version(spec):
        exact = clean_version(spec)
        if exact in versions:
            return exact
    if not is_valid_range(spec):
        return None
    latest = dist_tags.get("latest")
    if latest in versions and satisfies(latest, spec):
        return latest
    return max_satisfying(versions.keys(), spec)


class NpmRegistryFetcher(ManifestFetcher):
    """Fetcher that reads full package metadata from the npm registry."""

    def __init__(
        self,
        registry_url: str = NPM_REGISTRY_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize with optional registry URL and HTTP client.

        Args:
            registry_url: Base URL of the registry.
            client: Optional shared httpx.AsyncClient for connection reuse.
        """
        self._registry_url = registry_url.rstrip("/")
        self._client = client

    def package_url(self, package_name: str) -> str:
        """Get the registry URL of a package (scoped names are escaped)."""
        return f"{self._registry_url}/{quote(package_name, safe='@')}"

    async def fetch_packument(self, package_name: str) -> dict[str, Any]:
        """Fetch the full registry document of a package.

        Raises:
            PackageNotFoundError: If the registry does not know the package.
            NetworkError: If the request fails or the response is unusable.
        """
        url = self.package_url(package_name)

        async def do_fetch(c: httpx.AsyncClient) -> dict[str, Any]:
            try:
                response = await c.get(
                    url,
                    headers={"Accept": "application/json"},
                    timeout=httpx.Timeout(30.0),
                )
            except httpx.RequestError as e:
                raise NetworkError(f"Failed to fetch {package_name}: {e}") from e
            if response.status_code == 404:
                raise PackageNotFoundError(f"Package {package_name} not found")
            try:
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                raise NetworkError(
                    f"Failed to fetch {package_name}: HTTP {response.status_code}"
                ) from e
            except ValueError as e:
                raise NetworkError(
                    f"Failed to fetch {package_name}: invalid JSON response"
                ) from e
            if not isinstance(data, dict):
                raise NetworkError(f"Failed to fetch {package_name}: unexpected response")
            return data

        if self._client:
            return await do_fetch(self._client)

        async with httpx.AsyncClient() as new_client:
            return await do_fetch(new_client)

    async def fetch_manifest(self, package_name: str, version_spec: str) -> Any:
        """Fetch the package.json of the version a specifier resolves to.

        Args:
            package_name: The package name to fetch.
            version_spec: Dist-tag, version or range.

        Returns:
            The full manifest of the resolved version.

        Raises:
            PackageNotFoundError: If the package or a matching version does
                not exist.
            NetworkError: If the network request fails.
        """
        packument = await self.fetch_packument(package_name)
        version = pick_version(packument, version_spec)
        if version is None:
            raise PackageNotFoundError(
                f"No matching version found for {package_name}@{version_spec}"
            )
        return packument["versions"][version]
