"""Base manifest fetcher interface."""

from abc import ABC, abstractmethod
from typing import Any


class ManifestFetcher(ABC):
    """Abstract base class for package.json sources.

    Fetchers return the raw manifest content. Validation is left to the
    caller.
    """

    @abstractmethod
    async def fetch_manifest(self, package_name: str, version_spec: str) -> Any:
        """Fetch the package.json of a package.

        Args:
            package_name: The package name to fetch.
            version_spec: Version, range, dist-tag or path specifier.

        Returns:
            Decoded package.json content.

        Raises:
            PackageNotFoundError: If no matching package exists.
            NetworkError: If a network request fails.
        """
