"""Custom exceptions for green-licenses."""


class GreenLicensesError(Exception):
    """Base exception for all green-licenses errors."""

    pass


class ConfigurationError(GreenLicensesError):
    """Exception raised when configuration is invalid."""

    pass


class InvalidManifestError(GreenLicensesError):
    """Exception raised when a package.json does not have the expected shape."""

    pass


class FetchError(GreenLicensesError):
    """Base exception for failures while fetching package metadata."""

    pass


class NetworkError(FetchError):
    """Exception raised when a network request fails."""

    pass


class PackageNotFoundError(FetchError):
    """Exception raised when a package or a matching version does not exist."""

    pass


class PackageSpecError(GreenLicensesError):
    """Base exception for package specifiers that cannot be checked."""

    pass


class UnsupportedSpecError(PackageSpecError):
    """Exception raised for specifier types other than tag, version or range."""

    pass


class InvalidSpecError(PackageSpecError):
    """Exception raised when a specifier lacks a name or a fetch spec."""

    pass


class GitHubError(GreenLicensesError):
    """Base exception for GitHub API failures."""

    pass


class MergeabilityUnknownError(GitHubError):
    """Exception raised when GitHub never settles the PR mergeable field."""

    pass


class PRNotMergeableError(GitHubError):
    """Exception raised when the pull request cannot be merged."""

    pass


class MissingCommitShaError(GitHubError):
    """Exception raised when a PR response lacks a merge or HEAD commit SHA."""

    pass


class ContentNotFoundError(GitHubError):
    """Exception raised when a file response carries no content."""

    pass
