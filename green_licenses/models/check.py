"""Models for the events and results of a license check."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NonGreenLicense(BaseModel):
    """A package whose license is not green under the active rule set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    package_name: str = Field(description="Resolved package name")
    version: str = Field(description="Resolved package version")
    license_name: Optional[str] = Field(
        default=None, description="Declared license (None if not declared)"
    )
    parent_packages: list[str] = Field(
        default_factory=list,
        description="name@version chain from the root to the direct parent",
    )

    @property
    def package_and_version(self) -> str:
        return f"{self.package_name}@{self.version}"

    def get_path_display(self) -> str:
        """Get formatted chain like ``a@1.0.0 -> b@2.0.0 -> c@3.0.0``."""
        return " -> ".join([*self.parent_packages, self.package_and_version])


class CheckError(BaseModel):
    """A failure while fetching or validating one dependency."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    error: Exception = Field(description="The underlying failure")
    package_name: str = Field(description="Requested package name")
    version_spec: str = Field(description="Requested (unresolved) version spec")
    parent_packages: list[str] = Field(
        default_factory=list,
        description="name@version chain at the point of failure",
    )

    @property
    def package_and_spec(self) -> str:
        return f"{self.package_name}@{self.version_spec}"

    def get_path_display(self) -> str:
        """Get formatted chain ending with the requested ``name@spec``."""
        return " -> ".join([*self.parent_packages, self.package_and_spec])


class CheckResult(BaseModel):
    """Everything reported by one check run."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    findings: list[NonGreenLicense] = Field(default_factory=list)
    errors: list[CheckError] = Field(default_factory=list)
    manifest_files: list[str] = Field(
        default_factory=list,
        description="package.json files checked (local and PR checks only)",
    )

    @property
    def has_issues(self) -> bool:
        """True if any non-green license or error was reported."""
        return len(self.findings) > 0 or len(self.errors) > 0
