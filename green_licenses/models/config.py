"""Configuration Pydantic models for green-licenses."""
from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CheckerConfig(BaseModel):
    """Contents of a ``js-green-licenses.json`` configuration file.

    Both fields are optional; a missing field means "use the default".
    Keys use the camelCase spelling of the file format. Unknown keys
    (``$schema``, notes) are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    green_licenses: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("greenLicenses", "green_licenses"),
        description="Licenses considered green. Replaces the built-in list. "
        "Entries that are not SPDX identifiers are matched verbatim.",
    )
    package_allowlist: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices(
            "packageAllowlist", "packageWhitelist", "package_allowlist"
        ),
        description="Packages that are considered green regardless of license.",
    )
