"""Rule set model used to classify licenses during one check run."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RuleSet(BaseModel):
    """Classification rules active for a single check run.

    Built by ``build_rule_set`` at the start of every check and never
    modified afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    green_license_expr: str = Field(
        description="Disjunction of canonical SPDX ids, e.g. '(MIT OR ISC)'"
    )
    allowed_licenses: tuple[str, ...] = Field(
        default=(),
        description="Non-SPDX license strings that are explicitly allowed",
    )
    package_allowlist: tuple[str, ...] = Field(
        default=(),
        description="Packages exempted from license and schema checks",
    )

    def is_package_allowlisted(self, package_name: str | None) -> bool:
        """Check whether a package is on the allowlist (exact match)."""
        return package_name is not None and package_name in self.package_allowlist
