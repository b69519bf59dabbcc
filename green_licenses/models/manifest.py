"""package.json manifest model.

Provides a validated, immutable view over the dependency manifest of one npm
package, plus helpers to read its declared license in the legacy formats
described at https://docs.npmjs.com/files/package.json#license.
"""
from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from green_licenses.constants import PRIVATE_LICENSE, SENTINEL_VERSION
from green_licenses.exceptions import InvalidManifestError
from green_licenses.semver import is_valid_version


class LegacyLicense(BaseModel):
    """Old-style license object: ``{"type": "MIT", "url": "..."}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = Field(description="License name")
    url: Optional[str] = Field(default=None, description="License text URL")


LicenseField = Union[str, LegacyLicense, list[LegacyLicense]]


class Manifest(BaseModel):
    """Dependency manifest (package.json) of a single package.

    A non-private manifest must declare both ``name`` and ``version``.
    Private manifests (``"private": true``) are valid without them.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: Optional[str] = Field(default=None, description="Package name")
    version: Optional[str] = Field(default=None, description="Package version")
    private: bool = Field(default=False, description="Never published to npm")
    license: Optional[LicenseField] = Field(
        default=None, description="SPDX expression or legacy license object(s)"
    )
    licenses: Optional[LicenseField] = Field(
        default=None, description="Legacy plural license field"
    )
    dependencies: dict[str, str] = Field(
        default_factory=dict, description="Runtime dependencies (name -> range)"
    )
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict,
        alias="devDependencies",
        description="Development dependencies (name -> range)",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """Treat explicit ``null`` dependency maps as absent."""
        if isinstance(data, dict):
            for key in ("dependencies", "devDependencies"):
                if key in data and data[key] is None:
                    data = {k: v for k, v in data.items() if k != key}
        return data

    @model_validator(mode="after")
    def _require_name_and_version(self) -> Manifest:
        if not self.private and (self.name is None or self.version is None):
            raise ValueError("non-private package.json must have name and version")
        return self

    @property
    def package_and_version(self) -> str:
        """Resolved key ``name@version`` used for deduplication."""
        return f"{self.name}@{self.version}"

    @classmethod
    def allowlisted(cls, raw: Any) -> Manifest:
        """Build a manifest for an allow-listed package, skipping validation.

        Only the version is checked: a missing or non-semver version becomes
        ``"0.0.0"`` so the package can still be keyed and reported.

        Args:
            raw: Raw package.json content.

        Returns:
            Manifest with name, version and dependency maps (string entries
            only) carried over.
        """
        data: dict[str, Any] = raw if isinstance(raw, dict) else {}
        name = data.get("name")
        version = data.get("version")
        if not isinstance(version, str) or not is_valid_version(version):
            version = SENTINEL_VERSION
        return cls.model_construct(
            name=name if isinstance(name, str) else None,
            version=version,
            private=data.get("private") is True,
            dependencies=_string_entries(data.get("dependencies")),
            dev_dependencies=_string_entries(data.get("devDependencies")),
        )


def _string_entries(deps: Any) -> dict[str, str]:
    if not isinstance(deps, dict):
        return {}
    return {k: v for k, v in deps.items() if isinstance(v, str)}


def parse_manifest(raw: Any) -> Manifest:
    """Validate raw package.json content.

    Args:
        raw: Decoded JSON value.

    Returns:
        Validated Manifest.

    Raises:
        InvalidManifestError: If the content does not have the package.json
            shape (missing name/version, non-string dependency ranges,
            malformed license fields, or not an object at all).
    """
    if not isinstance(raw, dict):
        raise InvalidManifestError(
            f"Invalid package.json: expected an object, got {type(raw).__name__}"
        )
    try:
        return Manifest.model_validate(raw)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(x) for x in err['loc']) or 'root'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidManifestError(f"Invalid package.json: {details}") from e


def license_of(manifest: Manifest) -> Optional[str]:
    """Get the declared license of a manifest as a single string.

    Some package.json files have incorrect license fields, and old packages
    may use the legacy ``licenses`` array. A list of legacy objects with more
    than one type is turned into an ``(A OR B)`` expression.

    Args:
        manifest: The manifest to inspect.

    Returns:
        License string, ``"private"`` for private packages that declare no
        license, or None.
    """
    field = manifest.license or manifest.licenses
    if not field:
        return PRIVATE_LICENSE if manifest.private else None
    if isinstance(field, str):
        return field
    if isinstance(field, list):
        types = list(dict.fromkeys(entry.type for entry in field if entry.type))
        if not types:
            return None
        return types[0] if len(types) == 1 else f"({' OR '.join(types)})"
    return field.type or None
