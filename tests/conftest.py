"""Shared fixtures for green-licenses tests."""
from __future__ import annotations

from typing import Any

import pytest
from click.testing import CliRunner

from green_licenses.exceptions import PackageNotFoundError
from green_licenses.resolvers.base import ManifestFetcher

# Registry contents used across checker tests: foo is green and pulls in
# bar, which is not.
REGISTRY_PACKAGES: dict[str, dict[str, Any]] = {
    "foo": {
        "name": "foo",
        "version": "1.2.3",
        "license": "ISC",
        "dependencies": {"bar": "^4.5.0"},
    },
    "bar": {
        "name": "bar",
        "version": "4.5.6",
        "license": "EVIL",
    },
    "baz": {
        "name": "baz",
        "version": "7.8.9",
        "license": "EVIL",
    },
}


class FakeRegistry(ManifestFetcher):
    """In-memory registry that records every requested ``name@spec``."""

    def __init__(self, packages: dict[str, dict[str, Any]]) -> None:
        self.packages = packages
        self.requested: list[str] = []

    async def fetch_manifest(self, package_name: str, version_spec: str) -> Any:
        self.requested.append(f"{package_name}@{version_spec}")
        if package_name not in self.packages:
            raise PackageNotFoundError(f"Package {package_name} not found")
        return self.packages[package_name]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """Registry with foo -> bar and an unrelated baz."""
    return FakeRegistry(dict(REGISTRY_PACKAGES))


@pytest.fixture
def registry_factory() -> type[FakeRegistry]:
    """Build registries with custom contents: ``registry_factory({...})``."""
    return FakeRegistry
