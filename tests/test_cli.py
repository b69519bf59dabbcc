"""CLI behavior tests for green-licenses."""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from green_licenses import __version__
from green_licenses.checker import LicenseChecker
from green_licenses.cli import _run_check, main
from green_licenses.constants import EXIT_ERROR, EXIT_ISSUES, EXIT_SUCCESS
from green_licenses.exceptions import PRNotMergeableError


def _write_package_json(directory: Path, data: dict[str, Any]) -> None:
    (directory / "package.json").write_text(json.dumps(data))


@pytest.fixture(autouse=True)
def restore_root_handlers():
    """Drop handlers bound to the runner's captured streams after each test."""
    handlers = logging.root.handlers[:]
    yield
    logging.root.handlers[:] = handlers


@pytest.fixture
def use_fake_registry(fake_registry: Any):
    """Route the checker's default registry to the in-memory fake."""
    with patch("green_licenses.checker.NpmRegistryFetcher", return_value=fake_registry):
        yield fake_registry


def test_cli_help(cli_runner: CliRunner) -> None:
    """Test that --help outputs usage information."""
    result = cli_runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "Check the licenses of an npm package" in result.output
    assert "--local" in result.output
    assert "--pr" in result.output
    assert "--dev" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    """Test that --version outputs correct version."""
    result = cli_runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestTargets:
    """Tests for target selection."""

    def test_no_target(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, [])
        assert result.exit_code == 2
        assert "Exactly one of PACKAGE, --local or --pr" in result.output

    def test_two_targets(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(main, ["foo", "--local", str(tmp_path)])
        assert result.exit_code == 2

    def test_local_directory_must_exist(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(main, ["--local", str(tmp_path / "missing")])
        assert result.exit_code == 2

    def test_run_check_without_target(self) -> None:
        with pytest.raises(click.UsageError):
            asyncio.run(_run_check(LicenseChecker(), None, None, None))


class TestLocalCheck:
    """Tests for --local."""

    def test_all_green(
        self, cli_runner: CliRunner, tmp_path: Path, use_fake_registry: Any
    ) -> None:
        _write_package_json(
            tmp_path, {"name": "hello", "version": "1.0.0", "license": "MIT"}
        )

        result = cli_runner.invoke(main, ["--local", str(tmp_path)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Checking" in result.output
        assert "All green!" in result.output

    def test_non_green_dependency(
        self, cli_runner: CliRunner, tmp_path: Path, use_fake_registry: Any
    ) -> None:
        _write_package_json(
            tmp_path,
            {"name": "hello", "version": "1.0.0", "license": "MIT",
             "dependencies": {"foo": "^1.2.3"}},
        )

        result = cli_runner.invoke(main, ["--local", str(tmp_path)])

        assert result.exit_code == EXIT_ISSUES
        assert "EVIL: bar@4.5.6" in result.output
        assert "1 non-green license found." in result.output
        assert use_fake_registry.requested == ["foo@^1.2.3", "bar@^4.5.0"]

    def test_json_format(
        self, cli_runner: CliRunner, tmp_path: Path, use_fake_registry: Any
    ) -> None:
        _write_package_json(
            tmp_path,
            {"name": "hello", "version": "1.0.0", "license": "MIT",
             "dependencies": {"foo": "^1.2.3"}},
        )

        result = cli_runner.invoke(main, ["--local", str(tmp_path), "--format", "json"])

        assert result.exit_code == EXIT_ISSUES
        data = json.loads(result.stdout)
        assert data["summary"]["status"] == "issues_found"
        assert [f["package"] for f in data["findings"]] == ["bar"]

    def test_dev_flag(
        self, cli_runner: CliRunner, tmp_path: Path, use_fake_registry: Any
    ) -> None:
        _write_package_json(
            tmp_path,
            {"name": "hello", "version": "1.0.0", "license": "MIT",
             "devDependencies": {"baz": "^7.0.0"}},
        )

        without_dev = cli_runner.invoke(main, ["--local", str(tmp_path)])
        with_dev = cli_runner.invoke(main, ["--local", str(tmp_path), "--dev"])

        assert without_dev.exit_code == EXIT_SUCCESS
        assert with_dev.exit_code == EXIT_ISSUES
        assert "EVIL: baz@7.8.9" in with_dev.output

    def test_invalid_manifest_is_reported(
        self, cli_runner: CliRunner, tmp_path: Path, use_fake_registry: Any
    ) -> None:
        (tmp_path / "package.json").write_text("{oops")

        result = cli_runner.invoke(main, ["--local", str(tmp_path)])

        assert result.exit_code == EXIT_ISSUES
        assert "Error while checking (unknown package)" in result.output
        assert "Invalid JSON" in result.output


class TestRemoteCheck:
    """Tests for the PACKAGE argument."""

    def test_remote_package(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        use_fake_registry: Any,
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = cli_runner.invoke(main, ["foo"])

        assert result.exit_code == EXIT_ISSUES
        assert "foo@1.2.3 -> bar@4.5.6" in result.output

    def test_unsupported_spec(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["foo@github:user/repo"])

        assert result.exit_code == EXIT_ERROR
        assert "UnsupportedSpecError" in result.output


class TestPRCheck:
    """Tests for --pr."""

    def test_invalid_pr_path(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["--pr", "owner/repo"])

        assert result.exit_code == EXIT_ERROR
        assert "InvalidSpecError" in result.output

    def test_unmergeable_pr(self, cli_runner: CliRunner) -> None:
        with patch(
            "green_licenses.resolvers.github.GitHubRepository.get_pr_commits",
            side_effect=PRNotMergeableError("PR is not mergeable"),
        ):
            result = cli_runner.invoke(main, ["--pr", "owner/repo/pull/7"])

        assert result.exit_code == EXIT_ERROR
        assert "PR is not mergeable" in result.output
