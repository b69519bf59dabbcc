"""Tests for the JSON check result formatter."""
import json
import re

from green_licenses import __version__
from green_licenses.exceptions import NetworkError
from green_licenses.models.check import CheckError, CheckResult, NonGreenLicense
from green_licenses.output.json_report import JsonFormatter


class TestJsonFormatter:
    """Tests for JsonFormatter class."""

    def test_format_empty_result(self) -> None:
        """Test formatting an empty result returns a passing report."""
        data = json.loads(JsonFormatter().format_check_result(CheckResult()))

        assert data["summary"] == {
            "status": "pass",
            "non_green_licenses": 0,
            "errors": 0,
            "manifest_files": 0,
        }
        assert data["findings"] == []
        assert data["errors"] == []

    def test_metadata(self) -> None:
        data = json.loads(JsonFormatter().format_check_result(CheckResult()))

        assert data["metadata"]["tool_version"] == __version__
        assert re.match(
            r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$", data["metadata"]["generated_at"]
        )

    def test_findings_and_errors(self) -> None:
        """Test that findings and errors carry their dependency chains."""
        result = CheckResult(
            findings=[
                NonGreenLicense(
                    package_name="bar",
                    version="4.5.6",
                    license_name="EVIL",
                    parent_packages=["foo@1.2.3"],
                )
            ],
            errors=[
                CheckError(
                    error=NetworkError("timed out"),
                    package_name="baz",
                    version_spec="^7.0.0",
                    parent_packages=["foo@1.2.3"],
                )
            ],
            manifest_files=["/package.json"],
        )

        data = json.loads(JsonFormatter().format_check_result(result))

        assert data["summary"]["status"] == "issues_found"
        assert data["findings"] == [
            {
                "package": "bar",
                "version": "4.5.6",
                "license": "EVIL",
                "parent_packages": ["foo@1.2.3"],
                "path": "foo@1.2.3 -> bar@4.5.6",
            }
        ]
        assert data["errors"] == [
            {
                "package": "baz",
                "version_spec": "^7.0.0",
                "parent_packages": ["foo@1.2.3"],
                "error_type": "NetworkError",
                "message": "timed out",
            }
        ]
        assert data["manifest_files"] == ["/package.json"]

    def test_null_license(self) -> None:
        result = CheckResult(
            findings=[NonGreenLicense(package_name="x", version="1.0.0")]
        )
        data = json.loads(JsonFormatter().format_check_result(result))
        assert data["findings"][0]["license"] is None
