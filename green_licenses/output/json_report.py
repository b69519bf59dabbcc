"""JSON output formatter for check results."""
import json
from datetime import datetime, timezone
from typing import Any

from green_licenses import __version__
from green_licenses.models.check import CheckError, CheckResult, NonGreenLicense


class JsonFormatter:
    """Format check results as JSON for CI/CD pipelines."""

    def format_check_result(self, result: CheckResult) -> str:
        """Format a check result as a JSON string.

        Args:
            result: The check result to format.

        Returns:
            JSON string representation of the result.
        """
        return json.dumps(self._build_output(result), indent=2)

    def _build_output(self, result: CheckResult) -> dict[str, Any]:
        return {
            "metadata": {
                "generated_at": datetime.now(timezone.utc).strftime(
                    "%Y-%m-%dT%H:%M:%SZ"
                ),
                "tool_version": __version__,
            },
            "summary": {
                "status": "issues_found" if result.has_issues else "pass",
                "non_green_licenses": len(result.findings),
                "errors": len(result.errors),
                "manifest_files": len(result.manifest_files),
            },
            "findings": [self._build_finding(f) for f in result.findings],
            "errors": [self._build_error(e) for e in result.errors],
            "manifest_files": list(result.manifest_files),
        }

    def _build_finding(self, finding: NonGreenLicense) -> dict[str, Any]:
        return {
            "package": finding.package_name,
            "version": finding.version,
            "license": finding.license_name,
            "parent_packages": list(finding.parent_packages),
            "path": finding.get_path_display(),
        }

    def _build_error(self, error: CheckError) -> dict[str, Any]:
        return {
            "package": error.package_name,
            "version_spec": error.version_spec,
            "parent_packages": list(error.parent_packages),
            "error_type": type(error.error).__name__,
            "message": str(error.error),
        }
