"""Terminal output for check runs using Rich."""
from typing import Optional

from rich.console import Console
from rich.markup import escape

from green_licenses.checker import CheckListener
from green_licenses.models.check import CheckError, CheckResult, NonGreenLicense


class TerminalReporter(CheckListener):
    """Print check events as they happen, then a summary.

    Attach to a LicenseChecker as a listener; call ``print_summary`` with
    the returned CheckResult once the run is over.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False) -> None:
        """Initialize the reporter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbose: Also print the error chain of failed dependencies.
        """
        self._console = console if console is not None else Console()
        self._verbose = verbose

    def on_package_json(self, file_path: str) -> None:
        self._console.print(f"Checking [cyan]{escape(file_path)}[/cyan]...")
        self._console.print()

    def on_non_green_license(self, finding: NonGreenLicense) -> None:
        license_display = finding.license_name or "(no license)"
        self._console.print(
            f"[red]{escape(license_display)}[/red]: "
            f"[bold]{escape(finding.package_and_version)}[/bold]"
        )
        self._console.print(f"  {escape(finding.get_path_display())}")
        self._console.print()

    def on_error(self, error: CheckError) -> None:
        self._console.print(
            f"[yellow]Error while checking {escape(error.package_and_spec)}:[/yellow]"
        )
        self._console.print(f"  {escape(error.get_path_display())}")
        if self._verbose:
            error_type = type(error.error).__name__
            self._console.print(f"  {error_type}: {escape(str(error.error))}")
        else:
            self._console.print(f"  {escape(str(error.error))}")
        self._console.print()

    def print_summary(self, result: CheckResult) -> None:
        """Print the totals of a run.

        Args:
            result: The result returned by the checker.
        """
        if not result.has_issues:
            self._console.print("[green bold]All green![/green bold]")
            return
        if result.findings:
            count = len(result.findings)
            noun = "license" if count == 1 else "licenses"
            self._console.print(f"[red bold]{count} non-green {noun} found.[/red bold]")
        if result.errors:
            count = len(result.errors)
            noun = "error" if count == 1 else "errors"
            self._console.print(f"[yellow bold]{count} {noun} found.[/yellow bold]")
