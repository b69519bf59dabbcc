"""CLI entry point for green-licenses."""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from green_licenses import __version__
from green_licenses.checker import LicenseChecker
from green_licenses.constants import EXIT_ERROR, EXIT_ISSUES, EXIT_SUCCESS
from green_licenses.exceptions import GreenLicensesError
from green_licenses.logging import configure_logging
from green_licenses.models.check import CheckResult
from green_licenses.output.json_report import JsonFormatter
from green_licenses.output.terminal import TerminalReporter

# Module-level console for consistent output
_console = Console()
# Separate console for error output (writes to stderr)
_error_console = Console(stderr=True)


@click.command()
@click.version_option(version=__version__)
@click.argument("package", required=False)
@click.option(
    "--local",
    "-l",
    "local_dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Check a local directory instead of a published package.",
)
@click.option(
    "--pr",
    "pr_path",
    default=None,
    metavar="OWNER/REPO/pull/ID",
    help="Check the merge commit of a GitHub pull request.",
)
@click.option(
    "--dev",
    is_flag=True,
    default=False,
    help="Also check devDependencies.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show license name corrections and error details.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "json"], case_sensitive=False),
    default="terminal",
    help="Output format for check results (default: terminal).",
)
@click.option(
    "--json-log",
    is_flag=True,
    default=False,
    help="Write log records to stderr as JSON lines.",
)
def main(
    package: Optional[str],
    local_dir: Optional[str],
    pr_path: Optional[str],
    dev: bool,
    verbose_flag: bool,
    output_format: str,
    json_log: bool,
) -> None:
    """Check the licenses of an npm package and all of its dependencies.

    Exactly one of PACKAGE, --local or --pr selects what to check.
    Licenses are compared against the green license list, which can be
    customized with a js-green-licenses.json or .green-licenses.yaml file.

    \b
    Examples:
        green-licenses express
        green-licenses left-pad@1.3.0 --format json
        green-licenses --local . --dev
        green-licenses --pr owner/repo/pull/123
    """
    targets = [target for target in (package, local_dir, pr_path) if target]
    if len(targets) != 1:
        raise click.UsageError("Exactly one of PACKAGE, --local or --pr must be given.")

    configure_logging(verbose=verbose_flag, quiet=not verbose_flag, json_log=json_log)

    format_value = output_format.lower()
    checker = LicenseChecker(dev=dev, verbose=verbose_flag)
    reporter: Optional[TerminalReporter] = None
    if format_value == "terminal":
        reporter = TerminalReporter(console=_console, verbose=verbose_flag)
        checker.add_listener(reporter)

    try:
        result = asyncio.run(_run_check(checker, package, local_dir, pr_path))
    except GreenLicensesError as e:
        _display_error(e, format_value)
        sys.exit(EXIT_ERROR)

    if reporter is not None:
        reporter.print_summary(result)
    else:
        click.echo(JsonFormatter().format_check_result(result))

    if result.has_issues:
        sys.exit(EXIT_ISSUES)
    sys.exit(EXIT_SUCCESS)


async def _run_check(
    checker: LicenseChecker,
    package: Optional[str],
    local_dir: Optional[str],
    pr_path: Optional[str],
) -> CheckResult:
    """Run the check selected on the command line."""
    if local_dir:
        return await checker.check_local_directory(local_dir)
    if pr_path:
        repo, pr_id = checker.pr_path_to_github_repo_and_id(pr_path)
        commits = await repo.get_pr_commits(pr_id)
        return await checker.check_github_pr(repo, commits.merge_commit_sha)
    if package:
        return await checker.check_remote_package(package)
    raise click.UsageError("Exactly one of PACKAGE, --local or --pr must be given.")


def _display_error(error: GreenLicensesError, format_type: str) -> None:
    """Display error message to user.

    All errors are written to stderr for consistent CI/CD behavior.

    Args:
        error: The exception that occurred.
        format_type: Output format type for styling.
    """
    error_type = type(error).__name__
    message = f"Error: {error_type}: {error}"

    if format_type == "terminal":
        _error_console.print(f"[red bold]{escape(message)}[/red bold]")
    else:
        click.echo(message, err=True)


if __name__ == "__main__":
    main()
