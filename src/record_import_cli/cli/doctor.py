"""``record-import-cli doctor`` — environment diagnostics command.

Gathers runtime and configuration information and renders a table
summarising whether the environment is ready to talk to the record
import API.  No request is sent to the API.
"""

from __future__ import annotations

import platform
import sys
from collections.abc import Mapping
from importlib import metadata

from record_import_cli.cli import exit_codes
from record_import_cli.cli.console import console, escape
from record_import_cli.config import ENV_PREFIX, read_setting
from record_import_cli.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _tool_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the record-import-cli version row."""
    return "record-import-cli", __version__, "[green]OK[/green]"


def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _httpx_check() -> tuple[str, str, str]:
    try:
        import httpx
    except ImportError:
        return "httpx", "NOT INSTALLED", "[red]FAIL[/red]"
    return "httpx", getattr(httpx, "__version__", "unknown"), "[green]OK[/green]"


def _rich_check() -> tuple[str, str, str]:
    """Rich is optional — missing it only disables tables and progress bars."""
    try:
        import rich  # noqa: F401
    except ImportError:
        return "rich", "NOT INSTALLED", "[yellow]WARN[/yellow]"
    try:
        return "rich", metadata.version("rich"), "[green]OK[/green]"
    except metadata.PackageNotFoundError:
        return "rich", "unknown", "[green]OK[/green]"


def _api_url_check(environ: Mapping[str, str] | None = None) -> tuple[str, str, str]:
    api_url = read_setting("API_URL", environ)
    if not api_url:
        return "API URL", f"{ENV_PREFIX}API_URL not set", "[red]FAIL[/red]"
    return "API URL", api_url, "[green]OK[/green]"


def _credentials_check(environ: Mapping[str, str] | None = None) -> tuple[str, str, str]:
    username = read_setting("API_USERNAME", environ)
    password = read_setting("API_PASSWORD", environ)
    if username and password:
        return "Credentials", f"user {username}", "[green]OK[/green]"
    return "Credentials", "not configured (anonymous)", "[yellow]WARN[/yellow]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\nrecord-import-cli doctor", file=sys.stderr)
    print("=" * 66, file=sys.stderr)
    print(f"{'Component':<18} {'Value':<38} {'Status':<8}", file=sys.stderr)
    print("-" * 66, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<18} {value:<38} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(environ: Mapping[str, str] | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check fails,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    checks = [
        _tool_version_check(),
        _python_version_check(),
        _httpx_check(),
        _rich_check(),
        _api_url_check(environ),
        _credentials_check(environ),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="record-import-cli doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, escape(value), status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    if has_failure:
        if rich_available:
            console.print("[bold red]Some checks failed.[/bold red]")
        else:
            print("Some checks failed.", file=sys.stderr)
        return exit_codes.GENERAL_ERROR

    if rich_available:
        console.print("[bold green]All checks passed.[/bold green]")
    else:
        print("All checks passed.", file=sys.stderr)
    return exit_codes.SUCCESS
