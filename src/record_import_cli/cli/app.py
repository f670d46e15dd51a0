"""CLI application entry point and command routing for record-import-cli.

This module is the **sole error boundary** for the entire application.
It catches :class:`~record_import_cli.exceptions.RecordImportError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages on stderr and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core
  services, which talk to the API through the infra adapter.
* Status lines go to stderr through the console proxy; command results
  (JSON, tables, blob content) go to stdout.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO

from record_import_cli.cli import exit_codes
from record_import_cli.cli.console import console, escape
from record_import_cli.cli.output import OUTPUT_FORMATS, print_records
from record_import_cli.config import ENV_PREFIX
from record_import_cli.core.models import BlobState
from record_import_cli.exceptions import LocalFileError, RecordImportError
from record_import_cli.version import __version__

EPILOG = """\
examples:
  record-import-cli profiles create <id> [file]
  record-import-cli blobs create [file] -p <id> -t <contentType>
  record-import-cli blobs query -s transformed
  record-import-cli blobs query -a 2022-05-12 -b 2022-05-13

Connection settings are read from RECORD_IMPORT_API_URL, RECORD_IMPORT_API_USERNAME
and RECORD_IMPORT_API_PASSWORD (or the same names without the prefix).
"""

QUERY_DESCRIPTION = (
    "Query blobs.\n"
    f" - States: {', '.join(BlobState.__members__)}\n"
    " - Timestamp formats for options: YYYY-MM-DD or YYYY-MM-DDThh:mm:ss±hh"
)

# (day option, range options) pairs that may not be combined.
_QUERY_CONFLICTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("created_day", ("created_after", "created_before")),
    ("modified_day", ("modified_after", "modified_before")),
)
_OPTION_LABELS: dict[str, str] = {
    "created_after": "-a/--createdAfter",
    "created_before": "-b/--createdBefore",
    "created_day": "-d/--createdDay",
    "modified_after": "-A/--modifiedAfter",
    "modified_before": "-B/--modifiedBefore",
    "modified_day": "-D/--modifiedDay",
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _default_output() -> str:
    value = os.environ.get(f"{ENV_PREFIX}OUTPUT", "json")
    return value if value in OUTPUT_FORMATS else "json"


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    * ``record-import-cli profiles <modify|query|read|delete> ...``
    * ``record-import-cli blobs <create|read|delete|readContent|deleteContent|abort|query> ...``
    * ``record-import-cli doctor``
    * ``record-import-cli --version``
    """
    parser = argparse.ArgumentParser(
        prog="record-import-cli",
        description="Command-line client for the record import service.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=OUTPUT_FORMATS,
        default=_default_output(),
        help=f"Result format (env: {ENV_PREFIX}OUTPUT). Defaults to 'json'.",
    )
    parser.set_defaults(handler=None, help_parser=parser)

    commands = parser.add_subparsers(title="commands", metavar="<command>")
    _add_profile_commands(commands)
    _add_blob_commands(commands)

    doctor = commands.add_parser("doctor", help="Check the local environment")
    doctor.set_defaults(handler=_handle_doctor)
    return parser


def _add_profile_commands(commands: Any) -> None:
    profiles = commands.add_parser("profiles", help="Operate on profiles")
    profiles.set_defaults(help_parser=profiles)
    sub = profiles.add_subparsers(title="profile commands", metavar="<operation>")

    modify = sub.add_parser(
        "modify",
        aliases=["create", "update"],
        help="Create or update a profile",
    )
    modify.add_argument("id", help="Profile identifier")
    modify.add_argument("file", nargs="?", help="JSON profile document (default: stdin)")
    modify.set_defaults(handler=_handle_profiles_modify)

    query = sub.add_parser("query", help="Query profiles")
    query.set_defaults(handler=_handle_profiles_query)

    read = sub.add_parser("read", help="Read a profile")
    read.add_argument("id", help="Profile identifier")
    read.set_defaults(handler=_handle_profiles_read)

    delete = sub.add_parser("delete", help="Delete a profile")
    delete.add_argument("id", help="Profile identifier")
    delete.set_defaults(handler=_handle_profiles_delete)


def _add_blob_commands(commands: Any) -> None:
    blobs = commands.add_parser("blobs", help="Operate on blobs")
    blobs.set_defaults(help_parser=blobs)
    sub = blobs.add_subparsers(title="blob commands", metavar="<operation>")

    create = sub.add_parser("create", help="Create a blob")
    create.add_argument("file", nargs="?", help="Blob content (default: stdin)")
    create.add_argument("-p", "--profile", required=True, help="Import profile id")
    create.add_argument(
        "-t",
        "--contentType",
        dest="content_type",
        required=True,
        help="Media type of the content",
    )
    create.set_defaults(handler=_handle_blobs_create)

    read = sub.add_parser("read", help="Read a blob")
    read.add_argument("id", help="Blob identifier")
    read.set_defaults(handler=_handle_blobs_read)

    delete = sub.add_parser("delete", help="Delete a blob")
    delete.add_argument("id", help="Blob identifier")
    delete.set_defaults(handler=_handle_blobs_delete)

    read_content = sub.add_parser("readContent", help="Read blob content")
    read_content.add_argument("id", help="Blob identifier")
    read_content.add_argument("file", nargs="?", help="Output file (default: stdout)")
    read_content.set_defaults(handler=_handle_blobs_read_content)

    delete_content = sub.add_parser("deleteContent", help="Delete blob content")
    delete_content.add_argument("id", help="Blob identifier")
    delete_content.set_defaults(handler=_handle_blobs_delete_content)

    abort = sub.add_parser("abort", help="Abort blob processing")
    abort.add_argument("id", help="Blob identifier")
    abort.set_defaults(handler=_handle_blobs_abort)

    query = sub.add_parser(
        "query",
        help="Query blobs",
        description=QUERY_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    query.add_argument("-s", "--state", help="Query blobs by state")
    query.add_argument(
        "-b", "--createdBefore", dest="created_before",
        help="Query blobs created before time",
    )
    query.add_argument(
        "-a", "--createdAfter", dest="created_after",
        help="Query blobs created after time",
    )
    query.add_argument(
        "-B", "--modifiedBefore", dest="modified_before",
        help="Query blobs modified before time",
    )
    query.add_argument(
        "-A", "--modifiedAfter", dest="modified_after",
        help="Query blobs modified after time",
    )
    query.add_argument(
        "-d", "--createdDay", dest="created_day",
        help="Query blobs created by day",
    )
    query.add_argument(
        "-D", "--modifiedDay", dest="modified_day",
        help="Query blobs modified by day",
    )
    query.set_defaults(handler=_handle_blobs_query, command_parser=query)


def _check_query_conflicts(args: argparse.Namespace) -> None:
    """Reject day options combined with before/after options (usage error)."""
    for day_option, range_options in _QUERY_CONFLICTS:
        if getattr(args, day_option) is None:
            continue
        for range_option in range_options:
            if getattr(args, range_option) is not None:
                args.command_parser.error(
                    f"argument {_OPTION_LABELS[day_option]}: not allowed with "
                    f"argument {_OPTION_LABELS[range_option]}",
                )


# ---------------------------------------------------------------------------
# Local I/O helpers
# ---------------------------------------------------------------------------

@contextmanager
def _open_api() -> Iterator[Any]:
    """Yield a configured API adapter and close it afterwards."""
    from record_import_cli.config import load_config
    from record_import_cli.infra.api_client import HttpRecordImportApi

    with HttpRecordImportApi(load_config()) as api:
        yield api


def _read_text(file: str | None) -> str:
    """Return the contents of *file*, or of stdin when *file* is ``None``."""
    if file is None:
        return sys.stdin.read()
    try:
        return Path(file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LocalFileError(f"Cannot read file {file}: {exc}") from exc


@contextmanager
def _open_binary_input(file: str | None) -> Iterator[BinaryIO]:
    if file is None:
        yield sys.stdin.buffer
        return
    try:
        handle = open(file, "rb")
    except OSError as exc:
        raise LocalFileError(f"Cannot read file {file}: {exc}") from exc
    with handle:
        yield handle


# ---------------------------------------------------------------------------
# Profile commands
# ---------------------------------------------------------------------------

def _handle_profiles_modify(args: argparse.Namespace) -> int:
    from record_import_cli.core.profile_service import ProfileService

    payload_text = _read_text(args.file)
    with _open_api() as api:
        ProfileService(api).modify(args.id, payload_text)
    console.print(f"[green]Created/updated profile[/green] {escape(args.id)}")
    return exit_codes.SUCCESS


def _handle_profiles_query(args: argparse.Namespace) -> int:
    from record_import_cli.core.profile_service import ProfileService

    with _open_api() as api:
        profiles = ProfileService(api).query()
    print_records(profiles, args.output, title="Profiles")
    return exit_codes.SUCCESS


def _handle_profiles_read(args: argparse.Namespace) -> int:
    from record_import_cli.core.profile_service import ProfileService

    with _open_api() as api:
        profile = ProfileService(api).read(args.id)
    print_records(profile, args.output, title=f"Profile {args.id}")
    return exit_codes.SUCCESS


def _handle_profiles_delete(args: argparse.Namespace) -> int:
    from record_import_cli.core.profile_service import ProfileService

    with _open_api() as api:
        ProfileService(api).delete(args.id)
    console.print(f"[green]Deleted profile[/green] {escape(args.id)}")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Blob commands
# ---------------------------------------------------------------------------

def _handle_blobs_create(args: argparse.Namespace) -> int:
    from record_import_cli.core.blob_service import BlobService

    with _open_binary_input(args.file) as content, _open_api() as api:
        blob_id = BlobService(api).create(args.profile, args.content_type, content)
    console.print(f"[green]Created a new blob[/green] {escape(blob_id)}")
    return exit_codes.SUCCESS


def _handle_blobs_read(args: argparse.Namespace) -> int:
    from record_import_cli.core.blob_service import BlobService

    with _open_api() as api:
        metadata = BlobService(api).read(args.id)
    print_records(metadata, args.output, title=f"Blob {args.id}")
    return exit_codes.SUCCESS


def _handle_blobs_delete(args: argparse.Namespace) -> int:
    from record_import_cli.core.blob_service import BlobService

    with _open_api() as api:
        BlobService(api).delete(args.id)
    console.print(f"[green]Deleted blob[/green] {escape(args.id)}")
    return exit_codes.SUCCESS


def _handle_blobs_read_content(args: argparse.Namespace) -> int:
    """Stream blob content to a file (with progress) or to stdout.

    Binary content is never dumped onto an interactive terminal.
    """
    from record_import_cli.core.blob_service import BlobService
    from record_import_cli.core.content import is_binary_content_type
    from record_import_cli.exceptions import BinaryContentError

    with _open_api() as api, BlobService(api).open_content(args.id) as content:
        if args.file:
            _write_content_to_file(args.id, content, args.file)
            console.print(f"[green]Wrote blob content to file[/green] {escape(args.file)}")
            return exit_codes.SUCCESS

        if is_binary_content_type(content.content_type) and sys.stdout.isatty():
            raise BinaryContentError(
                f"Content type {content.content_type} seems to be binary. "
                "Refusing to print to console",
                hint="Give an output file or redirect stdout.",
            )

        sys.stdout.flush()
        out = sys.stdout.buffer
        for chunk in content.chunks:
            out.write(chunk)
        out.flush()
    return exit_codes.SUCCESS


def _write_content_to_file(blob_id: str, content: Any, file: str) -> None:
    from record_import_cli.cli.progress import ContentProgress

    try:
        handle = open(file, "wb")
    except OSError as exc:
        raise LocalFileError(f"Cannot write file {file}: {exc}") from exc

    try:
        with handle, ContentProgress(f"blob {blob_id}", total=content.length) as progress:
            for chunk in content.chunks:
                try:
                    handle.write(chunk)
                except OSError as exc:
                    raise LocalFileError(f"Cannot write file {file}: {exc}") from exc
                progress.advance(len(chunk))
    except BaseException:
        # Never leave a truncated download behind.
        Path(file).unlink(missing_ok=True)
        raise


def _handle_blobs_delete_content(args: argparse.Namespace) -> int:
    from record_import_cli.core.blob_service import BlobService

    with _open_api() as api:
        BlobService(api).delete_content(args.id)
    console.print(f"[green]Deleted content for blob[/green] {escape(args.id)}")
    return exit_codes.SUCCESS


def _handle_blobs_abort(args: argparse.Namespace) -> int:
    from record_import_cli.core.blob_service import BlobService

    with _open_api() as api:
        BlobService(api).abort(args.id)
    console.print(f"[green]Aborted processing of blob[/green] {escape(args.id)}")
    return exit_codes.SUCCESS


def _handle_blobs_query(args: argparse.Namespace) -> int:
    from record_import_cli.cli.output import to_json
    from record_import_cli.core.blob_service import BlobService

    _check_query_conflicts(args)
    query = BlobService.build_query(
        state=args.state,
        created_after=args.created_after,
        created_before=args.created_before,
        modified_after=args.modified_after,
        modified_before=args.modified_before,
        created_day=args.created_day,
        modified_day=args.modified_day,
    )
    console.print(f"[dim]Query:[/dim] {escape(to_json(query, indent=None))}")

    with _open_api() as api:
        for page in BlobService(api).query(query):
            print_records(list(page.blobs), args.output, title="Blobs")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def _handle_doctor(args: argparse.Namespace) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from record_import_cli.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the record-import-cli CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.handler is None:
        args.help_parser.print_help()
        return exit_codes.SUCCESS

    return args.handler(args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except RecordImportError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc)}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(exc)}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
