"""Result rendering for the CLI layer.

Command results go to **stdout** so they can be piped or redirected:

* ``json`` — pretty-printed JSON (2-space indent), the default.
* ``table`` — a Rich table of the scalar fields of each record.

Table rendering needs Rich; JSON rendering never does.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping, Sequence
from typing import Any

from record_import_cli.cli.console import get_rich_console

OUTPUT_FORMATS: tuple[str, ...] = ("json", "table")
_SCALARS = (str, int, float, bool)


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms — no I/O themselves)
# ---------------------------------------------------------------------------

def to_json(data: Any, *, indent: int | None = 2) -> str:
    """Serialise *data* the way every command prints it."""
    return json.dumps(data, indent=indent, ensure_ascii=False)


def scalar_columns(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Return keys holding scalar values, in order of first appearance."""
    columns: list[str] = []
    for row in rows:
        for key, value in row.items():
            if key not in columns and (value is None or isinstance(value, _SCALARS)):
                columns.append(key)
    return columns


def _cell(value: Any) -> str:
    if value is None:
        return "—"
    if isinstance(value, _SCALARS):
        return str(value)
    return "…"


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def print_json(data: Any) -> None:
    sys.stdout.write(to_json(data))
    sys.stdout.write("\n")
    sys.stdout.flush()


def print_table(title: str, rows: Sequence[Mapping[str, Any]]) -> None:
    """Render *rows* as a Rich table on stdout.

    Raises
    ------
    EnvironmentError
        If Rich is not installed.
    """
    stdout_console = get_rich_console(stderr=False)
    from rich.table import Table

    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    columns = scalar_columns(rows)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    stdout_console.print(table)


def print_records(
    data: Any,
    output: str,
    *,
    title: str,
) -> None:
    """Print a record or list of records in the requested *output* format."""
    if output == "table" and isinstance(data, (list, tuple, dict)):
        rows = [data] if isinstance(data, dict) else list(data)
        if all(isinstance(row, Mapping) for row in rows):
            print_table(title, rows)
            return
    print_json(data)
