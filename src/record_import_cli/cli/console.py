"""CLI console helpers with optional Rich support.

Status and diagnostic lines are written to **stderr** so that stdout
stays reserved for command results.  This module avoids module-level
imports of Rich so bootstrap paths (``--help``, ``--version``) keep
working even when Rich is not installed.
"""

from __future__ import annotations

import sys
from typing import Any

from record_import_cli.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(*, stderr: bool = True) -> Any:
	"""Create a Rich console instance targeting stderr (or stdout)."""
	console_class = _load_rich_console_class()
	return console_class(stderr=stderr)


def escape(value: object) -> str:
	"""Return *value* as text safe to interpolate into Rich markup.

	Without Rich the proxy prints markup verbatim, so the text is returned
	unchanged.
	"""
	text = str(value)
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return text
	return rich_escape(text)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()
