"""Rich-based progress display for blob content downloads.

Used by ``blobs readContent <id> <file>``: every chunk written to disk
advances the bar.  The bar renders on stderr so it never mixes with
command output.

Design
------
* :class:`ContentProgress` manages a Rich Progress context.
* :meth:`ContentProgress.advance` is called once per written chunk.
* Shutdown-safe: if the progress bar is already stopped, calls are
  silently ignored.
"""

from __future__ import annotations

from typing import Any

from record_import_cli.cli.console import get_rich_console
from record_import_cli.exceptions import EnvironmentError


class ContentProgress:
    """Progress bar for a single content transfer.

    Usage::

        with ContentProgress("blob 42", total=content.length) as progress:
            for chunk in content.chunks:
                handle.write(chunk)
                progress.advance(len(chunk))
    """

    def __init__(self, description: str, *, total: int | None = None) -> None:
        try:
            from rich.progress import (
                BarColumn,
                DownloadColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeRemainingColumn,
                TransferSpeedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._description: str = _shorten(description)
        self._total: int | None = total
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> ContentProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task(self._description, total=self._total)
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            if self._total is None:
                # Unknown length: close the bar at whatever was transferred.
                task = self._progress.tasks[0]
                self._progress.update(self._task_id, total=task.completed)
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def advance(self, size: int) -> None:
        """Record *size* more bytes written."""
        if not self._started:
            return
        self._progress.update(self._task_id, advance=size)


def _shorten(text: str, limit: int = 50) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
