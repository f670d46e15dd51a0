"""Custom exception hierarchy for record-import-cli.

All exceptions that cross layer boundaries must inherit from
:class:`RecordImportError`.  Raw ``httpx`` exceptions must NEVER
propagate beyond the infrastructure layer — they are caught there and
re-raised as a typed subclass defined here.

Hierarchy
---------
RecordImportError
├── ConfigurationError
├── ApiError
├── ApiConnectionError
├── ProfilePayloadError
├── LocalFileError
├── BinaryContentError
└── EnvironmentError
"""

from __future__ import annotations

from http import HTTPStatus


class RecordImportError(Exception):
    """Base exception for all record-import-cli errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Configuration ---------------------------------------------------------

class ConfigurationError(RecordImportError):
    """Raised when required settings are missing or malformed."""


# --- Remote API ------------------------------------------------------------

class ApiError(RecordImportError):
    """Raised when the record import API answers with a non-2xx status."""

    def __init__(self, status: int, *, hint: str | None = None) -> None:
        super().__init__(
            f"API call failed: {describe_status(status)} ({status})",
            hint=hint,
        )
        self.status: int = status


class ApiConnectionError(RecordImportError):
    """Raised when the API cannot be reached at all."""


# --- Local input -----------------------------------------------------------

class ProfilePayloadError(RecordImportError):
    """Raised when a profile payload is not valid JSON."""


class LocalFileError(RecordImportError):
    """Raised when a local file cannot be read or written."""


class BinaryContentError(RecordImportError):
    """Raised when binary blob content would be printed to a terminal."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(RecordImportError):
    """Raised when a required runtime dependency is not available."""


def describe_status(status: int) -> str:
    """Return the standard reason phrase for *status*, or ``"Unknown status"``."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown status"
