"""Shared provider-delegation boundary for the core services.

Guarantees
----------
* Pure orchestration — no I/O, no ``print()``, no filesystem access.
* Only :class:`~record_import_cli.exceptions.RecordImportError`
  subclasses escape a service call.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from record_import_cli.core.protocols import RecordImportApi
from record_import_cli.exceptions import RecordImportError

T = TypeVar("T")


class ApiService:
    """Base class holding the injected :class:`RecordImportApi`.

    Parameters
    ----------
    api:
        Any object satisfying the :class:`RecordImportApi` protocol.
    """

    def __init__(self, api: RecordImportApi) -> None:
        self._api: RecordImportApi = api

    @staticmethod
    def _call(operation: Callable[..., T], *args: object) -> T:
        """Invoke *operation* and ensure only our exceptions escape."""
        try:
            return operation(*args)
        except RecordImportError:
            # Already one of ours — let it propagate unchanged.
            raise
        except Exception as exc:
            raise RecordImportError(
                f"Unexpected API client error: {exc}",
            ) from exc
