"""Infrastructure layer — external system integration.

This layer wraps all interaction with the record import HTTP API.
Every raw ``httpx`` exception must be caught here and re-raised as a
:class:`~record_import_cli.exceptions.RecordImportError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from record_import_cli.infra.api_client import HttpRecordImportApi

__all__: list[str] = ["HttpRecordImportApi"]
