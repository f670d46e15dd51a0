"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
"""

from record_import_cli.core.blob_service import BlobService
from record_import_cli.core.models import BlobContent, BlobPage, BlobState
from record_import_cli.core.profile_service import ProfileService
from record_import_cli.core.protocols import RecordImportApi
from record_import_cli.core.query_builder import build_blob_query

__all__: list[str] = [
    "BlobContent",
    "BlobPage",
    "BlobService",
    "BlobState",
    "ProfileService",
    "RecordImportApi",
    "build_blob_query",
]
