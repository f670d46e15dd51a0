"""Protocols (interfaces) consumed by the core layer.

These define the contract the infrastructure adapter must satisfy.
Core code depends ONLY on this protocol — never on the concrete
``httpx`` implementation — preserving the dependency inversion
principle.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager
from typing import Any, BinaryIO, Protocol

from record_import_cli.core.models import BlobContent, BlobPage


class RecordImportApi(Protocol):
    """Contract for record import service backends.

    Implementations must map every transport or protocol failure to a
    :class:`~record_import_cli.exceptions.RecordImportError` subclass
    (normally :class:`~record_import_cli.exceptions.ApiError`).
    """

    # --- Profiles ----------------------------------------------------------

    def query_profiles(self) -> list[dict[str, Any]]:
        """Return every profile visible to the caller."""
        ...  # pragma: no cover

    def get_profile(self, profile_id: str) -> dict[str, Any]:
        """Return a single profile document."""
        ...  # pragma: no cover

    def modify_profile(self, profile_id: str, payload: Any) -> None:
        """Create or replace the profile *profile_id* with *payload*."""
        ...  # pragma: no cover

    def delete_profile(self, profile_id: str) -> None:
        """Remove the profile *profile_id*."""
        ...  # pragma: no cover

    # --- Blobs -------------------------------------------------------------

    def create_blob(
        self,
        profile: str,
        content_type: str,
        content: BinaryIO,
    ) -> str:
        """Upload *content* as a new blob and return its id."""
        ...  # pragma: no cover

    def get_blob_metadata(self, blob_id: str) -> dict[str, Any]:
        """Return the metadata record of a blob."""
        ...  # pragma: no cover

    def delete_blob(self, blob_id: str) -> None:
        ...  # pragma: no cover

    def open_blob_content(self, blob_id: str) -> AbstractContextManager[BlobContent]:
        """Open the blob's content as a stream.

        The returned context manager closes the underlying connection on
        exit; :attr:`BlobContent.chunks` must be consumed inside it.
        """
        ...  # pragma: no cover

    def delete_blob_content(self, blob_id: str) -> None:
        ...  # pragma: no cover

    def abort_blob(self, blob_id: str) -> None:
        """Ask the service to stop processing a blob."""
        ...  # pragma: no cover

    def query_blobs(self, query: Mapping[str, Any]) -> Iterator[BlobPage]:
        """Yield result pages for a query built by
        :func:`~record_import_cli.core.query_builder.build_blob_query`.
        """
        ...  # pragma: no cover
