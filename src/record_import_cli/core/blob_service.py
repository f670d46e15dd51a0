"""Core blob service — orchestrates blob operations.

This service delegates every remote call to a
:class:`~record_import_cli.core.protocols.RecordImportApi` injected at
construction time.  It is responsible for:

* Building blob queries from raw CLI flag values.
* Localising metadata timestamps for display.
* Ensuring only :class:`~record_import_cli.exceptions.RecordImportError`
  subclasses escape, including errors raised mid-iteration.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager
from typing import Any, BinaryIO

from record_import_cli.core.content import localize_timestamps
from record_import_cli.core.models import BlobContent, BlobPage
from record_import_cli.core.query_builder import build_blob_query
from record_import_cli.core.service_base import ApiService
from record_import_cli.exceptions import RecordImportError


class BlobService(ApiService):
    """Stateless service for blob operations."""

    # ------------------------------------------------------------------
    # Query construction (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def build_query(**flags: str | None) -> dict[str, Any]:
        """Forward keyword flags to :func:`build_blob_query`."""
        return build_blob_query(**flags)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, profile: str, content_type: str, content: BinaryIO) -> str:
        """Upload *content* and return the new blob id."""
        return self._call(self._api.create_blob, profile, content_type, content)

    def read(self, blob_id: str) -> dict[str, Any]:
        """Return blob metadata with timestamps in local time."""
        metadata = self._call(self._api.get_blob_metadata, blob_id)
        return localize_timestamps(metadata)

    def delete(self, blob_id: str) -> None:
        self._call(self._api.delete_blob, blob_id)

    def open_content(self, blob_id: str) -> AbstractContextManager[BlobContent]:
        """Open the content stream; see :meth:`RecordImportApi.open_blob_content`."""
        return self._call(self._api.open_blob_content, blob_id)

    def delete_content(self, blob_id: str) -> None:
        self._call(self._api.delete_blob_content, blob_id)

    def abort(self, blob_id: str) -> None:
        self._call(self._api.abort_blob, blob_id)

    def query(self, query: Mapping[str, Any]) -> Iterator[BlobPage]:
        """Yield result pages for *query*."""
        pages = iter(self._call(self._api.query_blobs, query))
        while True:
            try:
                page = next(pages)
            except StopIteration:
                return
            except RecordImportError:
                raise
            except Exception as exc:
                raise RecordImportError(
                    f"Unexpected API client error: {exc}",
                ) from exc
            yield page
