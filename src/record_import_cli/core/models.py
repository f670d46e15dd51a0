"""Domain models for record-import-cli.

Value objects are **frozen** dataclasses with no behaviour beyond data
access.  They carry zero I/O and no dependency on external packages.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Blob lifecycle
# ---------------------------------------------------------------------------

class BlobState(str, Enum):
    """Lifecycle states a blob passes through on the import service.

    Member *names* are what ``blobs query --state`` is validated
    against (case-insensitively).
    """

    PENDING_TRANSFORMATION = "PENDING_TRANSFORMATION"
    TRANSFORMATION_IN_PROGRESS = "TRANSFORMATION_IN_PROGRESS"
    TRANSFORMATION_FAILED = "TRANSFORMATION_FAILED"
    TRANSFORMED = "TRANSFORMED"
    PROCESSED = "PROCESSED"
    ABORTED = "ABORTED"

    @classmethod
    def is_known(cls, name: str) -> bool:
        """Return ``True`` when *name* (any casing) names a member."""
        return name.upper() in cls.__members__


# ---------------------------------------------------------------------------
# Blob content stream
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BlobContent:
    """An open blob content stream returned by the API adapter."""

    content_type: str
    """Media type reported by the service (``Content-Type`` header)."""

    length: int | None
    """Content length in bytes, or ``None`` when not reported."""

    chunks: Iterator[bytes]
    """Lazily-read byte chunks.  Valid only while the stream is open."""


# ---------------------------------------------------------------------------
# Typed page wrapper
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BlobPage:
    """One page of ``blobs query`` results."""

    blobs: tuple[dict[str, object], ...]

    def __len__(self) -> int:
        return len(self.blobs)

    def __bool__(self) -> bool:
        return len(self.blobs) > 0
