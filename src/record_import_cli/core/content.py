"""Pure helpers for presenting blob data.

* Binary-content detection for the ``readContent`` terminal guard.
* Re-rendering of service timestamps in the local time zone.
"""

from __future__ import annotations

import mimetypes
from datetime import datetime
from typing import Any

BINARY_EXTENSION = ".bin"
TIMESTAMP_FIELDS: tuple[str, ...] = ("creationTime", "modificationTime")


def is_binary_content_type(content_type: str | None) -> bool:
    """Return ``True`` when *content_type* maps to the generic binary extension.

    Parameters (``; charset=...``) are ignored.  Unknown or missing
    types are not considered binary.
    """
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return mimetypes.guess_extension(media_type) == BINARY_EXTENSION


def to_local_iso(value: str) -> str:
    """Render an ISO-8601 timestamp in local time with offset and milliseconds.

    ``"2022-05-12T09:00:00.000Z"`` becomes e.g.
    ``"2022-05-12T12:00:00.000+03:00"``.  Values that do not parse are
    returned unchanged.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return value
    return parsed.astimezone().isoformat(timespec="milliseconds")


def localize_timestamps(metadata: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *metadata* with its timestamp fields localised."""
    result = dict(metadata)
    for field in TIMESTAMP_FIELDS:
        raw = result.get(field)
        if isinstance(raw, str):
            result[field] = to_local_iso(raw)
    return result
