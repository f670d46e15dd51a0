"""Pure construction of ``blobs query`` parameters from CLI flags.

Every function in this module is a **pure** transformation — no I/O,
no side effects, no clock reads, and it never raises for bad input.
Malformed values are dropped silently: a timestamp or state that does
not validate simply means "no filter on that field".

Pipeline (enforced by :func:`build_blob_query`):

1. **Validate** — state against :class:`BlobState`, timestamps against
   the date / date-time patterns.
2. **Range** — fold validated ``after`` / ``before`` / ``day`` values
   into a two-element ``[from, to]`` window.
3. **Assemble** — keep only the keys that resolved to something.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

from record_import_cli.core.models import BlobState

RANGE_FLOOR = "1990-01-01"
RANGE_CEILING = "3000-01-01"
DAY_START_SUFFIX = "T00:00:00+01:00"
DAY_END_SUFFIX = "T23:59:59+01:00"

_DATE_RE = re.compile(r"^\d{4}-[01]?\d-[0-3]?\d$")
_DATETIME_RE = re.compile(
    r"^(\d{4})-([01]?\d)-([0-3]?\d)"
    r"T([0-2]\d):([0-6]\d):([0-6]\d)"
    r"([+-])([0-2]\d)(?::?([0-5]\d))?"
)


# ---------------------------------------------------------------------------
# 1. Validate
# ---------------------------------------------------------------------------

def validate_state(state: str | None) -> str | None:
    """Return *state* unchanged if it names a known blob state, else ``None``.

    The membership check is case-insensitive but the returned value
    keeps the caller's casing.
    """
    if not state:
        return None
    return state if BlobState.is_known(state) else None


def validate_timestamp(value: str | None, accept_hours: bool = False) -> str | None:
    """Validate a timestamp flag value.

    * ``YYYY-MM-DD`` is returned verbatim.
    * ``YYYY-MM-DDThh:mm:ss±hh[:mm]`` is accepted only when
      *accept_hours* is true, and is normalised to a UTC instant
      (``2022-05-12T09:00:00.000Z``).
    * Anything else yields ``None``.
    """
    if value is None:
        return None

    if accept_hours:
        match = _DATETIME_RE.match(value)
        if match is not None:
            return _to_utc_instant(match)

    if _DATE_RE.match(value):
        return value

    return None


def _to_utc_instant(match: re.Match[str]) -> str | None:
    """Convert a date-time match to an ISO-8601 UTC string, or ``None``."""
    year, month, day, hour, minute, second, sign, off_h, off_m = match.groups()
    offset = timedelta(hours=int(off_h), minutes=int(off_m or 0))
    if sign == "-":
        offset = -offset
    try:
        moment = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            tzinfo=timezone(offset),
        )
        utc = moment.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # Impossible calendar/clock values, or an instant outside years 1-9999.
        return None
    return utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


# ---------------------------------------------------------------------------
# 2. Range
# ---------------------------------------------------------------------------

def build_time_range(
    after: str | None,
    before: str | None,
    day: str | None,
) -> list[str] | None:
    """Fold validated bounds into a ``[from, to]`` window.

    Precedence: *day* wins over *after*/*before*; a missing bound is
    replaced by :data:`RANGE_FLOOR` or :data:`RANGE_CEILING`.
    """
    if not after and not before and not day:
        return None
    if day:
        return [f"{day}{DAY_START_SUFFIX}", f"{day}{DAY_END_SUFFIX}"]
    if not after:
        return [RANGE_FLOOR, before]  # type: ignore[list-item]
    if not before:
        return [after, RANGE_CEILING]
    return [after, before]


# ---------------------------------------------------------------------------
# 3. Assemble
# ---------------------------------------------------------------------------

def build_blob_query(
    *,
    state: str | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
    modified_after: str | None = None,
    modified_before: str | None = None,
    created_day: str | None = None,
    modified_day: str | None = None,
) -> dict[str, Any]:
    """Build the query mapping passed to ``RecordImportApi.query_blobs``.

    The result holds at most ``state``, ``creationTime`` and
    ``modificationTime``, in that order.  All inputs absent → ``{}``.
    """
    candidates: tuple[tuple[str, Any], ...] = (
        ("state", validate_state(state)),
        (
            "creationTime",
            build_time_range(
                validate_timestamp(created_after, accept_hours=True),
                validate_timestamp(created_before, accept_hours=True),
                validate_timestamp(created_day),
            ),
        ),
        (
            "modificationTime",
            build_time_range(
                validate_timestamp(modified_after, accept_hours=True),
                validate_timestamp(modified_before, accept_hours=True),
                validate_timestamp(modified_day),
            ),
        ),
    )
    return {name: value for name, value in candidates if value}
