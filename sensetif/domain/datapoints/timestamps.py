"""
Reading Timestamps
==================
Turns the timestamp extracted from an acquired document into an aware UTC
datetime according to the datasource's ``TimestampType``.

Extraction itself (evaluating ``timestampExpression`` against the document)
belongs to the acquisition side; this module only interprets the result.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sensetif.domain.exceptions import TimestampError
from sensetif.enums import TimestampType
from sensetif.utils.time import coerce_datetime, ensure_utc, utc_now

# e.g. 2021-06-01T10:00:00+02:00[Europe/Stockholm]
_ZONE_SUFFIX = re.compile(r"^(?P<stamp>[^\[]+)\[(?P<zone>[^\]]+)\]$")


def _epoch(raw: Any, divisor: float) -> datetime:
    if isinstance(raw, bool):
        raise TimestampError(f"Not an epoch timestamp: {raw!r}")
    try:
        seconds = float(raw) / divisor
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        raise TimestampError(f"Not an epoch timestamp: {raw!r}", detail={"raw": str(raw)}) from None


def _iso_offset(raw: Any) -> datetime:
    parsed = coerce_datetime(raw)
    if parsed is None:
        raise TimestampError(f"Not an ISO-8601 timestamp: {raw!r}", detail={"raw": str(raw)})
    return parsed


def _iso_zoned(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    match = _ZONE_SUFFIX.match(str(raw).strip())
    if match is None:
        return _iso_offset(raw)

    stamp = match.group("stamp").strip()
    if stamp.endswith("Z"):
        stamp = stamp[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(stamp)
        zone = ZoneInfo(match.group("zone"))
    except (ValueError, OSError, ZoneInfoNotFoundError):
        raise TimestampError(f"Not a zoned ISO-8601 timestamp: {raw!r}", detail={"raw": str(raw)}) from None

    # An explicit offset wins over the zone id
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def resolve_timestamp(
    timestamp_type: TimestampType,
    raw: Any = None,
    poll_time: datetime | None = None,
) -> datetime:
    """
    Interpret an extracted timestamp.

    Args:
        timestamp_type: How ``raw`` is encoded
        raw: Value extracted by the timestamp expression (ignored for polltime)
        poll_time: When the document was fetched, defaults to now

    Returns:
        Aware UTC datetime

    Raises:
        TimestampError: ``raw`` cannot be read as ``timestamp_type``
    """
    if timestamp_type is TimestampType.POLL_TIME:
        return ensure_utc(poll_time) if poll_time else utc_now()
    if raw is None:
        raise TimestampError(f"Missing timestamp for {timestamp_type.value}")
    if timestamp_type is TimestampType.EPOCH_MILLIS:
        return _epoch(raw, 1000.0)
    if timestamp_type is TimestampType.EPOCH_SECONDS:
        return _epoch(raw, 1.0)
    if timestamp_type is TimestampType.ISO8601_ZONED:
        return _iso_zoned(raw)
    return _iso_offset(raw)
