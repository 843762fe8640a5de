"""Parsing of the loosely formatted DWD timestamps.

DWD publishes ``last_update``/``next_update`` as e.g. ``2019-02-21 11:00 Uhr``.
The fields are read positionally: year, month, day, hour, minute.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from pollenflug.errors import MalformedTimestampError

DEFAULT_TIMEZONE = "Europe/Berlin"

_SEPARATORS = re.compile(r"[ .+\-()*/:?]")


def parse_timestamp(text: str | None, tz: str = DEFAULT_TIMEZONE) -> datetime:
    """
    Parse an upstream timestamp into an aware datetime.

    Args:
        text: Raw timestamp string.
        tz: IANA zone the publisher's wall-clock time is in.

    Raises:
        MalformedTimestampError: If fewer than five numeric fields are present
            or they don't form a valid date.
    """
    if not text:
        msg = "Empty timestamp"
        raise MalformedTimestampError(msg)

    fields = [f for f in _SEPARATORS.split(text.strip()) if f]
    try:
        year, month, day, hour, minute = (int(f) for f in fields[:5])
        return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(tz))
    except ValueError as e:
        msg = f"Cannot parse timestamp {text!r}: {e}"
        raise MalformedTimestampError(msg) from e


def forecast_dates(last_update: str | None, tz: str = DEFAULT_TIMEZONE) -> tuple[str, str]:
    """Calendar dates (ISO) for ``today`` and ``tomorrow`` of a dataset."""
    today = parse_timestamp(last_update, tz).date()
    tomorrow = today + timedelta(days=1)
    return today.isoformat(), tomorrow.isoformat()
