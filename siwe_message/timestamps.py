"""ISO-8601 conversion of the message timestamps."""

import re
from datetime import datetime, timezone

from .defs import DATETIME

_DATETIME_EXPR = re.compile(DATETIME)


def utc_now() -> datetime:
    """Get the current datetime as UTC timezone."""
    return datetime.now(tz=timezone.utc)


def datetime_to_iso8601(dt: datetime) -> str:
    """Render a datetime as a UTC ISO-8601 string with millisecond precision."""
    return (
        dt.astimezone(tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def iso8601_to_datetime(val: str) -> datetime:
    """Convert an ISO-8601 string into an aware datetime object.

    Only the profile produced by :func:`datetime_to_iso8601` is accepted: a full
    date and time with fractional seconds and the ``Z`` designator, e.g.
    ``2021-12-07T18:28:18.807Z``. Anything else raises ``ValueError``.
    """
    match = _DATETIME_EXPR.fullmatch(val)
    if not match:
        raise ValueError(f"`{val}` is not an ISO-8601 UTC datetime")

    # NOTE: datetime only carries microseconds, extra digits are truncated
    microsecond = int(match.group("fraction")[:6].ljust(6, "0"))
    return datetime(
        int(match.group("year")),
        int(match.group("month")),
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("minute")),
        int(match.group("second")),
        microsecond,
        tzinfo=timezone.utc,
    )
