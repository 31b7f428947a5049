"""Time unit conversion and datetime formatting helpers."""

import datetime
import enum


class TimeUnit(str, enum.Enum):
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"


SECONDS_PER_UNIT = {
    TimeUnit.SECOND: 1,
    TimeUnit.MINUTE: 60,
    TimeUnit.HOUR: 3600,
    TimeUnit.DAY: 86400,
    TimeUnit.WEEK: 604800,
}


def in_seconds(value: int, unit) -> int:
    """Convert ``value`` expressed in ``unit`` into seconds.

    >>> in_seconds(1, "hour")
    3600
    >>> in_seconds(2, TimeUnit.WEEK)
    1209600
    """
    try:
        factor = SECONDS_PER_UNIT[TimeUnit(unit)]
    except ValueError:
        raise ValueError(f"unknown time unit {unit!r}") from None
    return value * factor


def datetime_to_string(value: datetime.datetime) -> str:
    """Render a datetime as ``YYYY-MM-DD HH:MM:SS``, with ``Z`` for UTC.

    >>> datetime_to_string(datetime.datetime(2020, 1, 1, 1, 0, tzinfo=datetime.timezone.utc))
    '2020-01-01 01:00:00Z'
    """
    text = value.isoformat(" ")
    if value.utcoffset() == datetime.timedelta(0):
        return text[: -len("+00:00")] + "Z"
    return text
