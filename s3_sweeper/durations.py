from __future__ import annotations
"""Age threshold parsing and cutoff computation."""
import re
from datetime import datetime, timedelta, timezone

TOKEN_RE = re.compile(r"\s*(?P<num>\d+)\s*(?P<unit>[a-zA-Z]*)\s*")

SECOND = timedelta(seconds=1)
DAY = timedelta(days=1)

UNITS = {
    "": SECOND,
    "us": timedelta(microseconds=1),
    "usec": timedelta(microseconds=1),
    "microsecond": timedelta(microseconds=1),
    "microseconds": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "msec": timedelta(milliseconds=1),
    "millisecond": timedelta(milliseconds=1),
    "milliseconds": timedelta(milliseconds=1),
    "s": SECOND,
    "sec": SECOND,
    "secs": SECOND,
    "second": SECOND,
    "seconds": SECOND,
    "m": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "mins": timedelta(minutes=1),
    "minute": timedelta(minutes=1),
    "minutes": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "hrs": timedelta(hours=1),
    "hour": timedelta(hours=1),
    "hours": timedelta(hours=1),
    "d": DAY,
    "day": DAY,
    "days": DAY,
    "w": 7 * DAY,
    "week": 7 * DAY,
    "weeks": 7 * DAY,
    "mon": 30 * DAY,
    "month": 30 * DAY,
    "months": 30 * DAY,
    "y": 365 * DAY,
    "year": 365 * DAY,
    "years": 365 * DAY,
}

EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


class InvalidDuration(ValueError):
    """Raised when an age threshold expression cannot be parsed."""


def parse_duration(text: str) -> timedelta:
    """Parse expressions such as ``1d2h30m``, ``1y`` or ``90 min`` into a timedelta.

    A month counts as 30 days and a year as 365 days.

    Raises:
        InvalidDuration: when the text is empty, contains anything other than
            ``<number><unit>`` tokens, adds up to zero, or is too large to
            represent.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidDuration("duration must be a non-empty string")

    total = timedelta(0)
    position = 0
    while position < len(text):
        match = TOKEN_RE.match(text, position)
        if match is None or match.end() == position:
            raise InvalidDuration(f"invalid duration: {text!r}")
        unit = match.group("unit").lower()
        if unit not in UNITS:
            raise InvalidDuration(f"unknown unit {match.group('unit')!r} in duration {text!r}")
        try:
            total += int(match.group("num")) * UNITS[unit]
        except OverflowError:
            raise InvalidDuration(f"duration is too large: {text!r}") from None
        position = match.end()

    if total <= timedelta(0):
        raise InvalidDuration(f"duration must be greater than zero: {text!r}")
    return total


def compute_cutoff(duration: timedelta, now: datetime | None = None) -> datetime:
    """Return ``now - duration`` in UTC, truncated to whole seconds.

    Raises:
        InvalidDuration: when the cutoff would fall before the earliest
            representable date.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    if duration > now - EPOCH_MIN:
        raise InvalidDuration(f"duration {duration} reaches before {EPOCH_MIN.date()}")
    return (now - duration).replace(microsecond=0)
