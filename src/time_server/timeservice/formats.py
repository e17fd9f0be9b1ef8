"""Format catalogue: rendering and parsing of instants.

Instants are timezone-aware ``datetime`` objects with microsecond precision.
Integer epoch values are derived with integer arithmetic only, so no value
ever passes through a float on the way out.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo

RFC3339 = "RFC3339"
RFC3339_NANO = "RFC3339Nano"
UNIX = "Unix"
UNIX_MILLI = "UnixMilli"
UNIX_MICRO = "UnixMicro"
UNIX_NANO = "UnixNano"
LAYOUT = "Layout"

FORMATS: tuple[str, ...] = (RFC3339, RFC3339_NANO, UNIX, UNIX_MILLI, UNIX_MICRO, UNIX_NANO, LAYOUT)

# Nanoseconds per unit for the integer epoch formats.
UNIX_SCALES: dict[str, int] = {
    UNIX: 1_000_000_000,
    UNIX_MILLI: 1_000_000,
    UNIX_MICRO: 1_000,
    UNIX_NANO: 1,
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_RFC3339_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?([Zz]|[+-]\d{2}:\d{2})$"
)
_LAYOUT_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?: ([A-Za-z]{1,6}|[+-]\d{2}(?:\d{2})?))?$"
)
_LOCAL_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_INTEGER_RE = re.compile(r"^-?\d+$")

_UTC_NAMES = {"UTC", "GMT", "Z"}


def is_valid_format(name: str) -> bool:
    return name in FORMATS


def epoch_micros(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(microseconds=1)


def unix_seconds(moment: datetime) -> int:
    # Floor division keeps pre-epoch instants consistent with their fraction.
    return epoch_micros(moment) // 1_000_000


def from_epoch_micros(micros: int, tz: tzinfo) -> datetime:
    return (EPOCH + timedelta(microseconds=micros)).astimezone(tz)


def from_unix(value: int | float, tz: tzinfo) -> datetime:
    """Build an instant from epoch seconds, fractions allowed."""
    if isinstance(value, int):
        return from_epoch_micros(value * 1_000_000, tz)
    return from_epoch_micros(int(round(value * 1_000_000)), tz)


def format_offset(offset: timedelta | None, *, zulu: bool = False) -> str:
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if zulu and seconds == 0:
        return "Z"
    sign = "+" if seconds >= 0 else "-"
    hours, rem = divmod(abs(seconds), 3600)
    return f"{sign}{hours:02d}:{rem // 60:02d}"


def render(moment: datetime, fmt: str) -> str:
    """Render an aware instant in the given catalogue format."""
    if fmt == RFC3339:
        return _render_rfc3339(moment, fraction=False)
    if fmt == RFC3339_NANO:
        return _render_rfc3339(moment, fraction=True)
    if fmt in UNIX_SCALES:
        return str(epoch_micros(moment) * 1_000 // UNIX_SCALES[fmt])
    if fmt == LAYOUT:
        return f"{_date_part(moment)} {_clock_part(moment)} {moment.tzname()}"
    raise ValueError(f"Unsupported format: {fmt}")


def parse(text: str, fmt: str, tz: tzinfo) -> datetime:
    """Parse ``text`` strictly with one catalogue format.

    Strings carrying no offset are read in ``tz``. Raises ``ValueError`` when
    the text does not match the layout.
    """
    text = text.strip()
    if fmt in (RFC3339, RFC3339_NANO):
        return _parse_rfc3339(text).astimezone(tz)
    if fmt in UNIX_SCALES:
        if not _INTEGER_RE.match(text):
            raise ValueError(f"not an integer {fmt} timestamp: {text!r}")
        nanos = int(text) * UNIX_SCALES[fmt]
        return from_epoch_micros(nanos // 1_000, tz)
    if fmt == LAYOUT:
        return _parse_layout(text, tz)
    raise ValueError(f"Unsupported format: {fmt}")


def parse_local(text: str, tz: tzinfo) -> datetime:
    """Parse an ISO-8601 local date-time or a bare date, read in ``tz``."""
    text = text.strip()
    match = _LOCAL_RE.match(text)
    if match:
        year, month, day, hour, minute, second, fraction = match.groups()
        naive = datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second or 0),
            _micros(fraction),
        )
        return naive.replace(tzinfo=tz)
    match = _DATE_RE.match(text)
    if match:
        year, month, day = match.groups()
        return datetime(int(year), int(month), int(day), tzinfo=tz)
    raise ValueError(f"not a local date-time: {text!r}")


def parse_unix_auto(text: str, tz: tzinfo) -> datetime:
    """Parse an integer epoch value, guessing the unit from its magnitude."""
    text = text.strip()
    if not _INTEGER_RE.match(text):
        raise ValueError(f"not an integer timestamp: {text!r}")
    value = int(text)
    magnitude = abs(value)
    if magnitude < 10**11:
        fmt = UNIX
    elif magnitude < 10**14:
        fmt = UNIX_MILLI
    elif magnitude < 10**17:
        fmt = UNIX_MICRO
    else:
        fmt = UNIX_NANO
    return from_epoch_micros(value * UNIX_SCALES[fmt] // 1_000, tz)


def _render_rfc3339(moment: datetime, *, fraction: bool) -> str:
    text = f"{_date_part(moment)}T{_clock_part(moment)}"
    if fraction and moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + format_offset(moment.utcoffset(), zulu=True)


def _date_part(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def _clock_part(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"


def _micros(fraction: str | None) -> int:
    if not fraction:
        return 0
    return int(fraction[:6].ljust(6, "0"))


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339_RE.match(text)
    if not match:
        raise ValueError(f"not an RFC3339 time: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        tz: tzinfo = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if minutes >= 60:
            raise ValueError(f"invalid offset minutes: {offset!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        _micros(fraction),
        tzinfo=tz,
    )


def _parse_layout(text: str, tz: tzinfo) -> datetime:
    match = _LAYOUT_RE.match(text)
    if not match:
        raise ValueError(f"not a Layout time: {text!r}")
    year, month, day, hour, minute, second, abbreviation = match.groups()
    naive = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    moment = naive.replace(tzinfo=tz)
    if not abbreviation or moment.tzname() == abbreviation:
        return moment
    # The abbreviation picks the side of an ambiguous wall-clock hour.
    folded = naive.replace(tzinfo=tz, fold=1)
    if folded.tzname() == abbreviation:
        return folded
    if abbreviation.upper() in _UTC_NAMES:
        return naive.replace(tzinfo=timezone.utc).astimezone(tz)
    return moment
