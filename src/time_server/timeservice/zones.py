"""Timezone resolution and DST transition search over the IANA database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import InvalidTimezoneError

DAY_SECONDS = 86_400
# A full year plus slack, so the next period is found from any point of a
# period without DST.
HORIZON_DAYS = 370


@dataclass(frozen=True)
class DstWindow:
    start: int
    end: int
    saving: timedelta


@dataclass(frozen=True)
class Transition:
    at: int
    enters_dst: bool
    offset_change: timedelta


def resolve_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA name, raising ``InvalidTimezoneError`` on failure."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidTimezoneError(f"Invalid timezone: {name}", {"timezone": name}) from exc


def at(tz: ZoneInfo, seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz)


def in_dst(tz: ZoneInfo, seconds: int) -> bool:
    return bool(at(tz, seconds).dst())


def next_transition(tz: ZoneInfo, after: int, horizon_days: int = HORIZON_DAYS) -> Transition | None:
    """First DST status change strictly after ``after``, within the horizon."""
    state = in_dst(tz, after)
    lo = after
    for _ in range(horizon_days):
        hi = lo + DAY_SECONDS
        if not _representable(tz, hi):
            return None
        if in_dst(tz, hi) != state:
            moment = _bisect(tz, lo, hi, state)
            before = at(tz, moment - 1).utcoffset() or timedelta()
            after_offset = at(tz, moment).utcoffset() or timedelta()
            return Transition(at=moment, enters_dst=not state, offset_change=after_offset - before)
        lo = hi
    return None


def previous_transition(tz: ZoneInfo, before: int, horizon_days: int = HORIZON_DAYS) -> int | None:
    """Start second of the DST status in effect at ``before``."""
    state = in_dst(tz, before)
    hi = before
    for _ in range(horizon_days):
        lo = hi - DAY_SECONDS
        if not _representable(tz, lo):
            return None
        if in_dst(tz, lo) != state:
            return _bisect(tz, lo, hi, not state)
        hi = lo
    return None


def dst_window(tz: ZoneInfo, reference: int) -> DstWindow | None:
    """The active DST period at ``reference``, else the next one within a year."""
    if in_dst(tz, reference):
        start = previous_transition(tz, reference)
        following = next_transition(tz, reference)
        if start is None or following is None:
            return None
        return DstWindow(start=start, end=following.at, saving=at(tz, reference).dst() or timedelta())

    entering = next_transition(tz, reference)
    if entering is None:
        return None
    leaving = next_transition(tz, entering.at)
    if leaving is None:
        return None
    return DstWindow(start=entering.at, end=leaving.at, saving=at(tz, entering.at).dst() or timedelta())


def _representable(tz: ZoneInfo, seconds: int) -> bool:
    # The search stops at the edges of the datetime range.
    try:
        at(tz, seconds)
    except (ValueError, OverflowError, OSError):
        return False
    return True


def _bisect(tz: ZoneInfo, lo: int, hi: int, lo_state: bool) -> int:
    # Invariant: status at lo is lo_state, status at hi is not.
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if in_dst(tz, mid) == lo_state:
            lo = mid
        else:
            hi = mid
    return hi
