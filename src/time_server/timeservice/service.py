"""Time service: the four time query operations.

Every operation is a pure function of its input, the IANA database and the
injected clock. Failures raise the ``TimeServiceError`` subclasses from the
package root.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from ..schemas import (
    DstPeriod,
    DstTransition,
    FormatTimeInput,
    FormatTimeResult,
    GetTimeInput,
    GetTimeResult,
    ParseTimeInput,
    ParseTimeResult,
    TimezoneInfo,
    TimezoneInfoInput,
)
from . import InvalidFormatError, ParseFailureError
from .formats import (
    FORMATS,
    LAYOUT,
    RFC3339,
    UNIX,
    format_offset,
    from_unix,
    is_valid_format,
    parse,
    parse_local,
    parse_unix_auto,
    render,
    unix_seconds,
)
from .zones import at, dst_window, next_transition, resolve_timezone

Clock = Callable[[], datetime]
Parser = Callable[[str, ZoneInfo], datetime]

# Candidate layouts for parse_time without a format, in priority order.
AUTO_DETECT: tuple[tuple[str, Parser], ...] = (
    (RFC3339, lambda text, tz: parse(text, RFC3339, tz)),
    (LAYOUT, lambda text, tz: parse(text, LAYOUT, tz)),
    ("ISO8601", parse_local),
    (UNIX, parse_unix_auto),
)

# Accepted string timestamps for format_time; naive values are read as UTC.
TIMESTAMP_LAYOUTS: tuple[tuple[str, Parser], ...] = (
    (RFC3339, lambda text, tz: parse(text, RFC3339, tz)),
    ("ISO8601", parse_local),
    (LAYOUT, lambda text, tz: parse(text, LAYOUT, tz)),
    (UNIX, lambda text, tz: parse(text, UNIX, tz)),
)

UTC = ZoneInfo("UTC")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimeService:
    def __init__(
        self,
        default_timezone: str = "UTC",
        default_format: str = RFC3339,
        supported_formats: Iterable[str] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._default_timezone = default_timezone
        self._default_format = default_format
        self._supported_formats = tuple(supported_formats) if supported_formats else FORMATS
        self._clock = clock or _utc_now

    @property
    def supported_formats(self) -> tuple[str, ...]:
        return self._supported_formats

    def get_current_time(self, payload: GetTimeInput) -> GetTimeResult:
        tz_name = payload.timezone or self._default_timezone
        tz = resolve_timezone(tz_name)
        fmt = self._check_format(payload.format or self._default_format)
        now = self._clock().astimezone(tz)
        return GetTimeResult(
            formatted_time=render(now, fmt),
            timezone=tz_name,
            format=fmt,
            unix_timestamp=unix_seconds(now),
        )

    def format_time(self, payload: FormatTimeInput) -> FormatTimeResult:
        tz_name = payload.timezone or self._default_timezone
        tz = resolve_timezone(tz_name)
        fmt = self._check_format(payload.format)
        moment = self._coerce_timestamp(payload.timestamp, tz)
        return FormatTimeResult(
            formatted_time=render(moment, fmt),
            timezone=tz_name,
            format=fmt,
            unix_timestamp=unix_seconds(moment),
        )

    def parse_time(self, payload: ParseTimeInput) -> ParseTimeResult:
        tz_name = payload.timezone or self._default_timezone
        tz = resolve_timezone(tz_name)
        if payload.format:
            fmt = self._check_format(payload.format)
            try:
                moment = parse(payload.time_string, fmt, tz)
            except (ValueError, OverflowError) as exc:
                raise ParseFailureError(
                    f"Failed to parse {payload.time_string!r} as {fmt}: {exc}",
                    {"time_string": payload.time_string, "format": fmt},
                ) from exc
        else:
            moment = _first_match(payload.time_string, tz, AUTO_DETECT)
        return ParseTimeResult(
            unix_timestamp=unix_seconds(moment),
            rfc3339=render(moment, RFC3339),
            timezone=tz_name,
            is_dst=bool(moment.dst()),
        )

    def get_timezone_info(self, payload: TimezoneInfoInput) -> TimezoneInfo:
        tz = resolve_timezone(payload.timezone)
        reference = payload.reference_time or self._clock()
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=timezone.utc)
        try:
            moment = reference.astimezone(tz)
        except (ValueError, OverflowError) as exc:
            raise ParseFailureError(
                f"Reference time out of range: {reference.isoformat()}",
                {"reference_time": reference.isoformat()},
            ) from exc
        seconds = unix_seconds(moment)
        offset = moment.utcoffset()

        dst = None
        window = dst_window(tz, seconds)
        if window is not None:
            dst = DstPeriod(
                start=render(at(tz, window.start), RFC3339),
                end=render(at(tz, window.end), RFC3339),
                saving=int(window.saving.total_seconds()),
            )

        dst_transition = None
        transition = next_transition(tz, seconds)
        if transition is not None:
            dst_transition = DstTransition(
                next_transition=render(at(tz, transition.at), RFC3339),
                transition_type="enter_dst" if transition.enters_dst else "exit_dst",
                offset_change=int(transition.offset_change.total_seconds()),
            )

        return TimezoneInfo(
            name=payload.timezone,
            abbreviation=moment.tzname() or "",
            offset=format_offset(offset),
            offset_seconds=int(offset.total_seconds()) if offset is not None else 0,
            is_dst=bool(moment.dst()),
            dst=dst,
            dst_transition=dst_transition,
        )

    def _check_format(self, fmt: str) -> str:
        if not is_valid_format(fmt) or fmt not in self._supported_formats:
            raise InvalidFormatError(
                f"Invalid format: {fmt}. Supported formats: {', '.join(self._supported_formats)}",
                {"format": fmt},
            )
        return fmt

    def _coerce_timestamp(self, value: int | float | str, tz: ZoneInfo) -> datetime:
        # Naive strings read as UTC; the result may still leave the datetime
        # range once shifted into tz.
        try:
            if isinstance(value, str):
                return _first_match(value, UTC, TIMESTAMP_LAYOUTS).astimezone(tz)
            return from_unix(value, UTC).astimezone(tz)
        except (ValueError, OverflowError) as exc:
            raise ParseFailureError(f"Timestamp out of range: {value}", {"timestamp": value}) from exc


def _first_match(text: str, tz: ZoneInfo, candidates: tuple[tuple[str, Parser], ...]) -> datetime:
    for _name, parser in candidates:
        try:
            return parser(text, tz)
        except (ValueError, OverflowError):
            continue
    tried = ", ".join(name for name, _ in candidates)
    raise ParseFailureError(
        f"Unable to parse time string {text!r}; tried {tried}",
        {"time_string": text},
    )
