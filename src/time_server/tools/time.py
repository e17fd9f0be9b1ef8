"""Time tools: thin handlers over ``TimeService`` plus text summaries."""

from __future__ import annotations

from ..schemas import (
    FormatTimeInput,
    FormatTimeResult,
    GetTimeInput,
    GetTimeResult,
    ParseTimeInput,
    ParseTimeResult,
    TimezoneInfo,
    TimezoneInfoInput,
)
from ..timeservice.service import TimeService


def get_time(payload: GetTimeInput, service: TimeService, _trace_id: str) -> GetTimeResult:
    return service.get_current_time(payload)


def format_time(payload: FormatTimeInput, service: TimeService, _trace_id: str) -> FormatTimeResult:
    return service.format_time(payload)


def parse_time(payload: ParseTimeInput, service: TimeService, _trace_id: str) -> ParseTimeResult:
    return service.parse_time(payload)


def timezone_info(payload: TimezoneInfoInput, service: TimeService, _trace_id: str) -> TimezoneInfo:
    return service.get_timezone_info(payload)


def describe_get_time(result: GetTimeResult, _payload: GetTimeInput) -> str:
    return f"Current time: {result.formatted_time}\nTimezone: {result.timezone}\nFormat: {result.format}"


def describe_format_time(result: FormatTimeResult, payload: FormatTimeInput) -> str:
    return (
        f"Formatted time: {result.formatted_time}\nOriginal: {payload.timestamp}\n"
        f"Timezone: {result.timezone}\nFormat: {result.format}"
    )


def describe_parse_time(result: ParseTimeResult, _payload: ParseTimeInput) -> str:
    return (
        "Parsed time:\n"
        f"- Unix timestamp: {result.unix_timestamp}\n"
        f"- RFC3339: {result.rfc3339}\n"
        f"- Timezone: {result.timezone}\n"
        f"- Is DST: {str(result.is_dst).lower()}"
    )


def describe_timezone_info(result: TimezoneInfo, _payload: TimezoneInfoInput) -> str:
    dst_line = "No DST transitions"
    if result.dst is not None:
        dst_line = f"DST: {result.dst.start} to {result.dst.end} (saving {result.dst.saving}s)"
    return (
        f"Timezone: {result.name}\nAbbreviation: {result.abbreviation}\n"
        f"Offset: {result.offset}\nCurrent DST: {str(result.is_dst).lower()}\n{dst_line}"
    )
