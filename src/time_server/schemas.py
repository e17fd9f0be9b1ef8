"""Shared tool schemas (single source of truth).

The MCP surface, the JSON tool endpoint and the CLI client all read these
models to avoid drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

FORMAT_HELP = "RFC3339, RFC3339Nano, Unix, UnixMilli, UnixMicro, UnixNano or Layout"
TIMEZONE_HELP = "IANA timezone name (e.g. 'America/New_York', 'Europe/London')"


class ToolError(BaseModel):
    """Normalized error payload returned by tools."""
    code: str
    message: str
    details: dict[str, Any] | None = None


class ToolMeta(BaseModel):
    """Metadata attached to tool responses for observability."""
    tool_name: str
    trace_id: str
    latency_ms: int | None = None


class ToolResponse(BaseModel):
    """Unified response wrapper for the JSON tool endpoint."""
    ok: bool
    data: Any | None = None
    error: ToolError | None = None
    meta: ToolMeta


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class GetTimeInput(_Record):
    """Input for get_time."""
    timezone: str | None = Field(default=None, description=f"{TIMEZONE_HELP}. Defaults to the server default.")
    format: str | None = Field(default=None, description=f"Output format: {FORMAT_HELP}. Defaults to RFC3339.")


class FormatTimeInput(_Record):
    """Input for format_time."""
    timestamp: int | float | str = Field(
        ...,
        description="Unix timestamp in seconds, or an RFC3339 / ISO 8601 date-time string",
    )
    format: str = Field(..., description=f"Output format: {FORMAT_HELP}")
    timezone: str | None = Field(default=None, description=f"{TIMEZONE_HELP} for the output")


class ParseTimeInput(_Record):
    """Input for parse_time."""
    time_string: str = Field(..., description="Time string to parse")
    format: str | None = Field(
        default=None,
        description=f"Expected format ({FORMAT_HELP}). Auto-detected when omitted.",
    )
    timezone: str | None = Field(
        default=None,
        description=f"{TIMEZONE_HELP} used for strings without an offset",
    )


class TimezoneInfoInput(_Record):
    """Input for timezone_info."""
    timezone: str = Field(..., description=TIMEZONE_HELP)
    reference_time: datetime | None = Field(
        default=None,
        description="Reference instant (RFC3339). Defaults to the current time.",
    )


class GetTimeResult(_Record):
    """Output for get_time."""
    formatted_time: str
    timezone: str
    format: str
    unix_timestamp: int


class FormatTimeResult(_Record):
    """Output for format_time."""
    formatted_time: str
    timezone: str
    format: str
    unix_timestamp: int


class ParseTimeResult(_Record):
    """Output for parse_time."""
    unix_timestamp: int
    rfc3339: str
    timezone: str
    is_dst: bool


class DstPeriod(_Record):
    """Bounds of the active or next DST period."""
    start: str
    end: str
    saving: int = Field(..., description="Offset delta during the period, in seconds")


class DstTransition(_Record):
    """Next change of DST status after the reference instant."""
    next_transition: str
    transition_type: Literal["enter_dst", "exit_dst"]
    offset_change: int = Field(..., description="UTC offset change, in seconds")


class TimezoneInfo(_Record):
    """Output for timezone_info."""
    name: str
    abbreviation: str
    offset: str
    offset_seconds: int
    is_dst: bool
    dst: DstPeriod | None = None
    dst_transition: DstTransition | None = None


@dataclass(frozen=True)
class ToolSpec:
    """Tool registry metadata shared by the MCP and JSON surfaces."""
    name: str
    description: str
    operation: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    render_text: Callable[[Any, Any], str]
