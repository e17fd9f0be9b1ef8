"""Tool registry for the MCP time server."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable

from pydantic import BaseModel

from ..logging import get_logger
from ..metrics import Metrics
from ..schemas import (
    FormatTimeInput,
    FormatTimeResult,
    GetTimeInput,
    GetTimeResult,
    ParseTimeInput,
    ParseTimeResult,
    TimezoneInfo,
    TimezoneInfoInput,
    ToolSpec,
)
from ..timeservice.service import TimeService
from .time import (
    describe_format_time,
    describe_get_time,
    describe_parse_time,
    describe_timezone_info,
    format_time,
    get_time,
    parse_time,
    timezone_info,
)

logger = get_logger("tools")

ToolHandler = Callable[[Any, TimeService, str], BaseModel]

TOOL_SPECS: dict[str, ToolSpec] = {
    "get_time": ToolSpec(
        name="get_time",
        description="Get the current time in a specified timezone and format",
        operation="get_current_time",
        input_model=GetTimeInput,
        output_model=GetTimeResult,
        render_text=describe_get_time,
    ),
    "format_time": ToolSpec(
        name="format_time",
        description="Format a timestamp into a specified format and timezone",
        operation="format_time",
        input_model=FormatTimeInput,
        output_model=FormatTimeResult,
        render_text=describe_format_time,
    ),
    "parse_time": ToolSpec(
        name="parse_time",
        description="Parse a time string and return timestamp information",
        operation="parse_time",
        input_model=ParseTimeInput,
        output_model=ParseTimeResult,
        render_text=describe_parse_time,
    ),
    "timezone_info": ToolSpec(
        name="timezone_info",
        description="Get detailed information about a timezone",
        operation="get_timezone_info",
        input_model=TimezoneInfoInput,
        output_model=TimezoneInfo,
        render_text=describe_timezone_info,
    ),
}

TOOL_HANDLERS: dict[str, ToolHandler] = {
    "get_time": get_time,
    "format_time": format_time,
    "parse_time": parse_time,
    "timezone_info": timezone_info,
}


class UnknownToolError(LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


@dataclass(frozen=True)
class ToolCall:
    """A completed tool invocation."""
    spec: ToolSpec
    payload: BaseModel
    result: BaseModel
    duration_s: float

    @property
    def latency_ms(self) -> int:
        return int(self.duration_s * 1000)

    def text(self) -> str:
        return self.spec.render_text(self.result, self.payload)


def get_tool_spec(name: str) -> ToolSpec | None:
    return TOOL_SPECS.get(name)


def get_tool_handler(name: str) -> ToolHandler | None:
    return TOOL_HANDLERS.get(name)


def list_tool_specs() -> list[ToolSpec]:
    return list(TOOL_SPECS.values())


def call_tool(
    name: str,
    args: dict[str, Any] | None,
    *,
    service: TimeService,
    metrics: Metrics,
    trace_id: str = "-",
) -> ToolCall:
    """Validate ``args``, run the tool and record its timing.

    Validation and time service errors propagate to the caller after being
    counted and logged.
    """
    spec = get_tool_spec(name)
    handler = get_tool_handler(name)
    if not spec or not handler:
        raise UnknownToolError(name)

    start = perf_counter()
    try:
        payload = spec.input_model.model_validate(args or {})
        result = handler(payload, service, trace_id)
    except Exception as exc:
        duration_s = perf_counter() - start
        metrics.record_tool_request(spec.name, "error", duration_s)
        metrics.record_time_operation(spec.operation, "error", duration_s)
        logger.error(
            f"{spec.name} failed",
            extra={
                "extra": {
                    "trace_id": trace_id,
                    "tool": spec.name,
                    "error": str(exc),
                    "error_code": getattr(exc, "code", type(exc).__name__),
                }
            },
        )
        raise

    duration_s = perf_counter() - start
    metrics.record_tool_request(spec.name, "success", duration_s)
    metrics.record_time_operation(spec.operation, "success", duration_s)
    return ToolCall(spec=spec, payload=payload, result=result, duration_s=duration_s)
