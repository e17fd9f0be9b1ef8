from time_server.metrics import Metrics
from time_server.schemas import GetTimeInput, TimezoneInfoInput
from time_server.timeservice.service import TimeService
from time_server.tools import call_tool
from time_server.tools.time import describe_timezone_info, get_time, timezone_info


def test_time_tool_basic():
    service = TimeService()
    payload = GetTimeInput(timezone="UTC")
    result = get_time(payload, service, "trace")
    assert result.timezone == "UTC"
    assert result.format == "RFC3339"
    assert "T" in result.formatted_time
    assert result.unix_timestamp > 0


def test_timezone_info_text_summary():
    payload = TimezoneInfoInput(timezone="UTC")
    result = timezone_info(payload, TimeService(), "trace")
    text = describe_timezone_info(result, payload)
    assert "Timezone: UTC" in text
    assert "No DST transitions" in text


def test_call_tool_times_and_counts_dispatch():
    metrics = Metrics()
    call = call_tool(
        "format_time",
        {"timestamp": 0, "format": "RFC3339", "timezone": "UTC"},
        service=TimeService(),
        metrics=metrics,
    )
    assert call.result.formatted_time == "1970-01-01T00:00:00Z"
    assert call.duration_s >= 0
    assert call.latency_ms >= 0
    assert metrics.registry.get_sample_value(
        "mcp_time_tool_requests_total", {"tool": "format_time", "status": "success"}
    ) == 1.0
    assert metrics.registry.get_sample_value(
        "mcp_time_time_operation_duration_seconds_count", {"operation": "format_time", "status": "success"}
    ) == 1.0
