import asyncio

import pytest
from mcp import types

from time_server.metrics import Metrics
from time_server.protocol import TimeToolServer
from time_server.timeservice import InvalidTimezoneError
from time_server.timeservice.service import TimeService


def make_server() -> TimeToolServer:
    return TimeToolServer(TimeService(), Metrics(), name="test", version="0.0.0")


def test_call_tool_returns_text_and_structured_content():
    content, structured = asyncio.run(
        make_server().call_tool("parse_time", {"time_string": "2024-07-04T12:00:00Z"})
    )
    assert structured == {
        "unix_timestamp": 1720094400,
        "rfc3339": "2024-07-04T12:00:00Z",
        "timezone": "UTC",
        "is_dst": False,
    }
    assert content[0].type == "text"
    assert "Unix timestamp: 1720094400" in content[0].text


def test_call_tool_raises_time_errors():
    with pytest.raises(InvalidTimezoneError):
        asyncio.run(make_server().call_tool("get_time", {"timezone": "Nowhere/Place"}))


def test_mcp_call_tool_request_reports_error_result():
    tool_server = make_server()
    handler = tool_server.server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="get_time", arguments={"timezone": "Nowhere/Place"}),
    )
    result = asyncio.run(handler(request))
    assert result.root.isError is True
    assert "Invalid timezone: Nowhere/Place" in result.root.content[0].text
