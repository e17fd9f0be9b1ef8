import asyncio

from time_server.metrics import Metrics
from time_server.protocol import TimeToolServer
from time_server.timeservice.service import TimeService
from time_server.tools import list_tool_specs


def test_tool_registry_matches_mcp_tools():
    tool_server = TimeToolServer(TimeService(), Metrics(), name="test", version="0.0.0")
    mcp_tools = asyncio.run(tool_server.list_tools())
    assert {tool.name for tool in mcp_tools} == {spec.name for spec in list_tool_specs()}
    assert {tool.name for tool in mcp_tools} == {"get_time", "format_time", "parse_time", "timezone_info"}
    for tool in mcp_tools:
        assert tool.inputSchema["type"] == "object"
        assert tool.outputSchema["type"] == "object"
