import json

from fastapi.testclient import TestClient
from starlette.responses import PlainTextResponse

from time_server.metrics import Metrics
from time_server.server import create_app
from time_server.settings import TimeServerSettings
from time_server.transport import TransportMetrics


def sample(metrics: Metrics, method: str, status: str) -> float | None:
    return metrics.registry.get_sample_value(
        "mcp_time_transport_requests_total",
        {"transport": "streamable", "method": method, "status": status},
    )


def test_transport_metrics_records_status():
    metrics = Metrics()
    ok = TestClient(TransportMetrics(PlainTextResponse("fine"), metrics, "streamable"))
    failing = TestClient(TransportMetrics(PlainTextResponse("nope", status_code=404), metrics, "streamable"))

    assert ok.get("/").status_code == 200
    assert failing.post("/").status_code == 404
    assert ok.options("/").status_code == 200

    assert sample(metrics, "GET", "success") == 1.0
    assert sample(metrics, "POST", "error") == 1.0
    assert sample(metrics, "OPTIONS", "success") == 1.0


def test_transport_routes_are_mounted():
    app = create_app(TimeServerSettings())
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {"/sse", "/messages", "/streamable", "/mcp", "/health", "/tools"} <= paths


MCP_HEADERS = {"accept": "application/json, text/event-stream", "content-type": "application/json"}


def rpc_result(resp) -> dict:
    """Pull the JSON-RPC message out of a JSON or event-stream response."""
    if resp.headers["content-type"].startswith("application/json"):
        return resp.json()
    for line in resp.text.splitlines():
        if line.startswith("data:"):
            return json.loads(line[len("data:"):])
    raise AssertionError(f"no JSON-RPC message in {resp.text!r}")


def test_streamable_http_round_trip():
    metrics = Metrics()
    with TestClient(create_app(TimeServerSettings(), metrics=metrics)) as client:
        init = client.post(
            "/mcp",
            headers=MCP_HEADERS,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "initialize",
                "params": {
                    "protocolVersion": "2025-03-26",
                    "capabilities": {},
                    "clientInfo": {"name": "time-tests", "version": "0"},
                },
            },
        )
        assert init.status_code == 200
        init_message = rpc_result(init)
        assert init_message["id"] == 1
        assert "tools" in init_message["result"]["capabilities"]

        listed = client.post(
            "/mcp",
            headers=MCP_HEADERS,
            json={"jsonrpc": "2.0", "id": 2, "method": "tools/list", "params": {}},
        )
        names = {tool["name"] for tool in rpc_result(listed)["result"]["tools"]}
        assert names == {"get_time", "format_time", "parse_time", "timezone_info"}

        called = client.post(
            "/streamable",
            headers=MCP_HEADERS,
            json={
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "parse_time", "arguments": {"time_string": "2024-07-04T12:00:00Z"}},
            },
        )
        assert called.status_code == 200
        result = rpc_result(called)["result"]
        assert result["isError"] is False
        assert result["structuredContent"]["unix_timestamp"] == 1720094400
        assert result["structuredContent"]["rfc3339"] == "2024-07-04T12:00:00Z"

    assert sample(metrics, "POST", "success") == 3.0
    assert metrics.registry.get_sample_value(
        "mcp_time_tool_requests_total", {"tool": "parse_time", "status": "success"}
    ) == 1.0


def test_streamable_http_reports_tool_errors():
    with TestClient(create_app(TimeServerSettings())) as client:
        called = client.post(
            "/mcp",
            headers=MCP_HEADERS,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "get_time", "arguments": {"timezone": "Nowhere/Place"}},
            },
        )
    result = rpc_result(called)["result"]
    assert result["isError"] is True
    assert "Invalid timezone: Nowhere/Place" in result["content"][0]["text"]
