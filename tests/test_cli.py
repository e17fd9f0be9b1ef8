import json

from fastapi.testclient import TestClient

from client.cli import build_parser, build_payload, main
from time_server.server import create_app
from time_server.settings import TimeServerSettings


def test_build_payload_casts_timestamp():
    args = build_parser().parse_args(["format_time", "--timestamp", "0", "--format", "Unix"])
    assert build_payload(args) == {"timestamp": 0, "format": "Unix"}


def test_cli_calls_tool(capsys):
    client = TestClient(create_app(TimeServerSettings()))
    code = main(
        ["parse_time", "--time-string", "2024-07-04T12:00:00Z", "--server-url", "http://testserver"],
        client=client,
    )
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["unix_timestamp"] == 1720094400


def test_cli_reports_tool_error(capsys):
    client = TestClient(create_app(TimeServerSettings()))
    code = main(["get_time", "--timezone", "Nowhere/Place", "--server-url", "http://testserver"], client=client)
    assert code == 1
    assert "INVALID_TIMEZONE" in capsys.readouterr().out
