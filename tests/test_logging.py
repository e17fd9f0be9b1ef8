import json
import logging

from time_server.logging import JsonFormatter, configure_logging, get_logger, parse_level


def test_json_formatter_flattens_extra():
    record = logging.LogRecord("time_server.tools", logging.INFO, __file__, 1, "tool_call", None, None)
    record.extra = {"tool": "get_time", "latency_ms": 3}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "tool_call"
    assert payload["level"] == "info"
    assert payload["tool"] == "get_time"
    assert payload["latency_ms"] == 3
    assert payload["ts"].endswith("Z")


def test_configure_logging_sets_level_and_single_handler():
    root = configure_logging("debug", "console")
    configure_logging("warn", "json")
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert get_logger("server").name == "time_server.server"
    assert parse_level("nonsense") == logging.INFO
    root.handlers = []
    root.propagate = True
    root.setLevel(logging.NOTSET)
