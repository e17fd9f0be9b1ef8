"""MCP server binding for the tool registry.

``tools/list`` and ``tools/call`` are answered from the same ``ToolSpec``
registry that backs the JSON endpoint.
"""

from __future__ import annotations

import uuid
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server

from .logging import get_logger
from .metrics import Metrics
from .timeservice.service import TimeService
from .tools import call_tool, list_tool_specs

logger = get_logger("protocol")


class TimeToolServer:
    def __init__(self, service: TimeService, metrics: Metrics, name: str, version: str) -> None:
        self._service = service
        self._metrics = metrics
        self.server: Server = Server(name, version=version)
        self.server.list_tools()(self.list_tools)
        self.server.call_tool()(self.call_tool)

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=spec.name,
                description=spec.description,
                inputSchema=spec.input_model.model_json_schema(),
                outputSchema=spec.output_model.model_json_schema(),
            )
            for spec in list_tool_specs()
        ]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> tuple[list[types.TextContent], dict[str, Any]]:
        # Raised errors become isError results carrying the message.
        trace_id = str(uuid.uuid4())
        call = call_tool(name, arguments, service=self._service, metrics=self._metrics, trace_id=trace_id)
        logger.debug(
            "mcp_tool_call",
            extra={"extra": {"trace_id": trace_id, "tool": name, "latency_ms": call.latency_ms}},
        )
        content = [types.TextContent(type="text", text=call.text())]
        return content, call.result.model_dump(mode="json")
