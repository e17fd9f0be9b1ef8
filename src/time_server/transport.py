"""HTTP transports for the MCP server.

SSE lives at ``/sse`` with client posts on ``/messages/``; stateless
streamable HTTP lives at ``/streamable`` with ``/mcp`` as an alias. Every
transport route is wrapped with request metrics.
"""

from __future__ import annotations

import time

from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.responses import Response
from starlette.routing import BaseRoute, Mount, Route
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .logging import get_logger
from .metrics import Metrics
from .protocol import TimeToolServer

logger = get_logger("transport")

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"
STREAMABLE_PATHS = ("/streamable", "/mcp")


class TransportMetrics:
    """ASGI wrapper counting transport requests by final HTTP status."""

    def __init__(self, app: ASGIApp, metrics: Metrics, transport: str) -> None:
        self.app = app
        self.metrics = metrics
        self.transport = transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        start = time.perf_counter()
        logger.debug(
            "MCP transport request",
            extra={
                "extra": {
                    "transport": self.transport,
                    "method": method,
                    "path": scope.get("path"),
                    "remote_addr": _client(scope),
                }
            },
        )

        if method == "OPTIONS":
            await Response(status_code=200)(scope, receive, send)
            self.metrics.record_transport_request(self.transport, method, "success")
            return

        status_code = 200

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        failed = True
        try:
            await self.app(scope, receive, send_wrapper)
            failed = status_code >= 400
        finally:
            self.metrics.record_transport_request(self.transport, method, "error" if failed else "success")
            logger.debug(
                "MCP transport request completed",
                extra={
                    "extra": {
                        "transport": self.transport,
                        "method": method,
                        "status": status_code,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                    }
                },
            )


class SseApp:
    def __init__(self, tool_server: TimeToolServer, transport: SseServerTransport) -> None:
        self._server = tool_server.server
        self._transport = transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        async with self._transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
            await self._server.run(read_stream, write_stream, self._server.create_initialization_options())


class StreamableHTTPApp:
    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self._session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._session_manager.handle_request(scope, receive, send)


class McpTransports:
    """Routes for both MCP transports plus the session manager they need."""

    def __init__(self, tool_server: TimeToolServer, metrics: Metrics) -> None:
        self.session_manager = StreamableHTTPSessionManager(
            app=tool_server.server,
            event_store=None,
            json_response=False,
            stateless=True,
        )
        sse = SseServerTransport(MESSAGES_PATH)
        streamable = TransportMetrics(StreamableHTTPApp(self.session_manager), metrics, "streamable")

        self.routes: list[BaseRoute] = [
            Route(SSE_PATH, endpoint=TransportMetrics(SseApp(tool_server, sse), metrics, "sse"), methods=["GET"]),
            Mount(MESSAGES_PATH, app=TransportMetrics(sse.handle_post_message, metrics, "sse")),
        ]
        self.routes.extend(Route(path, endpoint=streamable) for path in STREAMABLE_PATHS)

    @property
    def paths(self) -> list[str]:
        return [SSE_PATH, *STREAMABLE_PATHS]


def _client(scope: Scope) -> str | None:
    client = scope.get("client")
    if not client:
        return None
    host, port = client
    return f"{host}:{port}"
