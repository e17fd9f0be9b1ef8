"""FastAPI app for the MCP time server.

Serves the MCP transports, a health check, Prometheus metrics and a plain
JSON tool endpoint.
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .logging import get_logger
from .metrics import Metrics
from .protocol import TimeToolServer
from .schemas import ToolError, ToolMeta, ToolResponse
from .settings import TimeServerSettings, get_settings
from .timeservice import TimeServiceError
from .timeservice.service import TimeService
from .tools import call_tool, get_tool_spec, list_tool_specs
from .transport import McpTransports

logger = get_logger("server")


def build_time_service(settings: TimeServerSettings) -> TimeService:
    return TimeService(
        default_timezone=settings.time.default_timezone,
        default_format=settings.time.default_format,
        supported_formats=settings.time.supported_formats,
    )


def create_app(
    settings: TimeServerSettings | None = None,
    *,
    service: TimeService | None = None,
    metrics: Metrics | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    service = service or build_time_service(settings)
    metrics = metrics or Metrics()
    tool_server = TimeToolServer(service, metrics, name=settings.server.name, version=settings.server.version)
    transports = McpTransports(tool_server, metrics)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "time_server_config",
            extra={
                "extra": {
                    "server_name": settings.server.name,
                    "default_timezone": settings.time.default_timezone,
                    "default_format": settings.time.default_format,
                    "supported_formats": settings.time.supported_formats,
                    "metrics_enabled": settings.metrics.enabled,
                    "endpoints": [*transports.paths, "/health"],
                }
            },
        )
        async with transports.session_manager.run():
            yield
        logger.info("time_server_stopped")

    app = FastAPI(title="MCP Time Server", version=settings.server.version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )
    app.state.settings = settings
    app.state.service = service
    app.state.metrics = metrics

    @app.get("/health")
    def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": settings.server.name,
            "version": settings.server.version,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }

    if settings.metrics_on_main_port:
        app.add_api_route(settings.metrics.path, _metrics_endpoint(metrics), methods=["GET"])

    @app.get("/tools")
    def list_tools() -> list[dict[str, Any]]:
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "input_schema": spec.input_model.model_json_schema(),
                "output_schema": spec.output_model.model_json_schema(),
            }
            for spec in list_tool_specs()
        ]

    @app.post("/tools/{tool_name}")
    async def invoke_tool(tool_name: str, request: Request) -> ToolResponse:
        # Every tool call gets a trace_id for end-to-end debugging.
        trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
        start = time.time()

        if not get_tool_spec(tool_name):
            raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")

        try:
            payload = await request.json()
            call = call_tool(tool_name, payload, service=service, metrics=metrics, trace_id=trace_id)
        except ValidationError as exc:
            return _failure(tool_name, trace_id, start, ToolError(code="INVALID_ARGUMENT", message=str(exc)))
        except TimeServiceError as exc:
            error = ToolError(code=exc.code, message=exc.message, details=exc.details)
            return _failure(tool_name, trace_id, start, error)
        except ValueError as exc:
            # Body was not valid JSON.
            return _failure(tool_name, trace_id, start, ToolError(code="INVALID_ARGUMENT", message=str(exc)))
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool_error", extra={"extra": {"trace_id": trace_id, "tool": tool_name}})
            return _failure(tool_name, trace_id, start, ToolError(code="TOOL_ERROR", message=str(exc)))

        latency_ms = int((time.time() - start) * 1000)
        logger.info(
            "tool_call",
            extra={
                "extra": {
                    "trace_id": trace_id,
                    "tool": tool_name,
                    "latency_ms": latency_ms,
                    "ok": True,
                }
            },
        )
        return ToolResponse(
            ok=True,
            data=call.result.model_dump(mode="json"),
            error=None,
            meta=ToolMeta(tool_name=tool_name, trace_id=trace_id, latency_ms=latency_ms),
        )

    app.router.routes.extend(transports.routes)
    return app


def create_metrics_app(metrics: Metrics, path: str = "/metrics") -> FastAPI:
    """Standalone app for a dedicated metrics port."""
    app = FastAPI(title="MCP Time Server metrics", docs_url=None, redoc_url=None, openapi_url=None)
    app.add_api_route(path, _metrics_endpoint(metrics), methods=["GET"])
    return app


def _metrics_endpoint(metrics: Metrics):
    def metrics_endpoint() -> Response:
        return Response(content=metrics.render(), media_type=metrics.content_type)

    return metrics_endpoint


def _failure(tool_name: str, trace_id: str, start: float, error: ToolError) -> ToolResponse:
    latency_ms = int((time.time() - start) * 1000)
    logger.info(
        "tool_call_failed",
        extra={
            "extra": {
                "trace_id": trace_id,
                "tool": tool_name,
                "latency_ms": latency_ms,
                "ok": False,
                "error_code": error.code,
            }
        },
    )
    return ToolResponse(
        ok=False,
        data=None,
        error=error,
        meta=ToolMeta(tool_name=tool_name, trace_id=trace_id, latency_ms=latency_ms),
    )
