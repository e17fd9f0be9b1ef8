"""Prometheus metrics for tools, time operations and transports.

Each ``Metrics`` owns its registry, so several apps (and tests) never share
collectors.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

NAMESPACE = "mcp_time"

DURATION_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)


class Metrics:
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.tool_requests = Counter(
            "tool_requests_total",
            "Tool calls by tool and status.",
            ["tool", "status"],
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.tool_request_duration = Histogram(
            "tool_request_duration_seconds",
            "Tool call latency by tool and status.",
            ["tool", "status"],
            namespace=NAMESPACE,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.time_operation_duration = Histogram(
            "time_operation_duration_seconds",
            "Time service operation latency by operation and status.",
            ["operation", "status"],
            namespace=NAMESPACE,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.transport_requests = Counter(
            "transport_requests_total",
            "MCP transport HTTP requests by transport, method and status.",
            ["transport", "method", "status"],
            namespace=NAMESPACE,
            registry=self.registry,
        )

    def record_tool_request(self, tool: str, status: str, duration_s: float) -> None:
        self.tool_requests.labels(tool=tool, status=status).inc()
        self.tool_request_duration.labels(tool=tool, status=status).observe(duration_s)

    def record_time_operation(self, operation: str, status: str, duration_s: float) -> None:
        self.time_operation_duration.labels(operation=operation, status=status).observe(duration_s)

    def record_transport_request(self, transport: str, method: str, status: str) -> None:
        self.transport_requests.labels(transport=transport, method=method, status=status).inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)
