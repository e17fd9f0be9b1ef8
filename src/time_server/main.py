"""Process entrypoint: runs the listeners and drives graceful shutdown."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Iterator

import uvicorn
from pydantic import ValidationError

from .logging import configure_logging, get_logger
from .metrics import Metrics
from .server import build_time_service, create_app, create_metrics_app
from .settings import TimeServerSettings, get_settings

logger = get_logger("main")


class Listener(uvicorn.Server):
    """uvicorn server that leaves signal handling to the ``Application``."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass


class Application:
    def __init__(self, settings: TimeServerSettings) -> None:
        self.settings = settings
        self.metrics = Metrics()
        self.service = build_time_service(settings)
        self.app = create_app(settings, service=self.service, metrics=self.metrics)
        self.listeners: dict[str, Listener] = {
            "main": self._listener(self.app, settings.server.port),
        }
        if settings.metrics.enabled and not settings.metrics_on_main_port:
            metrics_app = create_metrics_app(self.metrics, settings.metrics.path)
            self.listeners["metrics"] = self._listener(metrics_app, settings.metrics.port)
        self._stop = asyncio.Event()

    def _listener(self, app, port: int) -> Listener:
        config = uvicorn.Config(
            app,
            host=self.settings.server.host,
            port=port,
            log_config=None,
            timeout_graceful_shutdown=int(self.settings.server.graceful_shutdown_timeout),
        )
        return Listener(config)

    def request_stop(self) -> None:
        self._stop.set()

    async def run(self) -> int:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.request_stop)

        for name, listener in self.listeners.items():
            logger.info(
                f"Starting {name} listener",
                extra={"extra": {"addr": f"{listener.config.host}:{listener.config.port}"}},
            )
        tasks = {asyncio.create_task(listener.serve(), name=name): name for name, listener in self.listeners.items()}
        stop_task = asyncio.create_task(self._stop.wait())

        done, _ = await asyncio.wait({stop_task, *tasks}, return_when=asyncio.FIRST_COMPLETED)
        exit_code = 0
        if stop_task in done:
            logger.info("Received shutdown signal")
        else:
            stopped = next(task for task in tasks if task in done)
            logger.error(
                "Listener stopped unexpectedly",
                extra={"extra": {"listener": tasks[stopped], "error": _describe(stopped)}},
            )
            exit_code = 1
        stop_task.cancel()
        return await self._shutdown(tasks, exit_code)

    async def _shutdown(self, tasks: dict[asyncio.Task, str], exit_code: int) -> int:
        logger.info("Shutting down servers...")
        for listener in self.listeners.values():
            listener.should_exit = True
        timeout = self.settings.server.graceful_shutdown_timeout
        try:
            await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("Graceful shutdown timed out", extra={"extra": {"timeout_s": timeout}})
            return 1
        logger.info("Server shutdown complete")
        return exit_code


def _describe(task: asyncio.Task) -> str | None:
    if task.cancelled():
        return "cancelled"
    exc = task.exception()
    return repr(exc) if exc else None


def main() -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging()
        logger.error("Failed to load configuration", extra={"extra": {"error": str(exc)}})
        return 1

    root = configure_logging(settings.logging.level, settings.logging.format)
    logging.getLogger("uvicorn").handlers = list(root.handlers)
    logger.info(
        "Starting MCP Time Server",
        extra={
            "extra": {
                "version": settings.server.version,
                "server_name": settings.server.name,
                "host": settings.server.host,
                "port": settings.server.port,
                "metrics_enabled": settings.metrics.enabled,
            }
        },
    )
    try:
        return asyncio.run(Application(settings).run())
    except SystemExit as exc:
        # uvicorn exits this way when a listener cannot bind.
        logger.error("Listener failed to start", extra={"extra": {"code": exc.code}})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
