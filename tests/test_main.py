import asyncio

from time_server.main import Application, main
from time_server.settings import TimeServerSettings, get_settings


def make_settings(**overrides) -> TimeServerSettings:
    values = {
        "server": {"host": "127.0.0.1", "port": 0, "graceful_shutdown_timeout": 5},
        "metrics": {"enabled": False},
    }
    values.update(overrides)
    return TimeServerSettings(**values)


async def wait_started(application: Application, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not all(listener.started for listener in application.listeners.values()):
        assert loop.time() < deadline, "listeners did not start"
        await asyncio.sleep(0.01)


def test_listeners_follow_metrics_settings():
    separate = Application(make_settings(server={"port": 8081}, metrics={"enabled": True, "port": 9091}))
    assert set(separate.listeners) == {"main", "metrics"}
    assert separate.listeners["metrics"].config.port == 9091

    shared = Application(make_settings(server={"port": 8081}, metrics={"enabled": True, "port": 8081}))
    assert set(shared.listeners) == {"main"}

    disabled = Application(make_settings())
    assert set(disabled.listeners) == {"main"}


def test_stop_request_shuts_down_cleanly():
    async def scenario() -> int:
        application = Application(make_settings())
        task = asyncio.create_task(application.run())
        await wait_started(application)
        application.request_stop()
        return await asyncio.wait_for(task, 10)

    assert asyncio.run(scenario()) == 0


def test_listener_failure_exits_with_error():
    async def broken_serve(*_args, **_kwargs):
        raise RuntimeError("address already in use")

    async def scenario() -> int:
        application = Application(make_settings())
        application.listeners["main"].serve = broken_serve
        return await asyncio.wait_for(application.run(), 10)

    assert asyncio.run(scenario()) == 1


def test_shutdown_timeout_exits_with_error():
    async def stuck_serve(*_args, **_kwargs):
        await asyncio.sleep(3600)

    async def scenario() -> int:
        application = Application(
            make_settings(server={"host": "127.0.0.1", "port": 0, "graceful_shutdown_timeout": 0.05})
        )
        application.listeners["main"].serve = stuck_serve
        application.request_stop()
        return await asyncio.wait_for(application.run(), 10)

    assert asyncio.run(scenario()) == 1


def test_main_rejects_bad_configuration(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("MCP_TIME_TIME__DEFAULT_FORMAT", "Bogus")
    get_settings.cache_clear()
    try:
        assert main() == 1
    finally:
        get_settings.cache_clear()
