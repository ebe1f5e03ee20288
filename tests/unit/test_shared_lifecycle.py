"""
Tests for graceful shutdown.
"""

import asyncio

from shared.lifecycle import GracefulShutdown, ShutdownConfig

from notaire.infrastructure.monitoring.graceful_shutdown import NotaireGracefulShutdown


async def test_handlers_run_once_in_order():
    shutdown = GracefulShutdown()
    calls = []

    @shutdown.on_shutdown
    def sync_cleanup():
        calls.append("sync")

    @shutdown.on_shutdown
    async def async_cleanup():
        calls.append("async")

    await shutdown.shutdown()
    await shutdown.shutdown()

    assert calls == ["sync", "async"]
    assert shutdown.completed


async def test_failing_handler_does_not_stop_others():
    shutdown = GracefulShutdown()
    calls = []

    def broken():
        raise RuntimeError("boom")

    shutdown.on_shutdown(broken)
    shutdown.on_shutdown(lambda: calls.append("after"))

    await shutdown.shutdown()

    assert calls == ["after"]


async def test_slow_handler_times_out():
    shutdown = GracefulShutdown(ShutdownConfig(timeout=0.01))
    calls = []

    async def slow():
        await asyncio.sleep(10)

    shutdown.on_shutdown(slow)
    shutdown.on_shutdown(lambda: calls.append("after"))

    await shutdown.shutdown()

    assert calls == ["after"]


async def test_wait_for_signal_runs_on_request():
    shutdown = NotaireGracefulShutdown(timeout=1.0)
    calls = []
    shutdown.register_cleanup(lambda: calls.append("cleanup"))

    waiter = asyncio.create_task(shutdown.wait_for_signal())
    await asyncio.sleep(0)
    shutdown.request_shutdown()
    await asyncio.wait_for(waiter, timeout=1.0)

    assert calls == ["cleanup"]
    assert shutdown.completed


async def test_service_shutdown_runs_registered_cleanups_once():
    shutdown = NotaireGracefulShutdown(timeout=1.0)
    calls = []

    async def close_listener():
        calls.append("listener")

    shutdown.register_cleanup(close_listener)
    shutdown.register_cleanup(lambda: calls.append("transport"))

    await shutdown.shutdown()
    await shutdown.shutdown()

    assert calls == ["listener", "transport"]
    assert shutdown.completed
