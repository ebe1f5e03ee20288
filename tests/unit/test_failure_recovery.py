"""
Tests for failure classification and the reconnect policy.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from shared.resilience import BackoffStrategy, RetryConfig

from notaire.application.listener import (
    FailureKind,
    FailureRecoveryPolicy,
    classify_failure,
)
from notaire.domain.exceptions import (
    ProviderDisconnectedException,
    RPCConnectionException,
    RPCTimeoutException,
    StaleFilterException,
)


@pytest.mark.parametrize(
    "error, kind",
    [
        (StaleFilterException("gone"), FailureKind.STALE_FILTER),
        (ValueError("filter not found"), FailureKind.STALE_FILTER),
        (ProviderDisconnectedException("bye"), FailureKind.DISCONNECTED),
        (RuntimeError("socket disconnected"), FailureKind.DISCONNECTED),
        (RPCTimeoutException("slow"), FailureKind.TIMEOUT),
        (asyncio.TimeoutError(), FailureKind.TIMEOUT),
        (RuntimeError("request timed out"), FailureKind.TIMEOUT),
        (RPCConnectionException("refused"), FailureKind.NETWORK),
        (ConnectionResetError(), FailureKind.NETWORK),
        (RuntimeError("network unreachable"), FailureKind.NETWORK),
        (RuntimeError("boom"), FailureKind.UNKNOWN),
    ],
)
def test_classify_failure(error, kind):
    assert classify_failure(error) == kind


def make_policy(scheduler, on_reconnect, max_attempts=3, **kwargs):
    config = RetryConfig(
        max_attempts=max_attempts,
        initial_delay=10.0,
        max_delay=300.0,
        backoff_strategy=kwargs.pop("strategy", BackoffStrategy.CONSTANT),
        jitter=False,
    )
    return FailureRecoveryPolicy(
        scheduler=scheduler,
        reporter=MagicMock(),
        config=config,
        on_reconnect=on_reconnect,
        **kwargs,
    )


async def test_trigger_schedules_after_delay(scheduler):
    calls = []
    policy = make_policy(scheduler, lambda: calls.append(1) or True)

    assert policy.trigger("health_check") is True
    assert policy.busy
    await scheduler.advance(9.9)
    assert calls == []

    await scheduler.advance(0.1)
    assert calls == [1]
    assert not policy.busy


async def test_triggers_while_pending_are_ignored(scheduler):
    calls = []
    policy = make_policy(scheduler, lambda: calls.append(1) or True)

    assert policy.trigger("event_timeout") is True
    assert policy.trigger("health_check") is False
    assert policy.trigger("transport_error") is False
    await scheduler.advance(60)

    assert calls == [1]
    assert policy.attempts == 1


async def test_trigger_during_running_attempt_is_ignored(scheduler):
    results = []

    def on_reconnect():
        results.append(policy.trigger("nested"))
        return True

    policy = make_policy(scheduler, on_reconnect)
    policy.trigger("first")
    await scheduler.advance(10)

    assert results == [False]


async def test_failed_attempts_stop_at_cap(scheduler):
    calls = []
    exhausted = MagicMock()
    policy = make_policy(
        scheduler, lambda: calls.append(1) and False, on_exhausted=exhausted
    )

    policy.trigger("transport_error")
    await scheduler.advance(1000)

    assert len(calls) == 3
    assert policy.exhausted
    assert policy.attempts == 3
    exhausted.assert_called_once()
    assert policy.trigger("health_check") is False
    exhausted.assert_called_once()


async def test_record_success_resets_counter(scheduler):
    def on_reconnect():
        policy.record_success()
        return True

    policy = make_policy(scheduler, on_reconnect)
    policy.trigger("a")
    await scheduler.advance(10)

    assert policy.attempts == 0
    assert policy.exhausted is False


async def test_run_now_bypasses_cap(scheduler):
    outcomes = iter([False, False, False, True])
    calls = []

    def on_reconnect():
        calls.append(1)
        return next(outcomes)

    policy = make_policy(scheduler, on_reconnect)
    policy.trigger("a")
    await scheduler.advance(1000)
    assert policy.exhausted

    assert policy.run_now() is True
    assert len(calls) == 4
    assert policy.exhausted is False
    assert policy.attempts == 0


async def test_exponential_backoff_delays(scheduler):
    times = []

    def on_reconnect():
        times.append(scheduler.now())
        return False

    policy = make_policy(
        scheduler, on_reconnect, strategy=BackoffStrategy.EXPONENTIAL
    )
    start = scheduler.now()
    policy.trigger("a")
    await scheduler.advance(1000)

    assert [t - start for t in times] == [10.0, 30.0, 70.0]


async def test_cancel_drops_pending_attempt(scheduler):
    calls = []
    policy = make_policy(scheduler, lambda: calls.append(1) or True)

    policy.trigger("a")
    policy.cancel()
    await scheduler.advance(60)

    assert calls == []
    assert policy.attempts == 1
    assert not policy.busy
