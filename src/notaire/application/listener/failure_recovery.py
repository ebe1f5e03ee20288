"""
Failure classification and reconnect scheduling.

Connection-level failures (transport errors, failed health probes,
silent subscriptions, failed filter refreshes) are retried on a
schedule up to a fixed number of consecutive attempts. Release
transactions are never retried here.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

from shared.reporter import SystemReporter
from shared.resilience import RetryConfig, calculate_delay

from notaire.domain.exceptions import (
    ProviderDisconnectedException,
    RPCConnectionException,
    RPCTimeoutException,
    StaleFilterException,
)
from notaire.domain.services import IScheduler, ITimerHandle
from notaire.infrastructure.monitoring import metrics


class FailureKind(str, Enum):
    """Connection failure categories. All of them are retryable."""

    STALE_FILTER = "stale_filter"
    NETWORK = "network"
    TIMEOUT = "timeout"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"


def classify_failure(error: BaseException) -> FailureKind:
    """
    Classify a connection or subscription failure.

    Typed ledger exceptions are matched first, then provider messages
    for errors that reach us untranslated.
    """
    if isinstance(error, StaleFilterException):
        return FailureKind.STALE_FILTER
    if isinstance(error, ProviderDisconnectedException):
        return FailureKind.DISCONNECTED
    if isinstance(error, (RPCTimeoutException, asyncio.TimeoutError, TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(error, (RPCConnectionException, ConnectionError)):
        return FailureKind.NETWORK

    message = str(error).lower()
    if "filter not found" in message:
        return FailureKind.STALE_FILTER
    if "disconnected" in message or "connection lost" in message:
        return FailureKind.DISCONNECTED
    if "timeout" in message or "timed out" in message:
        return FailureKind.TIMEOUT
    if "network" in message or "connection" in message:
        return FailureKind.NETWORK
    return FailureKind.UNKNOWN


class FailureRecoveryPolicy:
    """
    Bounded reconnect scheduler.

    At most one reconnect is pending or running at a time; triggers that
    arrive meanwhile are dropped. The attempt counter grows with every
    scheduled attempt and is reset by record_success(). Once it reaches
    max_attempts automatic recovery stops until reset() is called.
    """

    CONTEXT = "Recovery"

    def __init__(
        self,
        scheduler: IScheduler,
        reporter: SystemReporter,
        config: RetryConfig,
        on_reconnect: Callable[[], bool],
        on_exhausted: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize recovery policy.

        Args:
            scheduler: Timer source
            reporter: Logger
            config: Backoff settings; max_attempts is the reconnect cap
            on_reconnect: Performs one reconnect attempt, returns success
            on_exhausted: Called once when the cap is hit
        """
        self._scheduler = scheduler
        self._reporter = reporter
        self._config = config
        self._on_reconnect = on_reconnect
        self._on_exhausted = on_exhausted

        self._attempts = 0
        self._exhausted = False
        self._in_progress = False
        self._timer: Optional[ITimerHandle] = None

    @property
    def attempts(self) -> int:
        """Consecutive attempts since the last success."""
        return self._attempts

    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts

    @property
    def exhausted(self) -> bool:
        """True once automatic recovery gave up."""
        return self._exhausted

    @property
    def busy(self) -> bool:
        """True while a reconnect is scheduled or running."""
        return self._in_progress or (self._timer is not None and self._timer.active)

    def trigger(self, trigger: str, reason: str = "") -> bool:
        """
        Request a reconnect.

        Args:
            trigger: Short trigger name (metrics label)
            reason: Human readable detail for the log

        Returns:
            True if a new attempt was scheduled
        """
        if self.busy:
            self._reporter.debug(
                f"Reconnect already in progress, ignoring {trigger}",
                context=self.CONTEXT,
            )
            return False

        if self._attempts >= self.max_attempts:
            if not self._exhausted:
                self._exhausted = True
                self._reporter.error(
                    f"Max reconnection attempts ({self.max_attempts}) reached. "
                    f"Stopping reconnection.",
                    context=self.CONTEXT,
                )
                if self._on_exhausted:
                    self._on_exhausted()
            return False

        delay = calculate_delay(self._config, self._attempts)
        self._attempts += 1
        metrics.reconnect_attempts_total.labels(trigger=trigger).inc()

        detail = f" ({reason})" if reason else ""
        self._reporter.info(
            f"Scheduling reconnection attempt {self._attempts}/{self.max_attempts} "
            f"in {delay:.1f}s after {trigger}{detail}",
            context=self.CONTEXT,
        )
        self._timer = self._scheduler.call_later(delay, self._fire, name="reconnect")
        return True

    def _fire(self) -> None:
        self._timer = None
        self._reporter.info(
            f"Attempting reconnection {self._attempts}/{self.max_attempts}",
            context=self.CONTEXT,
        )
        self._run()

    def _run(self) -> bool:
        self._in_progress = True
        try:
            succeeded = self._on_reconnect()
        finally:
            self._in_progress = False

        if not succeeded:
            self.trigger("reconnect_failed", "previous attempt failed")
        return succeeded

    def run_now(self) -> bool:
        """
        Reset the counter and attempt a reconnect immediately.

        Bypasses the attempt cap. A failed attempt falls back to the
        automatic schedule.

        Returns:
            Result of the attempt
        """
        self.reset()
        return self._run()

    def record_success(self) -> None:
        """Reset the counter after a successful subscription."""
        self._attempts = 0
        self._exhausted = False

    def cancel(self) -> None:
        """Drop a scheduled attempt, keeping the counter."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        """Drop a scheduled attempt and clear the counter."""
        self.cancel()
        self._attempts = 0
        self._exhausted = False
