"""
Scheduler interface for listener timers.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

TimerCallback = Callable[[], Union[None, Awaitable[None]]]


class ITimerHandle(ABC):
    """Handle to a scheduled one-shot or repeating timer."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the timer. Idempotent."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until the timer is cancelled or a one-shot timer has fired."""


class IScheduler(ABC):
    """
    Timer source.

    Callbacks may be plain functions or coroutine functions; both run on
    the scheduler's event loop, never in parallel with each other.
    """

    @abstractmethod
    def call_later(
        self, delay: float, callback: TimerCallback, name: Optional[str] = None
    ) -> ITimerHandle:
        """Run callback once after delay seconds."""

    @abstractmethod
    def call_every(
        self, interval: float, callback: TimerCallback, name: Optional[str] = None
    ) -> ITimerHandle:
        """Run callback every interval seconds, first run after one interval."""

    @abstractmethod
    def now(self) -> float:
        """Wall-clock time in seconds since the epoch."""
