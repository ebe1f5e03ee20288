"""
Retry pattern with configurable backoff and jitter.

Provides automatic retry logic for transient failures. The delay
calculation is exposed separately so schedulers that do not loop
in-place (reconnect timers) can reuse the same backoff strategies.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class BackoffStrategy(str, Enum):
    """Backoff strategy for retries."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    CONSTANT = "constant"


@dataclass
class RetryConfig:
    """
    Retry and backoff parameters.

    max_attempts counts the initial call. jitter_factor 0.1 spreads each
    delay by +/-10%. Only exceptions listed in retry_on are retried.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_multiplier: float = 2.0
    jitter: bool = True
    jitter_factor: float = 0.1
    retry_on: tuple = (Exception,)


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


def calculate_delay(config: RetryConfig, attempt: int) -> float:
    """
    Calculate delay before the given attempt.

    Args:
        config: Retry configuration
        attempt: Attempt number (0-indexed)

    Returns:
        Delay in seconds
    """
    if config.backoff_strategy == BackoffStrategy.EXPONENTIAL:
        delay = config.initial_delay * (config.backoff_multiplier**attempt)
    elif config.backoff_strategy == BackoffStrategy.LINEAR:
        delay = config.initial_delay + (config.backoff_multiplier * attempt)
    else:  # CONSTANT
        delay = config.initial_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_range = delay * config.jitter_factor
        delay = max(0.0, delay + random.uniform(-jitter_range, jitter_range))

    return delay


class Retry:
    """
    Async retry handler with configurable backoff strategies.

    Example:
        retry = Retry(RetryConfig(max_attempts=5))
        log_filter = await retry.execute_async(event.create_filter, from_block="latest")
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    def _should_retry_exception(self, exception: Exception) -> bool:
        """Check if exception should trigger retry."""
        return isinstance(exception, self.config.retry_on)

    async def execute_async(
        self, func: Callable[..., Awaitable[Any]], *args, **kwargs
    ) -> Any:
        """
        Execute async function with retry logic.

        Args:
            func: Async function to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Function result

        Raises:
            RetryError: When all attempts exhausted
        """
        for attempt in range(self.config.max_attempts):
            try:
                result = await func(*args, **kwargs)

                if attempt > 0:
                    logger.info(
                        f"Operation succeeded on attempt "
                        f"{attempt + 1}/{self.config.max_attempts}"
                    )
                return result

            except Exception as e:
                if not self._should_retry_exception(e):
                    logger.error(f"Non-retryable exception: {type(e).__name__}: {e}")
                    raise

                if attempt >= self.config.max_attempts - 1:
                    raise RetryError(
                        f"All {self.config.max_attempts} attempts exhausted. "
                        f"Last error: {type(e).__name__}: {e}",
                        attempts=self.config.max_attempts,
                        last_exception=e,
                    ) from e

                delay = calculate_delay(self.config, attempt)
                logger.warning(
                    f"{type(e).__name__}: {e}. "
                    f"Attempt {attempt + 1}/{self.config.max_attempts}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await asyncio.sleep(delay)

        raise RetryError(
            "Retry loop exited without an attempt",
            attempts=self.config.max_attempts,
        )


__all__ = [
    "Retry",
    "RetryConfig",
    "RetryError",
    "BackoffStrategy",
    "calculate_delay",
]
