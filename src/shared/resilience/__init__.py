"""
Resilience patterns for long-lived network clients.

- Retry: Automatic retry with configurable backoff
- Backoff: Delay calculation shared by retry loops and reconnect schedulers
"""

from shared.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
    calculate_delay,
)

__all__ = [
    "Retry",
    "RetryConfig",
    "RetryError",
    "BackoffStrategy",
    "calculate_delay",
]
