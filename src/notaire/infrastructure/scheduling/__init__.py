"""
Timer scheduling.
"""

from notaire.infrastructure.scheduling.asyncio_scheduler import (
    AsyncioScheduler,
    AsyncioTimerHandle,
)

__all__ = ["AsyncioScheduler", "AsyncioTimerHandle"]
