"""
Service lifecycle management.

Handles graceful shutdown of long-running services.
"""

from shared.lifecycle.graceful_shutdown import (
    GracefulShutdown,
    ShutdownConfig,
)

__all__ = [
    "GracefulShutdown",
    "ShutdownConfig",
]
