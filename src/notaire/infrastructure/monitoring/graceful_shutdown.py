"""
Graceful shutdown handler for Notaire.

Coordinates cleanup on SIGTERM/SIGINT:
1. Detach the event subscription and cancel listener timers
2. Close the RPC transport
"""

from typing import Callable

from shared.lifecycle import GracefulShutdown as SharedGracefulShutdown
from shared.lifecycle import ShutdownConfig


class NotaireGracefulShutdown:
    """
    Notaire-specific graceful shutdown coordinator.

    Wraps shared GracefulShutdown with Notaire-specific cleanup logic.
    """

    def __init__(self, timeout: float = 30.0):
        """
        Initialize graceful shutdown handler.

        Args:
            timeout: Maximum time to wait for each cleanup handler
        """
        self.shared_shutdown = SharedGracefulShutdown(ShutdownConfig(timeout=timeout))

    @property
    def completed(self) -> bool:
        return self.shared_shutdown.completed

    def register_cleanup(self, handler: Callable) -> None:
        """
        Register cleanup handler.

        Args:
            handler: Sync or async cleanup function
        """
        self.shared_shutdown.on_shutdown(handler)

    def install_signal_handlers(self) -> None:
        """Route SIGTERM/SIGINT to the shutdown sequence."""
        self.shared_shutdown.install_signal_handlers()

    def request_shutdown(self) -> None:
        self.shared_shutdown.request_shutdown()

    async def wait_for_signal(self) -> None:
        """
        Block until a shutdown signal arrives, then clean up.

        This is the main blocking call that keeps a headless listener running.
        """
        await self.shared_shutdown.wait_for_signal()

    async def shutdown(self) -> None:
        """Execute shutdown sequence."""
        await self.shared_shutdown.shutdown()
