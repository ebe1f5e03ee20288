"""
Graceful shutdown handler for services.

Runs registered cleanup handlers (sync or async) with a per-handler
timeout, optionally triggered by SIGTERM and SIGINT.
"""

import asyncio
import inspect
import logging
import signal
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ShutdownConfig:
    """Configuration for graceful shutdown."""

    timeout: float = 30.0
    """Maximum time to wait for each shutdown handler (seconds)"""

    signal_handlers: tuple = (signal.SIGTERM, signal.SIGINT)
    """Signals to handle"""


class GracefulShutdown:
    """
    Manages graceful shutdown of services.

    Example:
        shutdown = GracefulShutdown()

        @shutdown.on_shutdown
        async def cleanup():
            await client.close()

        shutdown.install_signal_handlers()
        await shutdown.wait_for_signal()
    """

    def __init__(self, config: Optional[ShutdownConfig] = None):
        self.config = config or ShutdownConfig()
        self._shutdown_handlers: List[Callable] = []
        self._shutdown_event: Optional[asyncio.Event] = None
        self._completed = False

    @property
    def completed(self) -> bool:
        """Whether the shutdown sequence already ran."""
        return self._completed

    def install_signal_handlers(self) -> None:
        """
        Register signal handlers on the running event loop.

        Must be called from within a coroutine.
        """
        loop = asyncio.get_running_loop()
        event = self._get_event()
        for sig in self.config.signal_handlers:
            loop.add_signal_handler(sig, self._handle_signal, sig, event)

    def _get_event(self) -> asyncio.Event:
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        return self._shutdown_event

    def _handle_signal(self, signum: int, event: asyncio.Event) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        event.set()

    def request_shutdown(self) -> None:
        """Trigger shutdown without a signal."""
        self._get_event().set()

    def on_shutdown(self, func: Callable):
        """
        Register a shutdown handler.

        Args:
            func: Sync or async function to call on shutdown

        Returns:
            The function (allows use as decorator)
        """
        self._shutdown_handlers.append(func)
        return func

    async def _run_handler(self, handler: Callable) -> None:
        result = handler()
        if inspect.isawaitable(result):
            await asyncio.wait_for(result, timeout=self.config.timeout)

    async def shutdown(self) -> None:
        """Execute all shutdown handlers once."""
        if self._completed:
            return
        self._completed = True

        logger.info(f"Running {len(self._shutdown_handlers)} shutdown handlers...")

        for handler in self._shutdown_handlers:
            name = getattr(handler, "__name__", repr(handler))
            try:
                await self._run_handler(handler)
            except asyncio.TimeoutError:
                logger.error(f"Shutdown handler {name} timed out")
            except Exception as e:
                logger.error(f"Error in shutdown handler {name}: {e}")

        logger.info("Graceful shutdown complete")

    async def wait_for_signal(self) -> None:
        """Wait for a shutdown request, then run the handlers."""
        await self._get_event().wait()
        await self.shutdown()


__all__ = ["GracefulShutdown", "ShutdownConfig"]
