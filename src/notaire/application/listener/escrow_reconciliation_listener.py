"""
Escrow reconciliation listener.

Watches DocumentHashRecorded events, releases the escrow registered for
the notarized document, and keeps the event subscription alive with a
health probe, a silence watchdog and a periodic filter refresh.

All work happens on one event loop. Timer callbacks and event callbacks
may interleave but never run in parallel.
"""

from typing import Any, Dict, Optional, Set, Union

from shared.reporter import SystemReporter

from notaire.application.listener.connection_manager import ConnectionManager
from notaire.application.listener.failure_recovery import (
    FailureKind,
    FailureRecoveryPolicy,
    classify_failure,
)
from notaire.application.registry import PendingEscrowRegistry
from notaire.config.settings import ListenerConfig
from notaire.domain.entities import DocumentHashRecorded, PendingEscrowEntry
from notaire.domain.exceptions import (
    LedgerException,
    ListenerNotInitializedException,
)
from notaire.domain.services import IScheduler, ITimerHandle
from notaire.domain.value_objects import ConnectionState, ListenerStatus
from notaire.infrastructure.monitoring import metrics

_FAILURE_MESSAGES = {
    FailureKind.STALE_FILTER: "Filter expired, attempting to reconnect...",
    FailureKind.NETWORK: "Network/RPC error detected, attempting to reconnect...",
    FailureKind.TIMEOUT: "RPC timeout detected, attempting to reconnect...",
    FailureKind.DISCONNECTED: "Provider disconnected, attempting to reconnect...",
    FailureKind.UNKNOWN: "Unknown event listener error, attempting to reconnect...",
}


class EscrowReconciliationListener:
    """
    Correlates notarization events with pending escrows.

    Example:
        listener = EscrowReconciliationListener(connection, registry, scheduler, config, reporter)
        listener.start()
        listener.register_escrow("0xabc...", "42")
        ...
        listener.shutdown()
    """

    CONTEXT = "NotaryListener"

    def __init__(
        self,
        connection: ConnectionManager,
        registry: PendingEscrowRegistry,
        scheduler: IScheduler,
        config: ListenerConfig,
        reporter: SystemReporter,
    ):
        self._connection = connection
        self._registry = registry
        self._scheduler = scheduler
        self._config = config
        self._reporter = reporter

        self._recovery = FailureRecoveryPolicy(
            scheduler=scheduler,
            reporter=reporter,
            config=config.reconnect_retry_config(),
            on_reconnect=self._attempt_reconnect,
            on_exhausted=self._on_recovery_exhausted,
        )

        self._is_listening = False
        self._shut_down = False
        self._last_event_time = scheduler.now()
        self._releasing: Set[str] = set()

        self._health_timer: Optional[ITimerHandle] = None
        self._event_timeout_timer: Optional[ITimerHandle] = None
        self._filter_refresh_timer: Optional[ITimerHandle] = None

    # ================================================================
    # Public API
    # ================================================================

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def registry(self) -> PendingEscrowRegistry:
        return self._registry

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def contracts_initialized(self) -> bool:
        return self._connection.is_initialized

    def start(self) -> bool:
        """
        Load the registry, connect, and listen if anything is pending.

        Must run on the event loop that will deliver events.

        Returns:
            True if a subscription is active afterwards
        """
        self._registry.load()

        if not self._connection.initialize():
            return False

        pending = self._registry.size()
        if pending == 0:
            self._reporter.info(
                "No escrows to monitor, event listener not needed",
                context=self.CONTEXT,
            )
            return False

        self._reporter.info(
            f"Found {pending} escrows to monitor, setting up event listener",
            context=self.CONTEXT,
        )
        return self._setup_event_listener()

    def register_escrow(
        self,
        document_hash: Union[str, bytes],
        escrow_id: Union[str, int],
    ) -> PendingEscrowEntry:
        """
        Track an escrow until its document hash is notarized.

        Starts the event listener when this is the first pending entry.

        Raises:
            InvalidDocumentHashError: If the hash is malformed
            InvalidEscrowIdError: If the escrow id is malformed
        """
        entry = self._registry.register(document_hash, escrow_id)
        self._reporter.info(
            f"Registered escrow {entry.escrow_id} for document "
            f"{entry.document_hash.truncated()}",
            context=self.CONTEXT,
        )

        if self._registry.size() == 1 and not self._is_listening and not self._shut_down:
            self._reporter.info(
                "First escrow registered, starting event listener",
                context=self.CONTEXT,
            )
            if self._connection.is_initialized or self._connection.initialize():
                self._setup_event_listener()

        return entry

    def get_listener_status(self) -> ListenerStatus:
        """Read-only status snapshot."""
        now = self._scheduler.now()
        return ListenerStatus(
            is_listening=self._is_listening,
            state=self._state(),
            reconnect_attempts=self._recovery.attempts,
            max_reconnect_attempts=self._recovery.max_attempts,
            contracts_initialized=self._connection.is_initialized,
            pending_count=self._registry.size(),
            last_event_time=self._last_event_time,
            time_since_last_event=max(0.0, now - self._last_event_time),
            health_check_active=self._health_timer is not None and self._health_timer.active,
            recovery_exhausted=self._recovery.exhausted,
        )

    def reconnect(self) -> bool:
        """
        Manually reconnect, bypassing the automatic attempt cap.

        With no pending escrows only the connection is re-established.

        Returns:
            True if the listener is connected (and listening when needed)
        """
        if self._shut_down:
            self._reporter.warning(
                "Reconnect requested after shutdown, ignoring",
                context=self.CONTEXT,
            )
            return False

        self._reporter.info("Manual reconnect requested", context=self.CONTEXT)
        succeeded = self._recovery.run_now()
        return succeeded and self._connection.is_initialized

    async def test_provider_connection(self) -> Dict[str, Any]:
        """
        Verify basic RPC connectivity.

        Returns:
            {connected, network, chainId, blockNumber} or {connected: False, error}
        """
        try:
            ledger = self._connection.require_ledger()
            network = await ledger.get_network()
            block_number = await ledger.get_block_number()
        except ListenerNotInitializedException as e:
            return {"connected": False, "error": e.message}
        except Exception as e:
            return {"connected": False, "error": str(e)}

        return {
            "connected": True,
            "network": network.label,
            "chainId": network.chain_id,
            "blockNumber": block_number,
        }

    async def test_event_listener(self) -> Dict[str, Any]:
        """
        Verify the event read path by querying recent blocks.

        Returns:
            {working, latestBlock, recentEvents, lastEventTime} or {working: False, error}
        """
        if not self._connection.is_initialized:
            return {"working": False, "error": "Contracts not initialized"}

        ledger = self._connection.ledger
        try:
            latest_block = await ledger.get_block_number()
            from_block = max(0, latest_block - self._config.lookback_blocks)
            events = await ledger.query_past_events(
                self._connection.event_name, from_block, latest_block
            )
        except Exception as e:
            return {"working": False, "error": str(e)}

        return {
            "working": True,
            "latestBlock": latest_block,
            "recentEvents": len(events),
            "lastEventTime": self.get_listener_status().last_event_at.isoformat(),
        }

    def stop_listening(self) -> None:
        """Detach the subscription and stop all timers."""
        self._recovery.cancel()
        self._teardown()
        self._connection.idle()
        self._reporter.info("Event listener stopped", context=self.CONTEXT)

    def shutdown(self) -> None:
        """
        Graceful teardown on process termination.

        Detaches the subscription and cancels every timer synchronously.
        """
        self._reporter.info("Shutting down event listener...", context=self.CONTEXT)
        self._shut_down = True
        self._recovery.cancel()
        self._teardown()
        self._connection.stop()
        self._reporter.info("Event listener shutdown complete", context=self.CONTEXT)

    async def close(self) -> None:
        """Shut down and release the RPC transport."""
        if not self._shut_down:
            self.shutdown()
        await self._connection.close()

    # ================================================================
    # Subscription lifecycle
    # ================================================================

    def _state(self) -> ConnectionState:
        if self._recovery.busy and not self._shut_down:
            return ConnectionState.RECONNECTING
        return self._connection.state

    def _setup_event_listener(self) -> bool:
        if not self._connection.is_initialized:
            self._reporter.info(
                "Contracts not initialized, cannot setup event listener",
                context=self.CONTEXT,
            )
            return False

        try:
            self._connection.subscribe(
                self._on_event,
                self._on_transport_error,
                self._on_subscription_ready,
            )
        except (LedgerException, ListenerNotInitializedException) as e:
            self._reporter.error(
                f"Failed to setup event listener: {e}",
                context=self.CONTEXT,
            )
            return False

        self._is_listening = True
        self._start_timers()
        metrics.listener_active.set(1)

        self._reporter.info("Event listener setup successfully", context=self.CONTEXT)
        return True

    def _on_subscription_ready(self) -> None:
        # Attempts only reset once the ledger is actually delivering.
        if self._shut_down:
            return
        self._recovery.record_success()
        self._reporter.debug("Event subscription live", context=self.CONTEXT)

    def _teardown(self) -> None:
        self._connection.unsubscribe()
        self._is_listening = False
        self._stop_timers()
        metrics.listener_active.set(0)

    def _attempt_reconnect(self) -> bool:
        if self._shut_down:
            return True

        self._reporter.info(
            "Attempting to reconnect event listener...",
            context=self.CONTEXT,
        )
        self._teardown()
        self._connection.begin_reconnect()

        if self._registry.size() == 0:
            if not self._connection.is_initialized:
                self._connection.initialize()
            self._connection.idle()
            self._reporter.info(
                "No escrows to monitor, staying idle",
                context=self.CONTEXT,
            )
            return True

        if not self._connection.is_initialized and not self._connection.initialize():
            self._reporter.error(
                "Reconnection failed: could not reinitialize contracts",
                context=self.CONTEXT,
            )
            return False

        if not self._setup_event_listener():
            self._reporter.error(
                "Reconnection failed: could not setup event listener",
                context=self.CONTEXT,
            )
            return False

        self._reporter.info("Successfully reconnected event listener", context=self.CONTEXT)
        return True

    def _on_recovery_exhausted(self) -> None:
        self._teardown()
        self._connection.stop()

    # ================================================================
    # Event handling
    # ================================================================

    async def _on_event(self, event: DocumentHashRecorded) -> None:
        self._last_event_time = self._scheduler.now()
        self._reset_event_timeout()

        document_hash = event.document_hash
        self._reporter.info(
            f"DocumentHashRecorded event: {document_hash} by {event.recorder} "
            f"at {event.timestamp}",
            context=self.CONTEXT,
        )

        escrow_id = self._registry.get(document_hash)
        if escrow_id is None:
            metrics.events_received_total.labels(matched="false").inc()
            self._reporter.debug(
                f"No escrow found for document hash {document_hash}",
                context=self.CONTEXT,
            )
            return

        metrics.events_received_total.labels(matched="true").inc()

        if document_hash.value in self._releasing:
            self._reporter.info(
                f"Escrow {escrow_id} release already in flight, ignoring duplicate event",
                context=self.CONTEXT,
            )
            return

        escrow = self._connection.escrow
        if escrow is None:
            self._reporter.error(
                f"Cannot release escrow {escrow_id}: contracts not initialized",
                context=self.CONTEXT,
            )
            return

        self._releasing.add(document_hash.value)
        self._reporter.info(
            f"Processing escrow {escrow_id} for document {document_hash}",
            context=self.CONTEXT,
        )
        try:
            handle = await escrow.release(escrow_id)
            await handle.wait_for_confirmation()
        except Exception as e:
            # Left in place: a later event or an operator retries the release.
            metrics.escrow_releases_total.labels(status="failed").inc()
            self._reporter.error(
                f"Failed to release escrow {escrow_id}: {e}",
                context=self.CONTEXT,
            )
            return
        finally:
            self._releasing.discard(document_hash.value)

        metrics.escrow_releases_total.labels(status="released").inc()
        self._reporter.info(
            f"Escrow {escrow_id} released for document hash {document_hash} "
            f"(tx {handle.tx_hash})",
            context=self.CONTEXT,
        )

        if self._registry.get(document_hash) == escrow_id:
            self._registry.remove(document_hash)

        if self._registry.size() == 0 and self._is_listening:
            self._reporter.info(
                "All escrows processed, stopping event listener",
                context=self.CONTEXT,
            )
            self.stop_listening()

    def _on_transport_error(self, error: Exception) -> None:
        kind = classify_failure(error)
        self._reporter.warning(
            f"{_FAILURE_MESSAGES[kind]} ({type(error).__name__}: {error})",
            context=self.CONTEXT,
        )
        if self._is_listening:
            self._recovery.trigger("transport_error", kind.value)

    # ================================================================
    # Timers
    # ================================================================

    def _start_timers(self) -> None:
        self._stop_timers()
        self._health_timer = self._scheduler.call_every(
            self._config.health_check_interval,
            self._health_check,
            name="health_check",
        )
        self._arm_event_timeout()
        self._filter_refresh_timer = self._scheduler.call_every(
            self._config.filter_refresh_interval,
            self._refresh_filter,
            name="filter_refresh",
        )

    def _stop_timers(self) -> None:
        for timer in (
            self._health_timer,
            self._event_timeout_timer,
            self._filter_refresh_timer,
        ):
            if timer is not None:
                timer.cancel()
        self._health_timer = None
        self._event_timeout_timer = None
        self._filter_refresh_timer = None

    def _arm_event_timeout(self) -> None:
        if self._event_timeout_timer is not None:
            self._event_timeout_timer.cancel()
        self._event_timeout_timer = self._scheduler.call_later(
            self._config.event_timeout,
            self._on_event_timeout,
            name="event_timeout",
        )

    def _reset_event_timeout(self) -> None:
        if self._is_listening:
            self._arm_event_timeout()

    def _on_event_timeout(self) -> None:
        self._event_timeout_timer = None
        if not self._is_listening:
            return

        self._reporter.warning(
            f"Event timeout: No events received for "
            f"{self._config.event_timeout:.0f}s, triggering reconnection...",
            context=self.CONTEXT,
        )
        self._recovery.trigger("event_timeout", "subscription silent")

    async def _health_check(self) -> None:
        ledger = self._connection.ledger
        if not self._is_listening or ledger is None:
            return

        try:
            network = await ledger.get_network()
        except Exception as e:
            if self._is_listening:
                self._reporter.warning(
                    f"Health check: Provider connection failed, triggering "
                    f"reconnection: {e}",
                    context=self.CONTEXT,
                )
                self._recovery.trigger("health_check", str(e))
            return

        self._reporter.debug(
            f"Health check: Connected to {network.label}",
            context=self.CONTEXT,
        )

    def _refresh_filter(self) -> None:
        if not self._is_listening:
            return

        self._reporter.info(
            "Refreshing event filter to prevent staleness...",
            context=self.CONTEXT,
        )
        try:
            self._connection.refresh()
        except Exception as e:
            self._reporter.error(f"Failed to refresh filter: {e}", context=self.CONTEXT)
            self._recovery.trigger("filter_refresh", str(e))
            return

        self._reporter.info("Event filter refreshed successfully", context=self.CONTEXT)
