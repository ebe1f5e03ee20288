"""
Connection manager.

Owns the ledger client, the escrow contract handle and the single
active event subscription.
"""

from typing import Optional

from shared.reporter import SystemReporter

from notaire.domain.exceptions import (
    ConfigurationException,
    ListenerNotInitializedException,
)
from notaire.domain.services import (
    ErrorCallback,
    EventCallback,
    IEscrowContract,
    ILedgerClient,
    ILedgerConnector,
    ReadyCallback,
)
from notaire.domain.value_objects.listener_status import ConnectionState


class ConnectionManager:
    """
    RPC connection and subscription owner.

    States:
        UNINITIALIZED -> INITIALIZED -> LISTENING
        LISTENING -> RECONNECTING -> LISTENING | STOPPED

    At most one event callback is attached to the ledger at any time.
    """

    CONTEXT = "Connection"

    def __init__(
        self,
        connector: ILedgerConnector,
        event_name: str,
        reporter: SystemReporter,
    ):
        """
        Initialize connection manager.

        Args:
            connector: Builds ledger client and escrow contract handles
            event_name: Contract event to subscribe to
            reporter: Logger
        """
        self._connector = connector
        self._event_name = event_name
        self._reporter = reporter

        self._ledger: Optional[ILedgerClient] = None
        self._escrow: Optional[IEscrowContract] = None
        self._handler: Optional[EventCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._on_ready: Optional[ReadyCallback] = None
        self._state = ConnectionState.UNINITIALIZED
        self._config_error_logged = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def event_name(self) -> str:
        return self._event_name

    @property
    def ledger(self) -> Optional[ILedgerClient]:
        return self._ledger

    @property
    def escrow(self) -> Optional[IEscrowContract]:
        return self._escrow

    @property
    def is_initialized(self) -> bool:
        """True when both contract handles exist."""
        return self._ledger is not None and self._escrow is not None

    @property
    def is_subscribed(self) -> bool:
        return self._handler is not None

    def initialize(self) -> bool:
        """
        Build the RPC client and contract bindings.

        Missing configuration is logged once and leaves blockchain
        features disabled; it never raises.

        Returns:
            True if contracts are initialized
        """
        try:
            connection = self._connector.connect()
        except ConfigurationException as e:
            if not self._config_error_logged:
                self._config_error_logged = True
                missing = e.details.get("missing")
                suffix = f" (missing: {', '.join(missing)})" if missing else ""
                self._reporter.warning(
                    f"Blockchain features disabled: {e.message}{suffix}",
                    context=self.CONTEXT,
                )
            return False

        self._ledger = connection.ledger
        self._escrow = connection.escrow
        self._config_error_logged = False
        if self._state == ConnectionState.UNINITIALIZED:
            self._state = ConnectionState.INITIALIZED

        self._reporter.info("Contracts initialized successfully", context=self.CONTEXT)
        return True

    def require_ledger(self) -> ILedgerClient:
        """
        Get the ledger client.

        Raises:
            ListenerNotInitializedException: If contracts are not initialized
        """
        if self._ledger is None:
            raise ListenerNotInitializedException("Provider not initialized")
        return self._ledger

    def subscribe(
        self,
        handler: EventCallback,
        on_error: ErrorCallback,
        on_ready: Optional[ReadyCallback] = None,
    ) -> None:
        """
        Attach handler to the target event.

        Any previously attached handler is detached first. on_ready fires
        once the ledger confirms the subscription, possibly after return.

        Raises:
            ListenerNotInitializedException: If contracts are not initialized
            LedgerException: If the ledger refuses the subscription
        """
        if not self.is_initialized:
            raise ListenerNotInitializedException()

        self.unsubscribe()
        self._ledger.subscribe(self._event_name, handler, on_error, on_ready)
        self._handler = handler
        self._on_error = on_error
        self._on_ready = on_ready
        self._state = ConnectionState.LISTENING

    def unsubscribe(self) -> None:
        """Detach the current handler, if any."""
        if self._handler is not None and self._ledger is not None:
            self._ledger.unsubscribe(self._event_name, self._handler)
        self._handler = None
        self._on_error = None
        self._on_ready = None
        if self._state == ConnectionState.LISTENING:
            self._state = ConnectionState.INITIALIZED

    def refresh(self) -> bool:
        """
        Detach and reattach the current handler to get a fresh filter.

        Returns:
            False if nothing was subscribed

        Raises:
            LedgerException: If reattaching fails; the handler stays detached
        """
        if self._handler is None or self._ledger is None:
            return False

        handler, on_error = self._handler, self._on_error
        self._ledger.unsubscribe(self._event_name, handler)
        self._handler = None
        self._ledger.subscribe(self._event_name, handler, on_error, self._on_ready)
        self._handler = handler
        return True

    def begin_reconnect(self) -> None:
        """Tear down the subscription and enter RECONNECTING."""
        self.unsubscribe()
        self._state = ConnectionState.RECONNECTING

    def stop(self) -> None:
        """Tear down the subscription and enter STOPPED."""
        self.unsubscribe()
        self._state = ConnectionState.STOPPED

    def idle(self) -> None:
        """Tear down the subscription, keeping the connection."""
        self.unsubscribe()
        self._state = (
            ConnectionState.INITIALIZED
            if self.is_initialized
            else ConnectionState.UNINITIALIZED
        )

    async def close(self) -> None:
        """Stop and release transport resources."""
        self.stop()
        if self._ledger is not None:
            await self._ledger.close()
