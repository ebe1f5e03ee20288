"""
Ledger client service interface.

Read side of the chain: block height, network identity, live event
subscriptions and historical event queries.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

from notaire.domain.entities.document_hash_recorded import DocumentHashRecorded
from notaire.domain.value_objects.network_info import NetworkInfo

EventCallback = Callable[[DocumentHashRecorded], Awaitable[None]]
ErrorCallback = Callable[[Exception], None]
ReadyCallback = Callable[[], None]


class ILedgerClient(ABC):
    """
    Abstract RPC-connected ledger client.

    Subscriptions are keyed by (event_name, callback): subscribing the
    same callback twice must not deliver an event twice.
    """

    @abstractmethod
    async def get_block_number(self) -> int:
        """
        Get the current block height.

        Raises:
            RPCException: On RPC failure
        """

    @abstractmethod
    async def get_network(self) -> NetworkInfo:
        """
        Get the network the endpoint serves.

        Raises:
            RPCException: On RPC failure
        """

    @abstractmethod
    def subscribe(
        self,
        event_name: str,
        callback: EventCallback,
        on_error: Optional[ErrorCallback] = None,
        on_ready: Optional[ReadyCallback] = None,
    ) -> None:
        """
        Start delivering live events to callback.

        Attaching may complete after this call returns. Only on_ready
        confirms the subscription is live; a transport that fails first
        reports through on_error and never calls on_ready.

        Args:
            event_name: Contract event name
            callback: Coroutine function receiving each event
            on_error: Called with a LedgerException when the transport fails;
                the subscription is dead after that call
            on_ready: Called once events are being delivered

        Raises:
            LedgerException: If the subscription cannot be attached
        """

    @abstractmethod
    def unsubscribe(self, event_name: str, callback: EventCallback) -> None:
        """
        Stop delivering events to callback. Unknown callbacks are ignored.
        """

    @abstractmethod
    async def query_past_events(
        self,
        event_name: str,
        from_block: int,
        to_block: int,
    ) -> List[DocumentHashRecorded]:
        """
        Query events in an inclusive block range.

        Raises:
            RPCException: On RPC failure
        """

    async def close(self) -> None:
        """Release transport resources."""
        return None
