"""
web3.py ledger client.

Live subscriptions are polling log filters: one asyncio task per
(event, callback) pair installs a filter and drains it every
poll_interval seconds. A filter the node forgot surfaces as
StaleFilterException on the subscriber's error callback.

Each event name keeps a block cursor. A replacement filter (refresh or
reconnect) first backfills the blocks after the cursor with eth_getLogs,
so events mined between two filters are still delivered.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from web3 import AsyncWeb3, Web3

from shared.reporter import SystemReporter
from shared.resilience import BackoffStrategy, Retry, RetryConfig, RetryError

from notaire.domain.entities import DocumentHashRecorded
from notaire.domain.exceptions import LedgerException, RPCException
from notaire.domain.services import (
    ErrorCallback,
    EventCallback,
    ILedgerClient,
    ReadyCallback,
)
from notaire.domain.value_objects import DocumentHash, NetworkInfo
from notaire.infrastructure.blockchain.errors import translate_rpc_error


@dataclass
class _Subscription:
    event_name: str
    callback: EventCallback
    on_error: Optional[ErrorCallback]
    on_ready: Optional[ReadyCallback] = None
    task: Optional[asyncio.Task] = None
    filter_id: Optional[str] = None


class Web3LedgerClient(ILedgerClient):
    """
    Ledger client over AsyncWeb3 and the notary contract.

    Example:
        client = Web3LedgerClient(w3, notary_contract, reporter)
        client.subscribe("DocumentHashRecorded", on_event, on_error)
    """

    CONTEXT = "Web3Ledger"

    def __init__(
        self,
        w3: AsyncWeb3,
        contract: Any,
        reporter: SystemReporter,
        poll_interval: float = 2.0,
        filter_install_attempts: int = 3,
        max_backfill_blocks: int = 1000,
    ):
        """
        Initialize ledger client.

        Args:
            w3: Connected AsyncWeb3 instance
            contract: Notary contract bound to w3
            reporter: Logger
            poll_interval: Seconds between filter polls
            filter_install_attempts: Attempts for installing a log filter
            max_backfill_blocks: Widest gap replayed when a filter is replaced
        """
        self._w3 = w3
        self._contract = contract
        self._reporter = reporter
        self._poll_interval = poll_interval
        self._max_backfill_blocks = max_backfill_blocks
        self._filter_retry = Retry(
            RetryConfig(
                max_attempts=filter_install_attempts,
                initial_delay=1.0,
                max_delay=5.0,
                backoff_strategy=BackoffStrategy.EXPONENTIAL,
            )
        )

        self._subscriptions: Dict[Tuple[str, EventCallback], _Subscription] = {}
        self._background: Set[asyncio.Task] = set()
        self._cursors: Dict[str, int] = {}

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def block_cursor(self, event_name: str) -> Optional[int]:
        """Last block whose events were handed to subscribers."""
        return self._cursors.get(event_name)

    async def get_block_number(self) -> int:
        try:
            return await self._w3.eth.block_number
        except Exception as e:
            raise translate_rpc_error(e, "eth_blockNumber") from e

    async def get_network(self) -> NetworkInfo:
        try:
            chain_id = await self._w3.eth.chain_id
        except Exception as e:
            raise translate_rpc_error(e, "eth_chainId") from e
        return NetworkInfo.from_chain_id(chain_id)

    def subscribe(
        self,
        event_name: str,
        callback: EventCallback,
        on_error: Optional[ErrorCallback] = None,
        on_ready: Optional[ReadyCallback] = None,
    ) -> None:
        key = (event_name, callback)
        if key in self._subscriptions:
            return

        event = self._event(event_name)
        subscription = _Subscription(event_name, callback, on_error, on_ready)
        subscription.task = asyncio.get_running_loop().create_task(
            self._poll(subscription, event),
            name=f"poll:{event_name}",
        )
        self._subscriptions[key] = subscription

    def unsubscribe(self, event_name: str, callback: EventCallback) -> None:
        subscription = self._subscriptions.pop((event_name, callback), None)
        if subscription is None:
            return

        if subscription.task is not None and not subscription.task.done():
            subscription.task.cancel()
        if subscription.filter_id is not None:
            self._spawn(self._uninstall_filter(subscription.filter_id))
            subscription.filter_id = None

    async def query_past_events(
        self,
        event_name: str,
        from_block: int,
        to_block: int,
    ) -> List[DocumentHashRecorded]:
        event = self._event(event_name)
        try:
            logs = await event.get_logs(from_block=from_block, to_block=to_block)
        except Exception as e:
            raise translate_rpc_error(e, "eth_getLogs") from e
        return [recorded for recorded in map(self._to_domain, logs) if recorded]

    async def close(self) -> None:
        """Cancel every subscription and release the HTTP session."""
        for event_name, callback in list(self._subscriptions):
            self.unsubscribe(event_name, callback)

        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

        provider = self._w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            try:
                await disconnect()
            except Exception as e:
                self._reporter.debug(
                    f"Provider disconnect failed: {e}", context=self.CONTEXT
                )

    # ================================================================
    # Internals
    # ================================================================

    def _event(self, event_name: str) -> Any:
        try:
            return getattr(self._contract.events, event_name)
        except AttributeError as e:
            raise RPCException(
                f"Event {event_name} not in contract ABI",
                details={"event": event_name},
            ) from e

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _uninstall_filter(self, filter_id: str) -> None:
        try:
            await self._w3.eth.uninstall_filter(filter_id)
        except Exception as e:
            # Node-side filters expire on their own.
            self._reporter.debug(
                f"Failed to uninstall filter {filter_id}: {e}",
                context=self.CONTEXT,
            )

    async def _install_filter(self, event: Any) -> Any:
        try:
            return await self._filter_retry.execute_async(
                event.create_filter, from_block="latest"
            )
        except RetryError as e:
            cause = e.last_exception or e
            raise translate_rpc_error(cause, "eth_newFilter") from e
        except Exception as e:
            raise translate_rpc_error(e, "eth_newFilter") from e

    async def _poll(self, subscription: _Subscription, event: Any) -> None:
        try:
            log_filter = await self._install_filter(event)
            subscription.filter_id = log_filter.filter_id
            installed_at = await self.get_block_number()
            self._reporter.debug(
                f"Installed filter {log_filter.filter_id} for "
                f"{subscription.event_name} at block {installed_at}",
                context=self.CONTEXT,
            )

            await self._backfill(subscription, event, installed_at)
            self._advance_cursor(subscription.event_name, installed_at)
            if subscription.on_ready is not None:
                subscription.on_ready()

            while True:
                await asyncio.sleep(self._poll_interval)
                try:
                    entries = await log_filter.get_new_entries()
                except Exception as e:
                    raise translate_rpc_error(e, "eth_getFilterChanges") from e
                self._dispatch(subscription, entries)

        except asyncio.CancelledError:
            raise
        except LedgerException as e:
            self._fail(subscription, e)
        except Exception as e:
            self._fail(subscription, translate_rpc_error(e, "poll"))

    async def _backfill(
        self, subscription: _Subscription, event: Any, installed_at: int
    ) -> None:
        event_name = subscription.event_name
        cursor = self._cursors.get(event_name)
        if cursor is None or cursor >= installed_at:
            return

        from_block = max(cursor + 1, installed_at - self._max_backfill_blocks + 1)
        if from_block > cursor + 1:
            self._reporter.warning(
                f"Backfill for {event_name} limited to {self._max_backfill_blocks} "
                f"blocks, skipping blocks {cursor + 1}-{from_block - 1}",
                context=self.CONTEXT,
            )

        try:
            logs = await event.get_logs(from_block=from_block, to_block=installed_at)
        except Exception as e:
            raise translate_rpc_error(e, "eth_getLogs") from e

        if logs:
            self._reporter.info(
                f"Backfilled {len(logs)} {event_name} events from blocks "
                f"{from_block}-{installed_at}",
                context=self.CONTEXT,
            )
        self._dispatch(subscription, logs)

    def _dispatch(self, subscription: _Subscription, entries: List[Any]) -> None:
        for entry in entries:
            recorded = self._to_domain(entry)
            if recorded is None:
                continue
            self._advance_cursor(subscription.event_name, recorded.block_number)
            self._spawn(self._deliver(subscription, recorded))

    def _advance_cursor(self, event_name: str, block_number: Optional[int]) -> None:
        if block_number is None:
            return
        if block_number > self._cursors.get(event_name, -1):
            self._cursors[event_name] = block_number

    def _fail(self, subscription: _Subscription, error: LedgerException) -> None:
        key = (subscription.event_name, subscription.callback)
        if self._subscriptions.get(key) is subscription:
            del self._subscriptions[key]
        if subscription.filter_id is not None:
            self._spawn(self._uninstall_filter(subscription.filter_id))
            subscription.filter_id = None

        self._reporter.warning(
            f"Subscription to {subscription.event_name} failed: {error.message}",
            context=self.CONTEXT,
        )
        if subscription.on_error is not None:
            subscription.on_error(error)

    async def _deliver(
        self, subscription: _Subscription, recorded: DocumentHashRecorded
    ) -> None:
        try:
            await subscription.callback(recorded)
        except Exception as e:
            self._reporter.error(
                f"Event handler failed for {recorded.document_hash}: {e}",
                context=self.CONTEXT,
            )

    def _to_domain(self, entry: Any) -> Optional[DocumentHashRecorded]:
        try:
            args = entry["args"]
            tx_hash = entry.get("transactionHash")
            return DocumentHashRecorded(
                document_hash=DocumentHash(args["documentHash"]),
                recorder=args["recorder"],
                timestamp=int(args["timestamp"]),
                block_number=entry.get("blockNumber"),
                transaction_hash=Web3.to_hex(tx_hash) if tx_hash is not None else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            # InvalidDocumentHashError is a ValueError.
            self._reporter.warning(
                f"Ignoring malformed event ({type(e).__name__}): {e}",
                context=self.CONTEXT,
            )
            return None
