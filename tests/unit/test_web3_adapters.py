"""
Tests for the web3.py adapters with the RPC layer mocked out.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from notaire.application.listener import (
    ConnectionManager,
    EscrowReconciliationListener,
)
from notaire.config.settings import ListenerConfig, NotaireConfig
from notaire.domain.exceptions import (
    ConfigurationException,
    ProviderDisconnectedException,
    RPCConnectionException,
    RPCException,
    RPCTimeoutException,
    StaleFilterException,
    TransactionException,
    TransactionRevertedException,
)
from notaire.domain.value_objects import ConnectionState, DocumentHash, EscrowId
from notaire.infrastructure.blockchain import (
    Web3Connector,
    Web3EscrowContract,
    Web3LedgerClient,
)
from notaire.infrastructure.blockchain.errors import translate_rpc_error
from tests.helpers import FakeConnector

DOC = bytes.fromhex("cd" * 32)
TX = bytes.fromhex("01" * 32)


def log_entry(document_hash=DOC, block_number=7):
    return {
        "args": {
            "documentHash": document_hash,
            "recorder": "0x" + "ab" * 20,
            "timestamp": 1700000000,
        },
        "blockNumber": block_number,
        "transactionHash": TX,
    }


# ================================================================
# Error translation
# ================================================================


@pytest.mark.parametrize(
    "error, expected",
    [
        (asyncio.TimeoutError(), RPCTimeoutException),
        (TimeExhausted("slow"), RPCTimeoutException),
        (aiohttp.ServerDisconnectedError(), ProviderDisconnectedException),
        (aiohttp.ClientConnectionError("refused"), RPCConnectionException),
        (ValueError({"code": -32000, "message": "filter not found"}), StaleFilterException),
        (RuntimeError("boom"), RPCException),
    ],
)
def test_translate_rpc_error(error, expected):
    translated = translate_rpc_error(error, "eth_getFilterChanges")

    assert type(translated) is expected
    assert translated.details["operation"] == "eth_getFilterChanges"


def test_translate_keeps_ledger_exceptions():
    error = StaleFilterException("gone")
    assert translate_rpc_error(error, "x") is error


# ================================================================
# Ledger client
# ================================================================


def stub_block_number(w3, *heights):
    """Successive eth_blockNumber results; the last one repeats."""
    remaining = list(heights)

    async def block_number():
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    type(w3.eth).block_number = property(lambda self: block_number())


def make_client(entries_side_effect=None, heights=(5,), **options):
    w3 = MagicMock()
    stub_block_number(w3, *heights)
    w3.eth.uninstall_filter = AsyncMock(return_value=True)
    log_filter = MagicMock()
    log_filter.filter_id = "0xf1"
    log_filter.get_new_entries = AsyncMock(side_effect=entries_side_effect)
    contract = MagicMock()
    contract.events.DocumentHashRecorded.create_filter = AsyncMock(
        return_value=log_filter
    )
    client = Web3LedgerClient(
        w3, contract, MagicMock(), poll_interval=0.01, **options
    )
    return client, w3, contract, log_filter


async def test_block_number_and_network():
    w3 = MagicMock()

    async def block_number():
        return 99

    async def chain_id():
        return 80002

    type(w3.eth).block_number = property(lambda self: block_number())
    type(w3.eth).chain_id = property(lambda self: chain_id())
    client = Web3LedgerClient(w3, MagicMock(), MagicMock())

    assert await client.get_block_number() == 99
    network = await client.get_network()
    assert network.chain_id == 80002
    assert network.label == "amoy"


async def test_subscription_delivers_events():
    received = []
    delivered = asyncio.Event()

    async def callback(event):
        received.append(event)
        delivered.set()

    def entries():
        yield [log_entry()]
        while True:
            yield []

    client, _, contract, _ = make_client(entries())
    client.subscribe("DocumentHashRecorded", callback)
    await asyncio.wait_for(delivered.wait(), timeout=1.0)
    client.unsubscribe("DocumentHashRecorded", callback)

    event = received[0]
    assert event.document_hash == DocumentHash(DOC)
    assert event.timestamp == 1700000000
    assert event.block_number == 7
    assert event.transaction_hash == "0x" + "01" * 32
    contract.events.DocumentHashRecorded.create_filter.assert_awaited_once_with(
        from_block="latest"
    )
    await client.close()


async def test_duplicate_subscribe_is_ignored():
    async def callback(event):
        pass

    client, _, _, _ = make_client(lambda: [])
    client.subscribe("DocumentHashRecorded", callback)
    client.subscribe("DocumentHashRecorded", callback)

    assert client.subscription_count == 1
    await client.close()
    assert client.subscription_count == 0


async def test_stale_filter_reaches_error_callback():
    errors = []
    failed = asyncio.Event()

    def on_error(error):
        errors.append(error)
        failed.set()

    async def callback(event):
        pass

    client, w3, _, _ = make_client(ValueError("filter not found"))
    client.subscribe("DocumentHashRecorded", callback, on_error)
    await asyncio.wait_for(failed.wait(), timeout=1.0)
    await client.close()

    assert isinstance(errors[0], StaleFilterException)
    assert client.subscription_count == 0
    w3.eth.uninstall_filter.assert_awaited_with("0xf1")


async def test_handler_error_does_not_kill_subscription():
    calls = []
    second = asyncio.Event()

    async def callback(event):
        calls.append(event)
        if len(calls) == 1:
            raise RuntimeError("handler bug")
        second.set()

    def entries():
        yield [log_entry()]
        yield [log_entry()]
        while True:
            yield []

    client, _, _, _ = make_client(entries())
    client.subscribe("DocumentHashRecorded", callback)
    await asyncio.wait_for(second.wait(), timeout=1.0)

    assert client.subscription_count == 1
    await client.close()


async def test_query_past_events_skips_malformed():
    contract = MagicMock()
    contract.events.DocumentHashRecorded.get_logs = AsyncMock(
        return_value=[log_entry(), log_entry(document_hash=b"\x01")]
    )
    client = Web3LedgerClient(MagicMock(), contract, MagicMock())

    events = await client.query_past_events("DocumentHashRecorded", 10, 20)

    assert len(events) == 1
    contract.events.DocumentHashRecorded.get_logs.assert_awaited_once_with(
        from_block=10, to_block=20
    )


async def test_query_past_events_translates_errors():
    contract = MagicMock()
    contract.events.DocumentHashRecorded.get_logs = AsyncMock(
        side_effect=aiohttp.ClientConnectionError("refused")
    )
    client = Web3LedgerClient(MagicMock(), contract, MagicMock())

    with pytest.raises(RPCConnectionException):
        await client.query_past_events("DocumentHashRecorded", 0, 1)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


async def test_ready_fires_once_filter_is_installed():
    ready = asyncio.Event()

    async def callback(event):
        pass

    client, _, contract, _ = make_client(lambda: [], heights=(42,))
    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)

    contract.events.DocumentHashRecorded.create_filter.assert_awaited_once()
    assert client.block_cursor("DocumentHashRecorded") == 42
    await client.close()


async def test_failed_filter_install_never_reports_ready():
    ready = []
    errors = []
    failed = asyncio.Event()

    def on_error(error):
        errors.append(error)
        failed.set()

    async def callback(event):
        pass

    client, _, contract, _ = make_client(lambda: [], filter_install_attempts=1)
    contract.events.DocumentHashRecorded.create_filter = AsyncMock(
        side_effect=aiohttp.ClientConnectionError("refused")
    )
    client.subscribe(
        "DocumentHashRecorded", callback, on_error, on_ready=lambda: ready.append(1)
    )
    await asyncio.wait_for(failed.wait(), timeout=1.0)

    assert isinstance(errors[0], RPCConnectionException)
    assert ready == []
    assert client.subscription_count == 0
    await client.close()


async def test_dead_endpoint_exhausts_automatic_reconnects(
    registry, scheduler, reporter
):
    contract = MagicMock()
    create_filter = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))
    contract.events.DocumentHashRecorded.create_filter = create_filter
    ledger = Web3LedgerClient(
        MagicMock(), contract, reporter, poll_interval=0.01, filter_install_attempts=1
    )
    connection = ConnectionManager(
        FakeConnector(ledger=ledger), "DocumentHashRecorded", reporter
    )
    config = ListenerConfig(max_reconnect_attempts=3, reconnect_delay=1.0)
    listener = EscrowReconciliationListener(
        connection, registry, scheduler, config, reporter
    )
    listener.start()
    listener.register_escrow("0x" + "cd" * 32, "1")

    for _ in range(config.max_reconnect_attempts + 1):
        await settle()
        await scheduler.advance(config.reconnect_delay)
    await settle()

    # The initial subscription plus one per automatic reconnect.
    assert create_filter.await_count == config.max_reconnect_attempts + 1
    status = listener.get_listener_status()
    assert status.recovery_exhausted
    assert status.state == ConnectionState.STOPPED
    assert ledger.subscription_count == 0
    await listener.close()


async def test_replacement_filter_backfills_blocks_between_filters():
    received = []
    ready = asyncio.Event()
    backfilled = asyncio.Event()

    async def callback(event):
        received.append(event)
        backfilled.set()

    client, _, contract, _ = make_client(lambda: [], heights=(10, 15))
    event = contract.events.DocumentHashRecorded
    event.get_logs = AsyncMock(return_value=[log_entry(block_number=12)])

    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)
    event.get_logs.assert_not_awaited()

    ready.clear()
    client.unsubscribe("DocumentHashRecorded", callback)
    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)
    await asyncio.wait_for(backfilled.wait(), timeout=1.0)

    event.get_logs.assert_awaited_once_with(from_block=11, to_block=15)
    assert [e.block_number for e in received] == [12]
    assert client.block_cursor("DocumentHashRecorded") == 15
    await client.close()


async def test_backfill_is_limited_to_max_blocks():
    ready = asyncio.Event()

    async def callback(event):
        pass

    client, _, contract, _ = make_client(
        lambda: [], heights=(10, 5000), max_backfill_blocks=100
    )
    event = contract.events.DocumentHashRecorded
    event.get_logs = AsyncMock(return_value=[])

    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)
    ready.clear()
    client.unsubscribe("DocumentHashRecorded", callback)
    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)

    event.get_logs.assert_awaited_once_with(from_block=4901, to_block=5000)
    await client.close()


async def test_failed_backfill_reaches_error_callback():
    errors = []
    failed = asyncio.Event()
    ready = asyncio.Event()

    def on_error(error):
        errors.append(error)
        failed.set()

    async def callback(event):
        pass

    client, _, contract, _ = make_client(lambda: [], heights=(10, 15))
    contract.events.DocumentHashRecorded.get_logs = AsyncMock(
        side_effect=asyncio.TimeoutError()
    )

    client.subscribe("DocumentHashRecorded", callback, on_ready=ready.set)
    await asyncio.wait_for(ready.wait(), timeout=1.0)
    ready.clear()
    client.unsubscribe("DocumentHashRecorded", callback)
    client.subscribe("DocumentHashRecorded", callback, on_error, on_ready=ready.set)
    await asyncio.wait_for(failed.wait(), timeout=1.0)

    assert isinstance(errors[0], RPCTimeoutException)
    assert not ready.is_set()
    assert client.block_cursor("DocumentHashRecorded") == 10
    await client.close()


async def test_malformed_live_entries_are_skipped():
    received = []
    delivered = asyncio.Event()

    async def callback(event):
        received.append(event)
        delivered.set()

    bad_timestamp = log_entry()
    bad_timestamp["args"] = dict(bad_timestamp["args"], timestamp="soon")

    def entries():
        yield [{"args": {}}, "garbage", bad_timestamp, log_entry(block_number=9)]
        while True:
            yield []

    client, _, _, _ = make_client(entries())
    client.subscribe("DocumentHashRecorded", callback)
    await asyncio.wait_for(delivered.wait(), timeout=1.0)
    await asyncio.sleep(0.05)

    assert [e.block_number for e in received] == [9]
    assert client.subscription_count == 1
    assert client.block_cursor("DocumentHashRecorded") == 9
    await client.close()


async def test_unexpected_poll_failure_reaches_error_callback():
    errors = []
    failed = asyncio.Event()

    def on_error(error):
        errors.append(error)
        failed.set()

    async def callback(event):
        pass

    client, w3, _, _ = make_client(lambda: None)
    client.subscribe("DocumentHashRecorded", callback, on_error)
    await asyncio.wait_for(failed.wait(), timeout=1.0)
    await client.close()

    assert type(errors[0]) is RPCException
    assert errors[0].details["operation"] == "poll"
    assert client.subscription_count == 0
    w3.eth.uninstall_filter.assert_awaited_with("0xf1")


# ================================================================
# Escrow contract
# ================================================================


def make_escrow(receipt=None, build_error=None, send_error=None):
    w3 = MagicMock()
    w3.eth.get_transaction_count = AsyncMock(return_value=3)
    w3.eth.send_raw_transaction = AsyncMock(return_value=TX, side_effect=send_error)
    w3.eth.wait_for_transaction_receipt = AsyncMock(
        return_value=receipt or {"status": 1, "blockNumber": 8}
    )
    contract = MagicMock()
    contract.functions.releaseEscrow.return_value.build_transaction = AsyncMock(
        return_value={"nonce": 3, "gas": 50000}, side_effect=build_error
    )
    account = MagicMock()
    account.address = "0x" + "ef" * 20
    account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")
    escrow = Web3EscrowContract(w3, contract, account, MagicMock(), confirmation_timeout=5)
    return escrow, w3, contract, account


async def test_release_signs_and_sends():
    escrow, w3, contract, account = make_escrow()

    handle = await escrow.release(EscrowId("12"))
    await handle.wait_for_confirmation()

    contract.functions.releaseEscrow.assert_called_with(12)
    account.sign_transaction.assert_called_once_with({"nonce": 3, "gas": 50000})
    w3.eth.send_raw_transaction.assert_awaited_once_with(b"signed")
    w3.eth.wait_for_transaction_receipt.assert_awaited_once_with(TX, timeout=5)
    assert handle.tx_hash == "0x" + "01" * 32


async def test_reverted_receipt_raises():
    escrow, _, _, _ = make_escrow(receipt={"status": 0, "blockNumber": 8})

    handle = await escrow.release(EscrowId("1"))

    with pytest.raises(TransactionRevertedException):
        await handle.wait_for_confirmation()


async def test_revert_during_estimation_raises():
    escrow, w3, _, _ = make_escrow(build_error=ContractLogicError("execution reverted"))

    with pytest.raises(TransactionRevertedException):
        await escrow.release(EscrowId("1"))
    w3.eth.send_raw_transaction.assert_not_awaited()


async def test_send_failure_raises_transaction_exception():
    escrow, _, _, _ = make_escrow(send_error=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(TransactionException):
        await escrow.release(EscrowId("1"))


async def test_receipt_timeout_raises_transaction_exception():
    escrow, w3, _, _ = make_escrow()
    w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not mined")

    handle = await escrow.release(EscrowId("1"))

    with pytest.raises(TransactionException) as exc_info:
        await handle.wait_for_confirmation()
    assert not isinstance(exc_info.value, TransactionRevertedException)


# ================================================================
# Connector
# ================================================================


def blockchain_settings(**overrides):
    values = dict(
        rpc_url="http://127.0.0.1:8545",
        private_key="0x" + "11" * 32,
        escrow_contract_address="0x" + "22" * 20,
        notary_contract_address="0x" + "33" * 20,
    )
    values.update(overrides)
    return NotaireConfig(**values)


def test_connector_reports_missing_settings():
    settings = blockchain_settings(
        rpc_url=None, private_key=None, escrow_contract_address=None
    )

    with pytest.raises(ConfigurationException) as exc_info:
        Web3Connector(settings, MagicMock()).connect()

    assert exc_info.value.details["missing"] == [
        "rpc_url",
        "private_key",
        "escrow_contract_address",
    ]


def test_connector_rejects_invalid_address():
    settings = blockchain_settings(escrow_contract_address="0x1234")

    with pytest.raises(ConfigurationException):
        Web3Connector(settings, MagicMock()).connect()


def test_connector_rejects_invalid_private_key():
    settings = blockchain_settings(private_key="0xnothex")

    with pytest.raises(ConfigurationException):
        Web3Connector(settings, MagicMock()).connect()


def test_connector_builds_adapters():
    connection = Web3Connector(blockchain_settings(), MagicMock()).connect()

    assert isinstance(connection.ledger, Web3LedgerClient)
    assert isinstance(connection.escrow, Web3EscrowContract)
    assert connection.escrow.signer_address.startswith("0x")
