"""
Test fixtures and configuration.
"""

import logging
import os

import pytest

os.environ.setdefault("ENV", "test")

from shared.reporter import SystemReporter  # noqa: E402

from notaire.application.listener import (  # noqa: E402
    ConnectionManager,
    EscrowReconciliationListener,
)
from notaire.application.registry import PendingEscrowRegistry  # noqa: E402
from notaire.config.settings import ListenerConfig, reset_settings  # noqa: E402
from notaire.infrastructure.persistence import InMemoryEscrowStore  # noqa: E402
from tests.helpers import (  # noqa: E402
    FakeConnector,
    FakeEscrowContract,
    FakeLedgerClient,
    FakeScheduler,
)


@pytest.fixture(autouse=True)
def clean_settings():
    """Each test reloads settings from its own environment."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def reporter() -> SystemReporter:
    return SystemReporter(name="notaire-test", level=logging.DEBUG, verbose=3)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def escrow() -> FakeEscrowContract:
    return FakeEscrowContract()


@pytest.fixture
def connector(ledger, escrow) -> FakeConnector:
    return FakeConnector(ledger=ledger, escrow=escrow)


@pytest.fixture
def store() -> InMemoryEscrowStore:
    return InMemoryEscrowStore()


@pytest.fixture
def registry(store, reporter) -> PendingEscrowRegistry:
    return PendingEscrowRegistry(store, reporter)


@pytest.fixture
def listener_config() -> ListenerConfig:
    return ListenerConfig()


@pytest.fixture
def connection(connector, reporter) -> ConnectionManager:
    return ConnectionManager(connector, "DocumentHashRecorded", reporter)


@pytest.fixture
def listener(
    connection, registry, scheduler, listener_config, reporter
) -> EscrowReconciliationListener:
    return EscrowReconciliationListener(
        connection=connection,
        registry=registry,
        scheduler=scheduler,
        config=listener_config,
        reporter=reporter,
    )
