"""
Test doubles for the listener collaborators.
"""

from tests.helpers.fakes import (
    FakeConnector,
    FakeEscrowContract,
    FakeLedgerClient,
    FakeScheduler,
    FakeTransactionHandle,
    make_event,
    make_hash,
)

__all__ = [
    "FakeConnector",
    "FakeEscrowContract",
    "FakeLedgerClient",
    "FakeScheduler",
    "FakeTransactionHandle",
    "make_event",
    "make_hash",
]
