"""
Service interfaces consumed by the listener.
"""

from notaire.domain.services.i_escrow_contract import (
    IEscrowContract,
    ITransactionHandle,
)
from notaire.domain.services.i_ledger_client import (
    EventCallback,
    ErrorCallback,
    ILedgerClient,
    ReadyCallback,
)
from notaire.domain.services.i_ledger_connector import (
    ILedgerConnector,
    LedgerConnection,
)
from notaire.domain.services.i_scheduler import IScheduler, ITimerHandle

__all__ = [
    "IEscrowContract",
    "ITransactionHandle",
    "ILedgerClient",
    "EventCallback",
    "ErrorCallback",
    "ReadyCallback",
    "ILedgerConnector",
    "LedgerConnection",
    "IScheduler",
    "ITimerHandle",
]
