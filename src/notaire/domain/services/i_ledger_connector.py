"""
Ledger connector interface.

Builds the ledger client and escrow contract handles from configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from notaire.domain.services.i_escrow_contract import IEscrowContract
from notaire.domain.services.i_ledger_client import ILedgerClient


@dataclass(frozen=True)
class LedgerConnection:
    """Handles produced by a successful connect()."""

    ledger: ILedgerClient
    escrow: IEscrowContract


class ILedgerConnector(ABC):
    """Factory for ledger connections."""

    @abstractmethod
    def connect(self) -> LedgerConnection:
        """
        Construct RPC client and contract bindings.

        Raises:
            ConfigurationException: If required settings or ABIs are missing
        """
