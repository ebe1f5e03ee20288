"""
EVM ledger adapters built on web3.py.
"""

from notaire.infrastructure.blockchain.abi_loader import (
    FALLBACK_ABIS,
    are_contracts_available,
    contract_status,
    load_contract_abi,
)
from notaire.infrastructure.blockchain.web3_connector import Web3Connector
from notaire.infrastructure.blockchain.web3_escrow_contract import (
    Web3EscrowContract,
    Web3TransactionHandle,
)
from notaire.infrastructure.blockchain.web3_ledger_client import Web3LedgerClient

__all__ = [
    "FALLBACK_ABIS",
    "are_contracts_available",
    "contract_status",
    "load_contract_abi",
    "Web3Connector",
    "Web3EscrowContract",
    "Web3TransactionHandle",
    "Web3LedgerClient",
]
