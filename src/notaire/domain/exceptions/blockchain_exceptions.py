"""
Blockchain-related exceptions.
"""

from typing import Optional


class LedgerException(Exception):
    """Base exception for ledger operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class RPCException(LedgerException):
    """RPC call failed."""


class RPCConnectionException(RPCException):
    """RPC endpoint unreachable or returned a transport-level error."""


class RPCTimeoutException(RPCException):
    """RPC call timed out."""


class StaleFilterException(RPCException):
    """The provider no longer knows the log filter being polled."""


class ProviderDisconnectedException(RPCException):
    """Provider connection was lost."""


class TransactionException(LedgerException):
    """Transaction could not be submitted or confirmed."""


class TransactionRevertedException(TransactionException):
    """Transaction was mined but reverted."""


class ConfigurationException(LedgerException):
    """Required connection settings or contract ABIs are missing."""
