"""
Domain exceptions.
"""

from notaire.domain.exceptions.blockchain_exceptions import (
    ConfigurationException,
    LedgerException,
    ProviderDisconnectedException,
    RPCConnectionException,
    RPCException,
    RPCTimeoutException,
    StaleFilterException,
    TransactionException,
    TransactionRevertedException,
)
from notaire.domain.exceptions.listener_exceptions import (
    InvalidDocumentHashError,
    InvalidEscrowIdError,
    ListenerNotInitializedException,
    RegistryPersistenceException,
)

__all__ = [
    "LedgerException",
    "RPCException",
    "RPCConnectionException",
    "RPCTimeoutException",
    "StaleFilterException",
    "ProviderDisconnectedException",
    "TransactionException",
    "TransactionRevertedException",
    "ConfigurationException",
    "InvalidDocumentHashError",
    "InvalidEscrowIdError",
    "ListenerNotInitializedException",
    "RegistryPersistenceException",
]
