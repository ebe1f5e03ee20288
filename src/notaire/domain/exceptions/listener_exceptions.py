"""
Listener and registry exceptions.
"""

from typing import Optional


class InvalidDocumentHashError(ValueError):
    """Document hash is not a 32-byte hex string."""


class InvalidEscrowIdError(ValueError):
    """Escrow id is not a non-negative integer."""


class ListenerNotInitializedException(Exception):
    """Operation needs contracts that were never initialized."""

    def __init__(self, message: str = "Contracts not initialized"):
        self.message = message
        super().__init__(self.message)


class RegistryPersistenceException(Exception):
    """Registry file could not be read or written."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)
