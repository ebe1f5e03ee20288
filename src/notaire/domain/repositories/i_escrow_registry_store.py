"""
Escrow registry store interface.

Durable backend for the document hash -> escrow id mapping.
"""

from abc import ABC, abstractmethod
from typing import Dict


class IEscrowRegistryStore(ABC):
    """
    Abstract persistence for pending escrows.

    The mapping is small and owned by a single process, so the whole
    mapping is loaded once at startup and written back on every
    mutation. Keys are normalized document hashes, values are escrow
    ids as decimal strings.
    """

    @abstractmethod
    def load(self) -> Dict[str, str]:
        """
        Load the persisted mapping.

        Returns:
            Mapping of document hash to escrow id (empty if nothing stored)

        Raises:
            RegistryPersistenceException: If the backend cannot be read
        """

    @abstractmethod
    def save(self, mapping: Dict[str, str]) -> None:
        """
        Replace the persisted mapping.

        Args:
            mapping: Full mapping to persist

        Raises:
            RegistryPersistenceException: If the backend cannot be written
        """
