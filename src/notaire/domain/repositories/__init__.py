"""
Repository interfaces.
"""

from notaire.domain.repositories.i_escrow_registry_store import (
    IEscrowRegistryStore,
)

__all__ = ["IEscrowRegistryStore"]
