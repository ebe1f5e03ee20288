"""
Escrow registry stores.
"""

from notaire.infrastructure.persistence.in_memory_escrow_store import (
    InMemoryEscrowStore,
)
from notaire.infrastructure.persistence.json_escrow_store import JsonFileEscrowStore

__all__ = ["InMemoryEscrowStore", "JsonFileEscrowStore"]
