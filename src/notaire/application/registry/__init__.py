"""
Pending escrow registry.
"""

from notaire.application.registry.pending_escrow_registry import (
    PendingEscrowRegistry,
)

__all__ = ["PendingEscrowRegistry"]
