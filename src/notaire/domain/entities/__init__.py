"""
Domain entities.
"""

from notaire.domain.entities.document_hash_recorded import DocumentHashRecorded
from notaire.domain.entities.pending_escrow import PendingEscrowEntry

__all__ = [
    "DocumentHashRecorded",
    "PendingEscrowEntry",
]
