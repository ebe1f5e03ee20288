"""
DocumentHashRecorded event emitted by the notary contract.
"""

from dataclasses import dataclass
from typing import Optional

from notaire.domain.value_objects.document_hash import DocumentHash


@dataclass(frozen=True)
class DocumentHashRecorded:
    """On-chain notarization of a document hash."""

    document_hash: DocumentHash
    recorder: str
    timestamp: int
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
