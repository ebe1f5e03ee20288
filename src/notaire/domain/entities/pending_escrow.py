"""
PendingEscrowEntry entity - an escrow waiting for its document to be notarized.
"""

from dataclasses import dataclass
from typing import Union

from notaire.domain.value_objects.document_hash import DocumentHash, EscrowId


@dataclass(frozen=True)
class PendingEscrowEntry:
    """
    Correlation between a document hash and the escrow it unlocks.

    Lifecycle:
    - Created when the application opens an escrow (register_escrow)
    - Removed once the matching DocumentHashRecorded event released it
    - Persisted across restarts by the registry store
    """

    document_hash: DocumentHash
    escrow_id: EscrowId

    @classmethod
    def create(
        cls,
        document_hash: Union[str, bytes],
        escrow_id: Union[str, int],
    ) -> "PendingEscrowEntry":
        """
        Build from raw values, validating both.

        Raises:
            InvalidDocumentHashError: If the hash is not 32 bytes of hex
            InvalidEscrowIdError: If the escrow id is not a decimal integer
        """
        return cls(
            document_hash=DocumentHash(document_hash),
            escrow_id=EscrowId(escrow_id),
        )
