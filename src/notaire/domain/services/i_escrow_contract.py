"""
Escrow contract service interface.
"""

from abc import ABC, abstractmethod

from notaire.domain.value_objects.document_hash import EscrowId


class ITransactionHandle(ABC):
    """A submitted transaction."""

    @property
    @abstractmethod
    def tx_hash(self) -> str:
        """Transaction hash as 0x-prefixed hex."""

    @abstractmethod
    async def wait_for_confirmation(self) -> None:
        """
        Wait until the transaction is mined successfully.

        Raises:
            TransactionRevertedException: If the transaction reverted
            TransactionException: If confirmation could not be obtained
        """


class IEscrowContract(ABC):
    """Payment escrow contract bound to a signing account."""

    @abstractmethod
    async def release(self, escrow_id: EscrowId) -> ITransactionHandle:
        """
        Submit releaseEscrow(escrow_id).

        Raises:
            TransactionException: If the transaction cannot be submitted
        """
