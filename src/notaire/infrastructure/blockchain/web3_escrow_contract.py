"""
web3.py payment escrow contract.
"""

from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from shared.reporter import SystemReporter

from notaire.domain.exceptions import (
    TransactionException,
    TransactionRevertedException,
)
from notaire.domain.services import IEscrowContract, ITransactionHandle
from notaire.domain.value_objects import EscrowId
from notaire.infrastructure.blockchain.errors import translate_rpc_error


class Web3TransactionHandle(ITransactionHandle):
    """Submitted releaseEscrow transaction."""

    def __init__(self, w3: AsyncWeb3, tx_hash: bytes, timeout: float):
        self._w3 = w3
        self._tx_hash = tx_hash
        self._timeout = timeout

    @property
    def tx_hash(self) -> str:
        return Web3.to_hex(self._tx_hash)

    async def wait_for_confirmation(self) -> None:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                self._tx_hash, timeout=self._timeout
            )
        except TimeExhausted as e:
            raise TransactionException(
                f"Transaction {self.tx_hash} not mined within {self._timeout:.0f}s",
                details={"tx_hash": self.tx_hash, "timeout": self._timeout},
            ) from e
        except Exception as e:
            error = translate_rpc_error(e, "eth_getTransactionReceipt")
            raise TransactionException(
                f"Failed to confirm transaction {self.tx_hash}: {error.message}",
                details={"tx_hash": self.tx_hash, **error.details},
            ) from e

        if receipt["status"] != 1:
            raise TransactionRevertedException(
                f"Transaction {self.tx_hash} reverted",
                details={
                    "tx_hash": self.tx_hash,
                    "block_number": receipt.get("blockNumber"),
                },
            )


class Web3EscrowContract(IEscrowContract):
    """
    PaymentEscrow bound to the service signing account.

    Transactions are built, signed locally and sent raw; the node never
    holds the key.
    """

    CONTEXT = "Web3Escrow"

    def __init__(
        self,
        w3: AsyncWeb3,
        contract: Any,
        account: LocalAccount,
        reporter: SystemReporter,
        confirmation_timeout: float = 120.0,
    ):
        """
        Initialize escrow contract.

        Args:
            w3: Connected AsyncWeb3 instance
            contract: PaymentEscrow contract bound to w3
            account: Signing account
            reporter: Logger
            confirmation_timeout: Seconds to wait for a receipt
        """
        self._w3 = w3
        self._contract = contract
        self._account = account
        self._reporter = reporter
        self._confirmation_timeout = confirmation_timeout

    @property
    def signer_address(self) -> str:
        return self._account.address

    async def release(self, escrow_id: EscrowId) -> ITransactionHandle:
        details = {"escrow_id": escrow_id.value, "from": self._account.address}
        try:
            nonce = await self._w3.eth.get_transaction_count(
                self._account.address, "pending"
            )
            tx = await self._contract.functions.releaseEscrow(
                escrow_id.as_int()
            ).build_transaction({"from": self._account.address, "nonce": nonce})
        except ContractLogicError as e:
            raise TransactionRevertedException(
                f"releaseEscrow({escrow_id}) would revert: {e}",
                details=details,
            ) from e
        except Exception as e:
            error = translate_rpc_error(e, "releaseEscrow")
            raise TransactionException(
                f"Failed to build releaseEscrow({escrow_id}): {error.message}",
                details={**details, **error.details},
            ) from e

        signed = self._account.sign_transaction(tx)
        try:
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            error = translate_rpc_error(e, "eth_sendRawTransaction")
            raise TransactionException(
                f"Failed to send releaseEscrow({escrow_id}): {error.message}",
                details={**details, **error.details},
            ) from e

        handle = Web3TransactionHandle(self._w3, tx_hash, self._confirmation_timeout)
        self._reporter.info(
            f"Sent releaseEscrow({escrow_id}) as {handle.tx_hash}",
            context=self.CONTEXT,
        )
        return handle
