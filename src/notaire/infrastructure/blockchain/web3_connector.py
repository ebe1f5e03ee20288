"""
Builds web3 ledger adapters from configuration.
"""

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3, Web3

from shared.reporter import SystemReporter

from notaire.config.settings import NotaireConfig
from notaire.domain.exceptions import ConfigurationException
from notaire.domain.services import ILedgerConnector, LedgerConnection
from notaire.infrastructure.blockchain.abi_loader import load_contract_abi
from notaire.infrastructure.blockchain.web3_escrow_contract import Web3EscrowContract
from notaire.infrastructure.blockchain.web3_ledger_client import Web3LedgerClient


class Web3Connector(ILedgerConnector):
    """
    Connector for EVM chains over HTTP JSON-RPC.

    No network call happens here; the provider connects lazily.
    """

    def __init__(self, settings: NotaireConfig, reporter: SystemReporter):
        self._settings = settings
        self._reporter = reporter

    def connect(self) -> LedgerConnection:
        settings = self._settings

        missing = settings.missing_blockchain_settings()
        if missing:
            raise ConfigurationException(
                "Blockchain connection settings not configured",
                details={"missing": missing},
            )

        notary_abi = load_contract_abi("Notary", settings.artifacts_dir)
        escrow_abi = load_contract_abi("PaymentEscrow", settings.artifacts_dir)
        missing_abis = [
            f"{name} ABI"
            for name, abi in (("Notary", notary_abi), ("PaymentEscrow", escrow_abi))
            if abi is None
        ]
        if missing_abis:
            raise ConfigurationException(
                "Contract ABIs not available",
                details={"missing": missing_abis},
            )

        try:
            notary_address = Web3.to_checksum_address(settings.notary_contract_address)
            escrow_address = Web3.to_checksum_address(settings.escrow_contract_address)
        except (ValueError, TypeError) as e:
            raise ConfigurationException(
                f"Invalid contract address: {e}",
                details={"missing": []},
            ) from e

        try:
            account = Account.from_key(settings.private_key.get_secret_value())
        except Exception as e:
            # eth-keys raises several unrelated types for malformed keys.
            raise ConfigurationException(
                "Invalid private key",
                details={"missing": []},
            ) from e

        listener = settings.listener
        w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                settings.rpc_url,
                request_kwargs={
                    "timeout": aiohttp.ClientTimeout(total=listener.rpc_timeout)
                },
            )
        )

        ledger = Web3LedgerClient(
            w3,
            w3.eth.contract(address=notary_address, abi=notary_abi),
            self._reporter,
            poll_interval=listener.poll_interval,
            filter_install_attempts=listener.filter_install_attempts,
            max_backfill_blocks=listener.max_backfill_blocks,
        )
        escrow = Web3EscrowContract(
            w3,
            w3.eth.contract(address=escrow_address, abi=escrow_abi),
            account,
            self._reporter,
            confirmation_timeout=listener.confirmation_timeout,
        )

        self._reporter.info(
            f"Ledger adapters ready, signing as {account.address}",
            context="Web3",
        )
        return LedgerConnection(ledger=ledger, escrow=escrow)
