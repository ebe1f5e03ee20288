"""
Contract ABI loading with built-in fallbacks.

Hardhat artifacts are preferred when an artifacts directory is
configured; otherwise a minimal ABI covering the calls this service
makes is used.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Abi = List[Dict[str, Any]]

REQUIRED_CONTRACTS = ("Notary", "PaymentEscrow")
KNOWN_CONTRACTS = (
    "Notary",
    "PaymentEscrow",
    "ReceiptNFT",
    "ReputationBadge",
    "ZKProofVerifier",
)


def _param(name: str, abi_type: str, indexed: Optional[bool] = None) -> Dict[str, Any]:
    param: Dict[str, Any] = {"internalType": abi_type, "name": name, "type": abi_type}
    if indexed is not None:
        param["indexed"] = indexed
    return param


def _function(
    name: str,
    inputs: Abi,
    outputs: Optional[Abi] = None,
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": outputs or [],
        "stateMutability": mutability,
        "type": "function",
    }


FALLBACK_ABIS: Dict[str, Abi] = {
    "Notary": [
        {
            "anonymous": False,
            "inputs": [
                _param("documentHash", "bytes32", indexed=True),
                _param("recorder", "address", indexed=True),
                _param("timestamp", "uint256", indexed=False),
            ],
            "name": "DocumentHashRecorded",
            "type": "event",
        },
    ],
    "PaymentEscrow": [
        _function("releaseEscrow", [_param("escrowId", "uint256")]),
    ],
    "ReceiptNFT": [
        _function("mint", [_param("to", "address"), _param("tokenId", "uint256")]),
        _function(
            "tokenURI",
            [_param("tokenId", "uint256")],
            outputs=[_param("", "string")],
            mutability="view",
        ),
    ],
    "ReputationBadge": [
        _function("mint", [_param("to", "address"), _param("tokenId", "uint256")]),
    ],
    "ZKProofVerifier": [
        _function(
            "verifyProof",
            [_param("proofHash", "bytes32")],
            outputs=[_param("", "bool")],
            mutability="view",
        ),
    ],
}


def artifact_path(contract_name: str, artifacts_dir: str) -> Path:
    """Hardhat artifact location for a contract."""
    return (
        Path(artifacts_dir).expanduser()
        / "contracts"
        / f"{contract_name}.sol"
        / f"{contract_name}.json"
    )


def _resolve_abi(
    contract_name: str, artifacts_dir: Optional[str]
) -> Tuple[Optional[Abi], str]:
    if artifacts_dir:
        path = artifact_path(contract_name, artifacts_dir)
        if path.exists():
            try:
                with open(path, "r") as f:
                    artifact = json.load(f)
                abi = artifact["abi"]
                if isinstance(abi, list):
                    return abi, "artifacts"
                logger.warning(f"Artifact for {contract_name} has no ABI list")
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Failed to load {contract_name} from artifacts: {e}")

    if contract_name in FALLBACK_ABIS:
        return FALLBACK_ABIS[contract_name], "fallback"

    return None, "none"


def load_contract_abi(
    contract_name: str, artifacts_dir: Optional[str] = None
) -> Optional[Abi]:
    """
    Load a contract ABI.

    Args:
        contract_name: Contract name, e.g. "Notary"
        artifacts_dir: Hardhat artifacts directory, if any

    Returns:
        ABI list, or None if neither an artifact nor a fallback exists
    """
    abi, source = _resolve_abi(contract_name, artifacts_dir)
    if abi is None:
        logger.warning(f"No ABI available for {contract_name}")
    else:
        logger.debug(f"Using {source} ABI for {contract_name}")
    return abi


def are_contracts_available(artifacts_dir: Optional[str] = None) -> bool:
    """True if the notary and escrow ABIs can be loaded."""
    return all(
        load_contract_abi(name, artifacts_dir) is not None
        for name in REQUIRED_CONTRACTS
    )


def contract_status(artifacts_dir: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Availability and ABI source of every known contract.

    Returns:
        {"Notary": {"available": True, "source": "fallback"}, ...}
    """
    status = {}
    for name in KNOWN_CONTRACTS:
        abi, source = _resolve_abi(name, artifacts_dir)
        status[name] = {"available": abi is not None, "source": source}
    return status
