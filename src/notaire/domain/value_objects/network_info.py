"""
NetworkInfo value object.
"""

from dataclasses import dataclass
from typing import Optional

KNOWN_NETWORKS = {
    1: "mainnet",
    10: "optimism",
    137: "matic",
    8453: "base",
    31337: "hardhat",
    42161: "arbitrum",
    80002: "amoy",
    11155111: "sepolia",
}


@dataclass(frozen=True)
class NetworkInfo:
    """Chain the RPC endpoint is connected to."""

    chain_id: int
    name: Optional[str] = None

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "NetworkInfo":
        """Build with the well-known name for chain_id, if any."""
        return cls(chain_id=chain_id, name=KNOWN_NETWORKS.get(chain_id))

    @property
    def label(self) -> str:
        """Network name, falling back to the chain id."""
        return self.name or str(self.chain_id)
