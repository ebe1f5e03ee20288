"""
Listener API schemas.

Field names are camelCase to match the JSON contract of the Node.js
backend that consumes this service.
"""

from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr


class RegisterEscrowRequest(BaseModel):
    """
    Request to track an escrow until its document is notarized.

    Corresponds to: POST /listener/escrows
    """

    documentHash: StrictStr = Field(
        ...,
        description="32-byte document hash, hex encoded (0x prefix optional)",
    )
    escrowId: Union[StrictInt, StrictStr] = Field(
        ...,
        description="Escrow id as integer or decimal string",
    )


class RegisterEscrowResponse(BaseModel):
    """Registered entry plus the resulting listener state."""

    documentHash: str = Field(..., description="Normalized document hash")
    escrowId: str = Field(..., description="Escrow id as decimal string")
    pendingCount: int = Field(..., ge=0)
    isListening: bool


class ReconnectResponse(BaseModel):
    """Result of a manual reconnect."""

    success: bool
    state: str
    reconnectAttempts: int = Field(..., ge=0)


class ContractInfo(BaseModel):
    available: bool
    source: str = Field(..., description="artifacts, fallback or none")


class ContractsResponse(BaseModel):
    """ABI availability per known contract."""

    available: bool = Field(..., description="Notary and PaymentEscrow ABIs loadable")
    contractsInitialized: bool
    contracts: Dict[str, ContractInfo]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[dict] = None
