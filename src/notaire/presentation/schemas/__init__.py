"""
Notaire API request/response schemas.
"""

from notaire.presentation.schemas.listener import (
    ContractInfo,
    ContractsResponse,
    ErrorResponse,
    ReconnectResponse,
    RegisterEscrowRequest,
    RegisterEscrowResponse,
)

__all__ = [
    "ContractInfo",
    "ContractsResponse",
    "ErrorResponse",
    "ReconnectResponse",
    "RegisterEscrowRequest",
    "RegisterEscrowResponse",
]
