"""
Domain value objects.
"""

from notaire.domain.value_objects.document_hash import DocumentHash, EscrowId
from notaire.domain.value_objects.listener_status import (
    ConnectionState,
    ListenerStatus,
)
from notaire.domain.value_objects.network_info import NetworkInfo

__all__ = [
    "DocumentHash",
    "EscrowId",
    "ConnectionState",
    "ListenerStatus",
    "NetworkInfo",
]
