"""
Translation of web3/aiohttp failures into ledger exceptions.
"""

import asyncio

import aiohttp
from web3.exceptions import TimeExhausted

from notaire.domain.exceptions import (
    LedgerException,
    ProviderDisconnectedException,
    RPCConnectionException,
    RPCException,
    RPCTimeoutException,
    StaleFilterException,
)


def translate_rpc_error(error: BaseException, operation: str) -> LedgerException:
    """
    Map a transport or provider error to the ledger exception taxonomy.

    Args:
        error: Raised exception
        operation: RPC operation name, stored in details

    Returns:
        LedgerException subclass (error itself if it already is one)
    """
    if isinstance(error, LedgerException):
        return error

    details = {"operation": operation, "error_type": type(error).__name__}
    message = str(error)
    lowered = message.lower()

    if isinstance(error, (asyncio.TimeoutError, TimeoutError, TimeExhausted)):
        return RPCTimeoutException(f"RPC timeout: {operation}", details=details)
    if isinstance(error, aiohttp.ServerDisconnectedError):
        return ProviderDisconnectedException(
            f"Provider disconnected during {operation}: {message}",
            details=details,
        )
    if isinstance(error, (aiohttp.ClientError, ConnectionError)):
        return RPCConnectionException(
            f"RPC connection error during {operation}: {message}",
            details=details,
        )
    if "filter not found" in lowered:
        return StaleFilterException(f"Filter not found: {message}", details=details)
    if "disconnected" in lowered:
        return ProviderDisconnectedException(
            f"Provider disconnected during {operation}: {message}",
            details=details,
        )

    return RPCException(f"RPC error during {operation}: {message}", details=details)
