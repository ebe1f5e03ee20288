"""
Listener API routes.

Every failure is answered with an {"error": ...} body; nothing raises
past this layer.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from notaire.domain.exceptions import InvalidDocumentHashError, InvalidEscrowIdError
from notaire.infrastructure.blockchain import are_contracts_available, contract_status
from notaire.presentation.schemas.listener import (
    ContractsResponse,
    ReconnectResponse,
    RegisterEscrowRequest,
    RegisterEscrowResponse,
)

router = APIRouter(prefix="/listener", tags=["listener"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _contracts_unavailable() -> JSONResponse:
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Blockchain features disabled: contracts not initialized",
    )


@router.get("/status")
async def get_status(req: Request):
    """Current listener status snapshot."""
    return req.app.state.listener.get_listener_status().to_dict()


@router.post(
    "/escrows",
    response_model=RegisterEscrowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_escrow(request_data: RegisterEscrowRequest, req: Request):
    """
    Track an escrow until its document hash is notarized.

    Starts the event listener when this is the first pending escrow.
    """
    listener = req.app.state.listener
    if not listener.contracts_initialized:
        return _contracts_unavailable()

    try:
        entry = listener.register_escrow(
            request_data.documentHash, request_data.escrowId
        )
    except (InvalidDocumentHashError, InvalidEscrowIdError) as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))

    return RegisterEscrowResponse(
        documentHash=entry.document_hash.value,
        escrowId=entry.escrow_id.value,
        pendingCount=listener.registry.size(),
        isListening=listener.is_listening,
    )


@router.post("/reconnect", response_model=ReconnectResponse)
async def reconnect(req: Request):
    """Manually reconnect, resetting the attempt counter."""
    listener = req.app.state.listener
    if not listener.contracts_initialized:
        return _contracts_unavailable()

    success = listener.reconnect()
    snapshot = listener.get_listener_status()
    return ReconnectResponse(
        success=success,
        state=snapshot.state.value,
        reconnectAttempts=snapshot.reconnect_attempts,
    )


@router.get("/diagnostics/provider")
async def diagnose_provider(req: Request):
    """RPC connectivity check."""
    return await req.app.state.listener.test_provider_connection()


@router.get("/diagnostics/events")
async def diagnose_events(req: Request):
    """Recent event query over the look-back window."""
    return await req.app.state.listener.test_event_listener()


@router.get("/contracts", response_model=ContractsResponse)
async def get_contracts(req: Request):
    """ABI availability per contract."""
    artifacts_dir = req.app.state.settings.artifacts_dir
    return ContractsResponse(
        available=are_contracts_available(artifacts_dir),
        contractsInitialized=req.app.state.listener.contracts_initialized,
        contracts=contract_status(artifacts_dir),
    )
