"""
Mint API routes.

- POST /mint/single - Accept one mint (202)
- POST /mint/batch - Accept a batch of mints (202)
- GET /mint/status/{operation_id} - Operation progress
- GET /mint/operations - Recent operations
- GET /mint/estimate - Cost estimate
- GET /mint/wallet - Minting wallet balance
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from frappeur.application.mint_orchestrator import MintOrchestrator
from frappeur.di.dependencies import get_orchestrator
from frappeur.domain.entities.mint_operation import MintOperation
from frappeur.presentation.schemas.mint_schemas import (
    MintAcceptedResponse,
    MintBatchRequest,
    MintSingleRequest,
)

router = APIRouter(prefix="/mint", tags=["mint"])


def _accepted(
    operation: MintOperation, http_request: Request
) -> MintAcceptedResponse:
    # Picked up by RequestIDMiddleware for X-Operation-ID and the access log
    http_request.state.operation_id = operation.id
    return MintAcceptedResponse(
        operation_id=operation.id,
        status=operation.status.value,
        type=operation.type.value,
        total_items=operation.total_items,
        status_url=f"/api/mint/status/{operation.id}",
    )


@router.post(
    "/single",
    response_model=MintAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Mint one compressed NFT",
)
async def mint_single(
    request: MintSingleRequest,
    http_request: Request,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> MintAcceptedResponse:
    """
    Validate and schedule a single mint.

    Minting continues in the background; poll the status URL.
    """
    operation = await orchestrator.accept_mint(
        collection_id=request.collection_id,
        recipient=request.recipient,
        metadata=request.metadata.model_dump(exclude_none=True),
    )
    return _accepted(operation, http_request)


@router.post(
    "/batch",
    response_model=MintAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Mint a batch of compressed NFTs",
)
async def mint_batch(
    request: MintBatchRequest,
    http_request: Request,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> MintAcceptedResponse:
    """Validate every item up front, then mint sequentially."""
    operation = await orchestrator.accept_batch_mint(
        collection_id=request.collection_id,
        items=[
            {
                "recipient": item.recipient,
                "metadata": item.metadata.model_dump(exclude_none=True),
            }
            for item in request.items
        ],
    )
    return _accepted(operation, http_request)


@router.get("/status/{operation_id}")
async def get_mint_status(
    operation_id: str,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Operation snapshot including indexing progress."""
    return await orchestrator.get_operation_status(operation_id)


@router.get("/operations")
async def list_operations(
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="processing/completed/failed"
    ),
    operation_type: Optional[str] = Query(
        default=None, alias="type", description="single/batch"
    ),
    collection_id: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Recent operations, newest first."""
    operations = await orchestrator.list_operations(
        status=status_filter,
        operation_type=operation_type,
        collection_id=collection_id,
        limit=limit,
    )
    return {"operations": operations, "count": len(operations)}


@router.get("/estimate")
async def estimate_mint_cost(
    items: int = Query(default=1, description="Number of leaves to mint"),
    check_balance: bool = Query(
        default=False, description="Compare against the wallet balance"
    ),
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Approximate SOL cost of a mint."""
    if check_balance:
        return await orchestrator.can_afford_operation(items)
    return orchestrator.estimate_mint_cost(items)


@router.get("/wallet")
async def get_wallet_status(
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Balance of the minting identity."""
    return await orchestrator.get_wallet_status()
