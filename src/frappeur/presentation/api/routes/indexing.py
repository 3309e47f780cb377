"""
Indexing API routes.

- GET /indexing/{asset_id} - Quick read-index status
- POST /indexing/{asset_id}/recheck - Full diagnostic now
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from frappeur.application.mint_orchestrator import MintOrchestrator
from frappeur.di.dependencies import get_orchestrator

router = APIRouter(prefix="/indexing", tags=["indexing"])


@router.get("/{asset_id}")
async def get_indexing_status(
    asset_id: str,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Whether the asset and its proof are served by the read-index."""
    return await orchestrator.get_indexing_status(asset_id)


@router.post("/{asset_id}/recheck")
async def force_recheck(
    asset_id: str,
    operation_id: Optional[str] = Query(
        default=None, description="Operation to update when indexed"
    ),
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """
    Run tree, asset and proof checks immediately.

    When the asset is indexed and operation_id is given, the operation is
    marked indexed and its monitoring job stops.
    """
    return await orchestrator.force_recheck_indexing(asset_id, operation_id)
