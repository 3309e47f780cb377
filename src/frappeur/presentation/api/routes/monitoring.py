"""
Monitoring API routes.

- GET /monitoring/stats
- GET /monitoring/operations
- GET /monitoring/operations/{operation_id}
- POST /monitoring/operations/{operation_id}/stop
"""

from typing import Optional

from fastapi import APIRouter, Depends

from frappeur.application.mint_orchestrator import MintOrchestrator
from frappeur.di.dependencies import get_orchestrator
from frappeur.presentation.schemas.monitoring_schemas import (
    StopMonitoringRequest,
    StopMonitoringResponse,
)

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


@router.get("/stats")
async def get_monitoring_stats(
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    return orchestrator.get_monitoring_stats()


@router.get("/operations")
async def get_active_operations(
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    operations = orchestrator.get_active_monitoring()
    return {"operations": operations, "count": len(operations)}


@router.get("/operations/{operation_id}")
async def get_monitoring_status(
    operation_id: str,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Active or recently finished monitoring job."""
    return orchestrator.get_monitoring_status(operation_id)


@router.post(
    "/operations/{operation_id}/stop",
    response_model=StopMonitoringResponse,
)
async def stop_monitoring(
    operation_id: str,
    request: Optional[StopMonitoringRequest] = None,
    orchestrator: MintOrchestrator = Depends(get_orchestrator),
) -> StopMonitoringResponse:
    """Stop polling; stopped is False when no active job exists."""
    reason = request.reason if request else "manual"
    stopped = await orchestrator.stop_monitoring(operation_id, reason)
    return StopMonitoringResponse(operation_id=operation_id, stopped=stopped)
