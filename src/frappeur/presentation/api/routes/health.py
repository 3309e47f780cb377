"""
Health check API routes.

Kubernetes-compatible liveness and readiness probes.
"""

from fastapi import APIRouter, Depends, Response, status

from frappeur import __version__
from frappeur.di.container import FrappeurContainer
from frappeur.di.dependencies import get_container
from frappeur.domain.exceptions import ChainConnectionError

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_probe() -> dict:
    """Process is up and serving requests."""
    return {"status": "healthy", "version": __version__}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_probe(
    response: Response,
    container: FrappeurContainer = Depends(get_container),
) -> dict:
    """
    Readiness probe endpoint.

    Checks:
    - An RPC endpoint answers
    - Database connectivity (when configured)

    Returns:
        Health status dict; 503 when a dependency is down
    """
    checks: dict[str, dict] = {}

    try:
        endpoint = await container.chain_client.connect()
        checks["rpc"] = {"status": "healthy", "endpoint": endpoint}
    except ChainConnectionError as e:
        checks["rpc"] = {"status": "unhealthy", "error": e.message}

    if container.database is not None:
        db_healthy = await container.database.health_check()
        checks["database"] = {"status": "healthy" if db_healthy else "unhealthy"}

    monitor = container.indexing_monitor.get_monitoring_stats()
    checks["indexing_monitor"] = {
        "status": "healthy",
        "active_jobs": monitor["active_jobs"],
        "is_running": monitor["is_running"],
    }

    healthy = all(c["status"] == "healthy" for c in checks.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {"status": "healthy" if healthy else "unhealthy", "checks": checks}
