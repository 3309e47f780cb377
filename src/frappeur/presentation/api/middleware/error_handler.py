"""
Global error handling middleware.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from frappeur.domain.exceptions import FrappeurException
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

STATUS_CODE_MAP = {
    "ENTITY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "MINT_NOT_ALLOWED": status.HTTP_400_BAD_REQUEST,
    "CHAIN_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "RPC_ERROR": status.HTTP_502_BAD_GATEWAY,
    "READ_INDEX_ERROR": status.HTTP_502_BAD_GATEWAY,
    "BLOCKCHAIN_ERROR": status.HTTP_502_BAD_GATEWAY,
}


async def frappeur_exception_handler(
    request: Request, exc: FrappeurException
) -> JSONResponse:
    """
    Handle Frappeur domain exceptions.

    Converts domain exceptions to appropriate HTTP responses.
    """
    status_code = STATUS_CODE_MAP.get(
        exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}",
            extra={"code": exc.code},
        )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "message": exc.message,
        },
    )
