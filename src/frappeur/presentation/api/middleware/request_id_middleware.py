"""
Request ID middleware.

The request ID lives in a ContextVar. Mint pipelines spawned while a
request is handled copy that context, so pipeline, monitor and webhook
logs for an operation carry the request_id of the call that accepted it.
"""

import re
import time
from typing import Callable, Optional
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from frappeur.infrastructure.monitoring.logger import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
OPERATION_ID_HEADER = "X-Operation-ID"

# Client IDs end up in every log line of the pipeline they start
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

_QUIET_PREFIXES = ("/health", "/metrics")


def _operation_id(request: Request) -> Optional[str]:
    """Operation touched by the request: path parameter or a newly accepted mint."""
    return request.path_params.get("operation_id") or getattr(
        request.state, "operation_id", None
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID and link it to the mint operation it touches.

    - Reuses a well-formed X-Request-ID header, otherwise generates one
    - Echoes X-Request-ID, plus X-Operation-ID when an operation is involved
    - Logs one access line with operation_id/asset_id as structured fields
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        if _VALID_REQUEST_ID.match(incoming):
            request_id = incoming
        else:
            request_id = str(uuid4())

        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)

            response.headers[REQUEST_ID_HEADER] = request_id
            operation_id = _operation_id(request)
            if operation_id:
                response.headers[OPERATION_ID_HEADER] = operation_id

            path = request.url.path
            log = logger.debug if path.startswith(_QUIET_PREFIXES) else logger.info
            log(
                f"{request.method} {path} {response.status_code}",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "operation_id": operation_id,
                    "asset_id": request.path_params.get("asset_id"),
                },
            )
            return response
        finally:
            request_id_ctx.reset(token)
