"""Logging and metrics."""

from frappeur.infrastructure.monitoring.logger import (
    get_logger,
    request_id_ctx,
    setup_logging,
)

__all__ = ["get_logger", "request_id_ctx", "setup_logging"]
