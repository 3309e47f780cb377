"""
API schemas for indexing monitoring.
"""

from pydantic import BaseModel, Field


class StopMonitoringRequest(BaseModel):
    """Request schema for stopping a monitoring job."""

    reason: str = Field(default="manual", max_length=100)


class StopMonitoringResponse(BaseModel):
    """Result of a stop request."""

    operation_id: str
    stopped: bool
