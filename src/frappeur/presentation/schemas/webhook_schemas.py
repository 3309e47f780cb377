"""
API schemas for webhook registration.
"""

from typing import Optional

from pydantic import BaseModel, Field


class WebhookRegisterRequest(BaseModel):
    """Request schema for registering a webhook."""

    id: Optional[str] = Field(
        default=None, description="Webhook ID (generated if omitted)"
    )
    url: str = Field(..., examples=["https://example.com/hooks/frappeur"])
    events: Optional[list[str]] = Field(
        default=None,
        description="Events to receive (indexing terminal events if omitted)",
    )
    headers: dict[str, str] = Field(default_factory=dict)
    secret: Optional[str] = Field(
        default=None, description="HMAC-SHA256 signing secret"
    )
    active: bool = Field(default=True)


class WebhookResponse(BaseModel):
    """Registered webhook (secret redacted)."""

    id: str
    url: str
    events: list[str]
    headers: dict[str, str]
    has_secret: bool
    active: bool
    created_at: str


class DeliveryResultResponse(BaseModel):
    """Outcome of one webhook delivery."""

    webhook_id: str
    url: str
    event: str
    success: bool
    attempts: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    duration: float
