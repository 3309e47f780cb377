"""
Webhook API routes.

- POST /webhooks - Register a target
- GET /webhooks - List targets
- GET /webhooks/stats - Counts
- DELETE /webhooks/{webhook_id} - Unregister
- POST /webhooks/{webhook_id}/test - Send a test event
"""

from uuid import uuid4

from fastapi import APIRouter, Depends, status

from frappeur.di.dependencies import get_webhook_notifier
from frappeur.domain.exceptions import ValidationError, WebhookNotFoundError
from frappeur.infrastructure.notifications.webhook_notifier import (
    WebhookNotifier,
)
from frappeur.presentation.schemas.webhook_schemas import (
    DeliveryResultResponse,
    WebhookRegisterRequest,
    WebhookResponse,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_webhook(
    request: WebhookRegisterRequest,
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> WebhookResponse:
    """Register (or replace) a webhook target."""
    try:
        registration = notifier.register_webhook(
            webhook_id=request.id or str(uuid4()),
            url=request.url,
            events=request.events,
            headers=request.headers,
            secret=request.secret,
            active=request.active,
        )
    except ValueError as e:
        raise ValidationError("webhook", str(e)) from e

    return WebhookResponse(**registration.to_dict())


@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> list[WebhookResponse]:
    return [WebhookResponse(**w.to_dict()) for w in notifier.list_webhooks()]


@router.get("/stats")
async def get_webhook_stats(
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> dict:
    return notifier.get_webhook_stats()


@router.delete("/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_webhook(
    webhook_id: str,
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> None:
    if not notifier.unregister_webhook(webhook_id):
        raise WebhookNotFoundError(webhook_id)


@router.post("/{webhook_id}/test", response_model=DeliveryResultResponse)
async def test_webhook(
    webhook_id: str,
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> DeliveryResultResponse:
    """Deliver a test event through the normal retry path."""
    result = await notifier.test_webhook(webhook_id)
    return DeliveryResultResponse(**result.to_dict())
