"""
Webhook notifier.

Fans indexing lifecycle events out to caller-registered HTTP targets.
Each delivery retries independently; one failing target never affects
the others or the caller.
"""

import asyncio
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import httpx

from frappeur import __version__
from frappeur.domain.entities.webhook_registration import (
    DEFAULT_WEBHOOK_EVENTS,
    WebhookRegistration,
)
from frappeur.domain.exceptions import WebhookNotFoundError
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger
from frappeur.infrastructure.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
)

logger = get_logger(__name__)

TEST_EVENT = "test"


class WebhookDeliveryError(Exception):
    """Target answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of delivering one event to one webhook."""

    webhook_id: str
    url: str
    event: str
    success: bool
    attempts: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    duration: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "webhook_id": self.webhook_id,
            "url": self.url,
            "event": self.event,
            "success": self.success,
            "attempts": self.attempts,
            "status_code": self.status_code,
            "error": self.error,
            "duration": round(self.duration, 3),
        }


def sign_payload(secret: str, body: bytes) -> str:
    """HMAC-SHA256 signature header value for a request body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class WebhookNotifier:
    """
    Registry of webhook targets plus concurrent delivery.

    Design:
    - HTTP client is lazily created unless one is injected
    - Body is serialized once and signed over the exact bytes sent
    - notify_event never raises
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
        user_agent: str = f"frappeur-webhook/{__version__}",
        signature_header: str = "X-Frappeur-Signature",
    ):
        """
        Initialize notifier.

        Args:
            http_client: Pre-built client (tests pass a MockTransport client)
            retry_attempts: Attempts per delivery
            retry_delay: Constant pause between attempts
            timeout: Per-attempt request timeout
            user_agent: User-Agent header value
            signature_header: Header carrying the HMAC signature
        """
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.user_agent = user_agent
        self.signature_header = signature_header

        self._webhooks: dict[str, WebhookRegistration] = {}
        self._client = http_client
        self._owns_client = http_client is None
        self._lock = asyncio.Lock()
        self._retry = Retry(
            RetryConfig(
                max_attempts=retry_attempts,
                initial_delay=retry_delay,
                backoff_strategy=BackoffStrategy.CONSTANT,
                jitter=False,
                retry_on=(httpx.HTTPError, WebhookDeliveryError),
            )
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        limits=httpx.Limits(
                            max_connections=20,
                            max_keepalive_connections=5,
                        ),
                    )
        return self._client

    # ================================================================
    # Registry
    # ================================================================

    def register_webhook(
        self,
        webhook_id: str,
        url: str,
        events: Optional[Sequence[str]] = None,
        headers: Optional[dict[str, str]] = None,
        secret: Optional[str] = None,
        active: bool = True,
    ) -> WebhookRegistration:
        """
        Register (or replace) a webhook target.

        Raises:
            ValueError: Invalid URL or empty event list
        """
        registration = WebhookRegistration(
            id=webhook_id,
            url=url,
            events=tuple(events) if events else DEFAULT_WEBHOOK_EVENTS,
            headers=dict(headers or {}),
            secret=secret,
            active=active,
        )
        replaced = webhook_id in self._webhooks
        self._webhooks[webhook_id] = registration

        logger.info(
            f"{'Replaced' if replaced else 'Registered'} webhook {webhook_id}",
            extra={"url": url, "events": list(registration.events)},
        )
        return registration

    def unregister_webhook(self, webhook_id: str) -> bool:
        """Remove a webhook; False if it was not registered."""
        removed = self._webhooks.pop(webhook_id, None)
        if removed is not None:
            logger.info(f"Unregistered webhook {webhook_id}")
        return removed is not None

    def get_webhook(self, webhook_id: str) -> WebhookRegistration:
        """
        Raises:
            WebhookNotFoundError: Unknown webhook ID
        """
        registration = self._webhooks.get(webhook_id)
        if registration is None:
            raise WebhookNotFoundError(webhook_id)
        return registration

    def list_webhooks(self) -> list[WebhookRegistration]:
        return list(self._webhooks.values())

    def get_webhook_stats(self) -> dict:
        active = sum(1 for w in self._webhooks.values() if w.active)
        return {
            "total": len(self._webhooks),
            "active": active,
            "inactive": len(self._webhooks) - active,
        }

    # ================================================================
    # Delivery
    # ================================================================

    async def notify_event(self, event: str, data: dict) -> list[DeliveryResult]:
        """
        Deliver an event to every active subscribed webhook concurrently.

        Returns:
            One DeliveryResult per targeted webhook
        """
        targets = [w for w in self._webhooks.values() if w.subscribes_to(event)]
        if not targets:
            return []

        results = await asyncio.gather(
            *(self.deliver(webhook, event, data) for webhook in targets),
            return_exceptions=True,
        )

        delivered: list[DeliveryResult] = []
        for webhook, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Webhook {webhook.id} delivery crashed: {result}",
                    exc_info=result,
                )
                result = DeliveryResult(
                    webhook_id=webhook.id,
                    url=webhook.url,
                    event=event,
                    success=False,
                    attempts=0,
                    error=str(result),
                )
            delivered.append(result)

        succeeded = sum(1 for r in delivered if r.success)
        logger.info(
            f"Event {event} delivered to {succeeded}/{len(delivered)} webhooks"
        )
        return delivered

    def build_body(
        self, webhook: WebhookRegistration, event: str, data: Any
    ) -> bytes:
        """Serialize the delivery body once."""
        payload = {
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
            "webhook_id": webhook.id,
        }
        return json.dumps(payload, default=str).encode("utf-8")

    def build_headers(self, webhook: WebhookRegistration, body: bytes) -> dict:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            **webhook.headers,
        }
        if webhook.secret:
            headers[self.signature_header] = sign_payload(webhook.secret, body)
        return headers

    async def deliver(
        self,
        webhook: WebhookRegistration,
        event: str,
        data: Any,
    ) -> DeliveryResult:
        """
        POST one event to one webhook with retries.

        Returns:
            DeliveryResult; failures are reported, not raised
        """
        client = await self._ensure_client()
        body = self.build_body(webhook, event, data)
        headers = self.build_headers(webhook, body)
        attempts = 0
        started = time.monotonic()

        async def _post() -> httpx.Response:
            nonlocal attempts
            attempts += 1
            response = await client.post(
                webhook.url,
                content=body,
                headers=headers,
                timeout=self.timeout,
            )
            if not 200 <= response.status_code < 300:
                raise WebhookDeliveryError(
                    response.status_code, response.text[:200]
                )
            return response

        try:
            response = await self._retry.execute_async(_post)
        except RetryError as e:
            last = e.last_exception
            status_code = (
                last.status_code if isinstance(last, WebhookDeliveryError) else None
            )
            metrics.webhook_deliveries_total.labels(
                event=event, result="failed"
            ).inc()
            logger.error(
                f"Webhook {webhook.id} failed after {attempts} attempts: {last}",
                extra={"url": webhook.url, "event": event},
            )
            return DeliveryResult(
                webhook_id=webhook.id,
                url=webhook.url,
                event=event,
                success=False,
                attempts=attempts,
                status_code=status_code,
                error=f"{type(last).__name__}: {last}",
                duration=time.monotonic() - started,
            )

        metrics.webhook_deliveries_total.labels(event=event, result="ok").inc()
        logger.debug(f"Webhook {webhook.id} accepted {event}")
        return DeliveryResult(
            webhook_id=webhook.id,
            url=webhook.url,
            event=event,
            success=True,
            attempts=attempts,
            status_code=response.status_code,
            duration=time.monotonic() - started,
        )

    async def test_webhook(self, webhook_id: str) -> DeliveryResult:
        """
        Send a test event through the normal delivery path.

        Raises:
            WebhookNotFoundError: Unknown webhook ID
        """
        webhook = self.get_webhook(webhook_id)
        return await self.deliver(
            webhook,
            TEST_EVENT,
            {"message": "Webhook test from frappeur", "webhook_id": webhook_id},
        )

    async def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
