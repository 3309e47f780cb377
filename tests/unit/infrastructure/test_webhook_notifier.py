"""
Unit tests for WebhookNotifier.

HTTP targets are simulated with httpx.MockTransport.

Usage:
    pytest tests/unit/infrastructure/test_webhook_notifier.py
"""

import json

import pytest

from frappeur.domain.exceptions import WebhookNotFoundError
from frappeur.infrastructure.notifications import WebhookNotifier
from frappeur.infrastructure.notifications.webhook_notifier import sign_payload
from helpers import WebhookTarget


class TestWebhookNotifier:
    """Unit tests for webhook registry and delivery."""

    # ================================================================
    # Helper Methods
    # ================================================================

    def _create_notifier(self, target: WebhookTarget, **kwargs):
        client = target.client()
        defaults = {"retry_attempts": 3, "retry_delay": 0.0, "timeout": 1.0}
        defaults.update(kwargs)
        return WebhookNotifier(http_client=client, **defaults)

    # ================================================================
    # Registry
    # ================================================================

    def test_register_and_stats(self):
        """Test registration, replacement and stats."""
        notifier = WebhookNotifier()

        notifier.register_webhook("a", "https://a.test/hook")
        notifier.register_webhook("b", "https://b.test/hook", active=False)
        notifier.register_webhook("a", "https://a2.test/hook")

        assert notifier.get_webhook("a").url == "https://a2.test/hook"
        assert notifier.get_webhook_stats() == {
            "total": 2,
            "active": 1,
            "inactive": 1,
        }

    def test_unregister(self):
        """Test unregister reports whether the webhook existed."""
        notifier = WebhookNotifier()
        notifier.register_webhook("a", "https://a.test/hook")

        assert notifier.unregister_webhook("a") is True
        assert notifier.unregister_webhook("a") is False
        with pytest.raises(WebhookNotFoundError):
            notifier.get_webhook("a")

    def test_register_invalid_url(self):
        """Test invalid URL is rejected at registration."""
        with pytest.raises(ValueError):
            WebhookNotifier().register_webhook("a", "not-a-url")

    # ================================================================
    # Delivery
    # ================================================================

    async def test_delivery_body_and_headers(self):
        """Test JSON envelope, custom headers and HMAC signature."""
        target = WebhookTarget()
        notifier = self._create_notifier(target)
        notifier.register_webhook(
            "a",
            "https://a.test/hook",
            headers={"X-Tenant": "acme"},
            secret="s3cret",
        )

        results = await notifier.notify_event(
            "indexingCompleted", {"asset_id": "abc"}
        )

        assert len(results) == 1
        assert results[0].success
        assert results[0].attempts == 1
        assert results[0].status_code == 200

        request = target.requests[0]
        body = json.loads(request.content)
        assert body["event"] == "indexingCompleted"
        assert body["data"] == {"asset_id": "abc"}
        assert body["webhook_id"] == "a"
        assert "timestamp" in body
        assert request.headers["X-Tenant"] == "acme"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"].startswith("frappeur-webhook/")
        assert request.headers["X-Frappeur-Signature"] == sign_payload(
            "s3cret", request.content
        )

    async def test_no_signature_without_secret(self):
        """Test signature header is omitted when no secret is set."""
        target = WebhookTarget()
        notifier = self._create_notifier(target)
        notifier.register_webhook("a", "https://a.test/hook")

        await notifier.notify_event("indexingCompleted", {})

        assert "X-Frappeur-Signature" not in target.requests[0].headers

    async def test_non_2xx_retried_until_budget(self):
        """Test persistent 500 uses every attempt and reports failure."""
        target = WebhookTarget({"a.test": [500]})
        notifier = self._create_notifier(target)
        notifier.register_webhook("a", "https://a.test/hook")

        results = await notifier.notify_event("indexingTimeout", {})

        assert target.hits("a.test") == 3
        assert results[0].success is False
        assert results[0].attempts == 3
        assert results[0].status_code == 500
        assert "HTTP 500" in results[0].error

    async def test_recovers_after_transient_failure(self):
        """Test a retry succeeds after one 503."""
        target = WebhookTarget({"a.test": [503, 200]})
        notifier = self._create_notifier(target)
        notifier.register_webhook("a", "https://a.test/hook")

        results = await notifier.notify_event("indexingCompleted", {})

        assert results[0].success
        assert results[0].attempts == 2

    async def test_network_error_reported(self):
        """Test connection errors end as a failed result without status."""
        target = WebhookTarget({"a.test": [0]})
        notifier = self._create_notifier(target, retry_attempts=2)
        notifier.register_webhook("a", "https://a.test/hook")

        results = await notifier.notify_event("indexingError", {})

        assert results[0].success is False
        assert results[0].status_code is None
        assert "ConnectError" in results[0].error

    async def test_failing_target_does_not_affect_others(self):
        """Test per-target isolation."""
        target = WebhookTarget({"bad.test": [500], "good.test": [200]})
        notifier = self._create_notifier(target)
        notifier.register_webhook("bad", "https://bad.test/hook")
        notifier.register_webhook("good", "https://good.test/hook")

        results = await notifier.notify_event("indexingCompleted", {})

        by_id = {r.webhook_id: r for r in results}
        assert by_id["good"].success is True
        assert by_id["good"].attempts == 1
        assert by_id["bad"].success is False
        assert target.hits("good.test") == 1

    async def test_only_subscribed_active_targets(self):
        """Test event filtering and inactive targets."""
        target = WebhookTarget()
        notifier = self._create_notifier(target)
        notifier.register_webhook(
            "started", "https://s.test/hook", events=["monitoringStarted"]
        )
        notifier.register_webhook("default", "https://d.test/hook")
        notifier.register_webhook("off", "https://o.test/hook", active=False)

        results = await notifier.notify_event("monitoringStarted", {})

        assert [r.webhook_id for r in results] == ["started"]
        assert target.hits("d.test") == 0
        assert target.hits("o.test") == 0

    async def test_no_targets(self):
        """Test notify with no registrations sends nothing."""
        target = WebhookTarget()
        notifier = self._create_notifier(target)

        assert await notifier.notify_event("indexingCompleted", {}) == []
        assert target.requests == []

    async def test_test_webhook(self):
        """Test test delivery ignores the subscription list."""
        target = WebhookTarget()
        notifier = self._create_notifier(target)
        notifier.register_webhook("a", "https://a.test/hook")

        result = await notifier.test_webhook("a")

        assert result.success
        assert json.loads(target.requests[0].content)["event"] == "test"

    async def test_test_webhook_unknown(self):
        """Test test delivery to an unknown webhook raises."""
        notifier = self._create_notifier(WebhookTarget())

        with pytest.raises(WebhookNotFoundError):
            await notifier.test_webhook("missing")

    async def test_close_keeps_injected_client(self):
        """Test close leaves a caller-owned client open."""
        client = WebhookTarget().client()
        notifier = WebhookNotifier(http_client=client)

        await notifier.close()

        assert not client.is_closed
        await client.aclose()
