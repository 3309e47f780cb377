"""
WebhookRegistration entity - caller-supplied delivery target.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

DEFAULT_WEBHOOK_EVENTS = (
    "indexingCompleted",
    "indexingTimeout",
    "indexingError",
)


@dataclass(frozen=True)
class WebhookRegistration:
    """
    Registered webhook target.

    Business rules:
    - URL must be absolute http(s)
    - Subscribes to indexing terminal events unless told otherwise
    - Immutable; re-register to change
    """

    id: str
    url: str
    events: tuple[str, ...] = DEFAULT_WEBHOOK_EVENTS
    headers: dict[str, str] = field(default_factory=dict)
    secret: Optional[str] = None
    active: bool = True
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self):
        """Validate registration on creation."""
        if not self.id:
            raise ValueError("Webhook ID is required")

        parsed = urlparse(self.url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid webhook URL: {self.url}")

        if not self.events:
            raise ValueError("Webhook must subscribe to at least one event")

    def subscribes_to(self, event: str) -> bool:
        """Whether this target wants the given event."""
        return self.active and event in self.events

    def to_dict(self) -> dict:
        """Convert to dictionary representation (secret redacted)."""
        return {
            "id": self.id,
            "url": self.url,
            "events": list(self.events),
            "headers": dict(self.headers),
            "has_secret": bool(self.secret),
            "active": self.active,
            "created_at": self.created_at.isoformat(),
        }
