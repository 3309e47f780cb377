"""
FastAPI dependency injection.

Routes resolve components from the container stored on app.state by the
application factory.
"""

from fastapi import Depends, Request

from frappeur.application.mint_orchestrator import MintOrchestrator
from frappeur.di.container import FrappeurContainer
from frappeur.infrastructure.collections.collection_registry import (
    CollectionRegistry,
)
from frappeur.infrastructure.notifications.webhook_notifier import (
    WebhookNotifier,
)


def get_container(request: Request) -> FrappeurContainer:
    """Get the container of the running app."""
    return request.app.state.container


def get_orchestrator(
    container: FrappeurContainer = Depends(get_container),
) -> MintOrchestrator:
    """Get MintOrchestrator dependency."""
    return container.orchestrator


def get_webhook_notifier(
    container: FrappeurContainer = Depends(get_container),
) -> WebhookNotifier:
    """Get WebhookNotifier dependency."""
    return container.webhook_notifier


def get_collection_registry(
    container: FrappeurContainer = Depends(get_container),
) -> CollectionRegistry:
    """Get CollectionRegistry dependency."""
    return container.collection_registry
