"""API routes."""

from frappeur.presentation.api.routes import (
    collections,
    health,
    indexing,
    mint,
    monitoring,
    webhooks,
)

__all__ = ["collections", "health", "indexing", "mint", "monitoring", "webhooks"]
