"""Configured collections."""

from frappeur.infrastructure.collections.collection_registry import (
    CollectionRegistry,
)

__all__ = ["CollectionRegistry"]
