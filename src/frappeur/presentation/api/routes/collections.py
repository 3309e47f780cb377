"""
Collection API routes (read-only).
"""

from fastapi import APIRouter, Depends

from frappeur.di.dependencies import get_collection_registry
from frappeur.infrastructure.collections.collection_registry import (
    CollectionRegistry,
)

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("")
async def list_collections(
    registry: CollectionRegistry = Depends(get_collection_registry),
) -> dict:
    collections = [c.to_dict() for c in registry.list_collections()]
    return {"collections": collections, "count": len(collections)}


@router.get("/{collection_id}")
async def get_collection(
    collection_id: str,
    registry: CollectionRegistry = Depends(get_collection_registry),
) -> dict:
    return registry.get(collection_id).to_dict()
