"""
Collection registry.

Collections are declared in configuration; the registry is read-only
apart from the minted counters it keeps for supply checks.
"""

from typing import Iterable, Optional

from frappeur.config.settings import CollectionConfig
from frappeur.domain.entities.collection import Collection, CollectionStatus
from frappeur.domain.exceptions import CollectionNotFoundError, MintNotAllowedError
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class CollectionRegistry:
    """Lookup and mint bookkeeping for configured collections."""

    def __init__(self, collections: Optional[Iterable[Collection]] = None):
        self._collections: dict[str, Collection] = {}
        for collection in collections or []:
            self._collections[collection.id] = collection

    @classmethod
    def from_config(
        cls, configs: Iterable[CollectionConfig]
    ) -> "CollectionRegistry":
        """Build registry from the settings collections block."""
        collections = [
            Collection(
                id=c.id,
                name=c.name,
                symbol=c.symbol,
                tree_address=c.tree_address,
                collection_address=c.collection_address,
                status=CollectionStatus(c.status),
                allow_minting=c.allow_minting,
                max_supply=c.max_supply,
                seller_fee_basis_points=c.seller_fee_basis_points,
            )
            for c in configs
        ]
        logger.info(f"Loaded {len(collections)} collections from config")
        return cls(collections)

    def get(self, collection_id: str) -> Collection:
        """
        Raises:
            CollectionNotFoundError: Unknown collection ID
        """
        collection = self._collections.get(collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return collection

    def list_collections(self) -> list[Collection]:
        return list(self._collections.values())

    def check_can_mint(self, collection_id: str, count: int = 1) -> Collection:
        """
        Resolve a collection that accepts `count` more mints.

        Raises:
            CollectionNotFoundError: Unknown collection ID
            MintNotAllowedError: Collection refuses new mints
        """
        collection = self.get(collection_id)
        allowed, reason = collection.can_mint(count)
        if not allowed:
            raise MintNotAllowedError(collection_id, reason)
        return collection

    def record_mint(self, collection_id: str, count: int = 1) -> None:
        """Bump the minted counter after a successful mint."""
        self.get(collection_id).record_mint(count)
