"""
Collection entity - a Merkle tree plus its collection mint.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class CollectionStatus(str, Enum):
    """Collection minting states."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class Collection:
    """
    Collection entity.

    Business rules:
    - Minting requires ACTIVE status and allow_minting
    - total_minted never exceeds max_supply when a supply cap is set
    """

    id: str
    name: str
    tree_address: str
    collection_address: str
    symbol: str = field(default="")
    status: CollectionStatus = field(default=CollectionStatus.ACTIVE)
    allow_minting: bool = field(default=True)
    total_minted: int = field(default=0)
    max_supply: Optional[int] = field(default=None)
    seller_fee_basis_points: int = field(default=0)

    def __post_init__(self):
        """Validate collection data after initialization."""
        if not self.id:
            raise ValueError("Collection ID is required")

        if not self.tree_address or not self.collection_address:
            raise ValueError("Tree and collection addresses are required")

    def can_mint(self, count: int = 1) -> tuple[bool, Optional[str]]:
        """
        Check whether `count` more leaves may be minted.

        Returns:
            (allowed, reason) tuple; reason is None when allowed
        """
        if self.status != CollectionStatus.ACTIVE:
            return False, f"collection is {self.status.value}"

        if not self.allow_minting:
            return False, "minting disabled for collection"

        if (
            self.max_supply is not None
            and self.total_minted + count > self.max_supply
        ):
            return False, (
                f"max supply reached ({self.total_minted}/{self.max_supply})"
            )

        return True, None

    def record_mint(self, count: int = 1) -> None:
        """Increment minted counter."""
        if count < 0:
            raise ValueError("Mint count must be non-negative")
        self.total_minted += count

    def to_dict(self) -> dict:
        """Convert entity to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "tree_address": self.tree_address,
            "collection_address": self.collection_address,
            "status": self.status.value,
            "allow_minting": self.allow_minting,
            "total_minted": self.total_minted,
            "max_supply": self.max_supply,
            "seller_fee_basis_points": self.seller_fee_basis_points,
        }
