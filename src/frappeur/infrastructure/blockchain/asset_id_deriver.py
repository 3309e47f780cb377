"""
Asset ID derivation.

Canonical IDs come from the Bubblegum PDA derivation. When that is not
available, a clearly marked placeholder is produced instead.
"""

import hashlib
from typing import Callable, Optional

from frappeur.infrastructure.blockchain.bubblegum import derive_asset_id
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PREFIX = "fallback_"

DeriveFunction = Callable[[str, int], str]


def placeholder_asset_id(tree_address: str, leaf_index: int) -> str:
    """Deterministic, non-canonical stand-in for an asset ID."""
    digest = hashlib.sha256(f"{tree_address}-{leaf_index}".encode()).hexdigest()
    return f"{PLACEHOLDER_PREFIX}{digest[:32]}"


def is_placeholder_asset_id(asset_id: Optional[str]) -> bool:
    """True for IDs that cannot be looked up on-chain or in the index."""
    return bool(asset_id) and asset_id.startswith(PLACEHOLDER_PREFIX)


class AssetIdDeriver:
    """Computes asset IDs from (tree, leaf index)."""

    def __init__(self, derive: Optional[DeriveFunction] = derive_asset_id):
        self._derive = derive

    def derive_asset_id(self, tree_address: str, leaf_index: int) -> str:
        """
        Derive the asset ID of a leaf.

        Args:
            tree_address: Merkle tree address
            leaf_index: Zero-based leaf index

        Returns:
            Canonical asset ID, or a `fallback_` placeholder
        """
        if self._derive is not None:
            try:
                return self._derive(tree_address, leaf_index)
            except Exception as e:
                logger.warning(
                    f"Canonical asset ID derivation failed for "
                    f"{tree_address}#{leaf_index}: {e}"
                )

        asset_id = placeholder_asset_id(tree_address, leaf_index)
        logger.warning(f"Using placeholder asset ID {asset_id}")
        return asset_id
