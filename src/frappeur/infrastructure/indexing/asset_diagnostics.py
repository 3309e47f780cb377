"""
Compressed NFT diagnostics.

One-shot checks used by indexing status and force-recheck requests: does
the tree exist, does the read-index know the asset, can it serve a proof.
Wallets need both the asset and its proof before showing a cNFT.
"""

from datetime import datetime, timezone
from typing import Optional

from frappeur.domain.exceptions import BlockchainError, ReadIndexError
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.infrastructure.blockchain.asset_id_deriver import (
    is_placeholder_asset_id,
)
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

RECHECK_LATER = (
    "Check again in 15-30 minutes; DAS indexing can lag behind confirmation."
)


class AssetDiagnostics:
    """Runs read-index and chain checks for a single asset."""

    def __init__(self, chain_client: IChainClient):
        self.chain_client = chain_client

    async def check_indexed(self, asset_id: str) -> tuple[bool, Optional[dict]]:
        """
        Look the asset up once.

        Returns:
            (indexed, asset) where asset is the read-index payload if found
        """
        try:
            asset = await self.chain_client.get_asset(asset_id)
        except ReadIndexError as e:
            if not e.is_not_found:
                logger.warning(f"getAsset failed for {asset_id}: {e}")
            return False, None
        except BlockchainError as e:
            logger.warning(f"getAsset failed for {asset_id}: {e}")
            return False, None

        indexed = bool(asset) and asset.get("id") == asset_id
        return indexed, asset if indexed else None

    async def check_proof(self, asset_id: str) -> bool:
        """Whether the read-index can serve a Merkle proof."""
        try:
            proof = await self.chain_client.get_asset_proof(asset_id)
        except BlockchainError as e:
            logger.debug(f"getAssetProof failed for {asset_id}: {e}")
            return False
        return bool(proof) and bool(proof.get("proof") is not None)

    async def check_tree(self, tree_address: str) -> Optional[bool]:
        """Whether the Merkle tree account exists (None if unknown)."""
        try:
            data = await self.chain_client.get_account(tree_address)
        except (BlockchainError, ValueError) as e:
            logger.warning(f"Tree lookup failed for {tree_address}: {e}")
            return None
        return data is not None

    async def quick_status(self, asset_id: str) -> dict:
        """
        Indexing status summary.

        Returns:
            {asset_id, indexed, proof_available, phantom_ready, recommendations}
        """
        if is_placeholder_asset_id(asset_id):
            return {
                "asset_id": asset_id,
                "indexed": False,
                "proof_available": False,
                "phantom_ready": False,
                "recommendations": [
                    "Asset ID is a placeholder; resolve the leaf index first."
                ],
            }

        indexed, _ = await self.check_indexed(asset_id)
        proof_available = await self.check_proof(asset_id) if indexed else False

        recommendations = []
        if not indexed:
            recommendations.append(RECHECK_LATER)
        elif not proof_available:
            recommendations.append(
                "Asset indexed but proof not served yet; wallets may not show it."
            )

        return {
            "asset_id": asset_id,
            "indexed": indexed,
            "proof_available": proof_available,
            "phantom_ready": indexed and proof_available,
            "recommendations": recommendations,
        }

    async def full_report(
        self,
        asset_id: str,
        tree_address: Optional[str] = None,
        leaf_index: Optional[int] = None,
    ) -> dict:
        """
        Full diagnostic snapshot.

        Args:
            asset_id: Asset to inspect
            tree_address: Tree the asset was minted into, if known
            leaf_index: Leaf index, if known

        Returns:
            Checks, summary and recommendations
        """
        tree_exists = (
            await self.check_tree(tree_address) if tree_address else None
        )
        status = await self.quick_status(asset_id)

        recommendations = list(status["recommendations"])
        if tree_exists is False:
            recommendations.append(
                f"Merkle tree {tree_address} not found on-chain; verify the "
                f"collection configuration."
            )

        return {
            "asset_id": asset_id,
            "tree_address": tree_address,
            "leaf_index": leaf_index,
            "checked_at": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "tree_exists": tree_exists,
                "das_indexed": status["indexed"],
                "proof_available": status["proof_available"],
                "placeholder_asset_id": is_placeholder_asset_id(asset_id),
            },
            "summary": {
                "mint_successful": tree_exists is not False,
                "phantom_ready": status["phantom_ready"],
                "estimated_indexing_time": (
                    "ready" if status["phantom_ready"] else "15-30 minutes"
                ),
            },
            "recommendations": recommendations,
        }
