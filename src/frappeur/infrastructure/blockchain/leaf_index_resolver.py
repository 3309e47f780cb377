"""
Leaf index resolution for freshly minted compressed NFTs.

Primary: TreeConfig.num_minted read straight from chain (leaf = n - 1).
Secondary: DAS getAssetsByOwner filtered on the tree.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

from frappeur.domain.exceptions import BlockchainError
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.infrastructure.blockchain.bubblegum import derive_tree_config
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CounterOffset:
    """Candidate position of TreeConfig.num_minted (u64 LE)."""

    offset: int
    label: str = ""


# Tried in order; the first plausible value wins.
DEFAULT_COUNTER_OFFSETS = (
    # discriminator(8) + tree_creator(32) + tree_delegate(32) + capacity(8)
    CounterOffset(80, "standard (8+32+32+8)"),
    # same layout read without the Anchor discriminator
    CounterOffset(72, "no_discriminator"),
    # layouts carrying one extra u64 before the counter
    CounterOffset(88, "with_padding"),
    # creator + delegate only
    CounterOffset(64, "minimal"),
)

DEFAULT_SANITY_CEILING = 10_000_000


def is_plausible_counter(value: int, ceiling: int = DEFAULT_SANITY_CEILING) -> bool:
    """Shared validity predicate for every candidate offset."""
    return 0 <= value < ceiling


def read_num_minted(
    data: bytes,
    offsets: Sequence[CounterOffset] = DEFAULT_COUNTER_OFFSETS,
    ceiling: int = DEFAULT_SANITY_CEILING,
) -> Optional[int]:
    """
    Extract num_minted from raw TreeConfig data.

    Args:
        data: Raw account bytes
        offsets: Candidate offsets, in priority order
        ceiling: Values at or above this are rejected

    Returns:
        Counter value, or None when no offset yields a plausible value
    """
    for candidate in offsets:
        end = candidate.offset + 8
        if len(data) < end:
            continue

        value = int.from_bytes(data[candidate.offset : end], "little")
        if is_plausible_counter(value, ceiling):
            logger.debug(
                f"num_minted={value} at offset {candidate.offset} "
                f"({candidate.label})"
            )
            return value

    return None


class LeafIndexResolver:
    """
    Resolves the leaf index assigned to the latest mint in a tree.

    A None result means the mint succeeded but bookkeeping could not be
    completed; callers must not treat it as a mint failure.
    """

    def __init__(
        self,
        chain_client: IChainClient,
        initial_delay: float = 1.0,
        retry_delay: float = 3.0,
        counter_offsets: Sequence[CounterOffset] = DEFAULT_COUNTER_OFFSETS,
        sanity_ceiling: int = DEFAULT_SANITY_CEILING,
    ):
        self.chain_client = chain_client
        self.initial_delay = initial_delay
        self.retry_delay = retry_delay
        self.counter_offsets = tuple(counter_offsets)
        self.sanity_ceiling = sanity_ceiling

    async def resolve_leaf_index(
        self,
        tree_address: str,
        recipient: Optional[str] = None,
    ) -> Optional[int]:
        """
        Determine the zero-based leaf index of the most recent mint.

        Args:
            tree_address: Merkle tree address
            recipient: Leaf owner, used by the read-index fallback

        Returns:
            Leaf index, or None if neither method succeeded
        """
        for delay in (self.initial_delay, self.retry_delay):
            await asyncio.sleep(delay)
            num_minted = await self.get_num_minted(tree_address)
            # A confirmed mint always leaves the counter at >= 1
            if num_minted:
                metrics.leaf_index_resolutions_total.labels(
                    method="tree_config"
                ).inc()
                return num_minted - 1

        logger.warning(
            f"TreeConfig counter unavailable for {tree_address}, "
            f"falling back to read-index"
        )

        leaf_index = await self._find_in_read_index(tree_address, recipient)
        if leaf_index is not None:
            metrics.leaf_index_resolutions_total.labels(method="read_index").inc()
            return leaf_index

        metrics.leaf_index_resolutions_total.labels(method="unresolved").inc()
        return None

    async def get_num_minted(self, tree_address: str) -> Optional[int]:
        """Read TreeConfig.num_minted; None if unreadable."""
        try:
            tree_config = derive_tree_config(tree_address)
            data = await self.chain_client.get_account(str(tree_config))
        except (BlockchainError, ValueError) as e:
            logger.warning(f"Failed to read TreeConfig for {tree_address}: {e}")
            return None

        if data is None:
            logger.warning(f"TreeConfig account missing for {tree_address}")
            return None

        return read_num_minted(data, self.counter_offsets, self.sanity_ceiling)

    async def _find_in_read_index(
        self, tree_address: str, recipient: Optional[str]
    ) -> Optional[int]:
        owner = recipient or self.chain_client.identity
        try:
            items = await self.chain_client.get_assets_by_owner(owner)
        except BlockchainError as e:
            logger.warning(f"Read-index lookup failed for owner {owner}: {e}")
            return None

        leaf_ids = []
        for item in items:
            compression = item.get("compression") or {}
            if compression.get("tree") != tree_address:
                continue
            leaf_id = compression.get("leaf_id")
            if isinstance(leaf_id, int):
                leaf_ids.append(leaf_id)

        if not leaf_ids:
            return None

        # Latest mint for this owner in this tree
        return max(leaf_ids)
