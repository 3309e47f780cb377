"""Solana / Bubblegum infrastructure."""

from frappeur.infrastructure.blockchain.asset_id_deriver import (
    AssetIdDeriver,
    is_placeholder_asset_id,
)
from frappeur.infrastructure.blockchain.leaf_index_resolver import (
    CounterOffset,
    LeafIndexResolver,
)
from frappeur.infrastructure.blockchain.solana_chain_client import (
    SolanaChainClient,
    load_keypair,
)
from frappeur.infrastructure.blockchain.submission_engine import (
    MintSubmission,
    MintSubmissionEngine,
)

__all__ = [
    "AssetIdDeriver",
    "CounterOffset",
    "LeafIndexResolver",
    "MintSubmission",
    "MintSubmissionEngine",
    "SolanaChainClient",
    "is_placeholder_asset_id",
    "load_keypair",
]
