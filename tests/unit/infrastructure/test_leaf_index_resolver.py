"""
Unit tests for LeafIndexResolver.

Tests TreeConfig counter decoding and the read-index fallback.

Usage:
    pytest tests/unit/infrastructure/test_leaf_index_resolver.py
"""

from frappeur.domain.exceptions import RPCError
from frappeur.infrastructure.blockchain.bubblegum import derive_tree_config
from frappeur.infrastructure.blockchain.leaf_index_resolver import (
    CounterOffset,
    LeafIndexResolver,
    read_num_minted,
)
from helpers import FakeChainClient, new_address, tree_config_data


class TestReadNumMinted:
    """Unit tests for read_num_minted."""

    def test_standard_offset(self):
        """Test counter at the standard offset is read."""
        assert read_num_minted(tree_config_data(42)) == 42

    def test_implausible_value_falls_through(self):
        """Test a value above the ceiling moves on to the next offset."""
        data = bytearray(tree_config_data(9, offset=72))
        data[80:88] = b"\xff" * 8

        assert read_num_minted(bytes(data)) == 9

    def test_short_account_skips_offsets(self):
        """Test offsets past the end of the data are skipped."""
        data = tree_config_data(5, offset=64, size=72)

        assert read_num_minted(data) == 5

    def test_custom_offsets(self):
        """Test configured offsets replace the defaults."""
        data = tree_config_data(11, offset=16, size=24)

        assert read_num_minted(data, [CounterOffset(16, "custom")]) == 11

    def test_nothing_plausible(self):
        """Test None when no offset yields a plausible counter."""
        data = b"\xff" * 96

        assert read_num_minted(data) is None


class TestLeafIndexResolver:
    """Unit tests for LeafIndexResolver."""

    # ================================================================
    # Helper Methods
    # ================================================================

    def _create_resolver(self, chain: FakeChainClient) -> LeafIndexResolver:
        return LeafIndexResolver(chain, initial_delay=0.0, retry_delay=0.0)

    def _das_item(self, tree: str, leaf_id: int) -> dict:
        return {"id": new_address(), "compression": {"tree": tree, "leaf_id": leaf_id}}

    # ================================================================
    # Primary: TreeConfig
    # ================================================================

    async def test_leaf_index_is_counter_minus_one(self):
        """Test sequential mints resolve to 0..N-1."""
        chain = FakeChainClient()
        resolver = self._create_resolver(chain)
        tree = new_address()

        resolved = []
        for count in range(1, 6):
            chain.num_minted[tree] = count
            resolved.append(await resolver.resolve_leaf_index(tree))

        assert resolved == [0, 1, 2, 3, 4]

    async def test_counter_read_from_raw_account(self):
        """Test counter is decoded from the TreeConfig PDA account."""
        chain = FakeChainClient()
        tree = new_address()
        chain.accounts[str(derive_tree_config(tree))] = tree_config_data(
            7, offset=88
        )
        resolver = self._create_resolver(chain)

        assert await resolver.get_num_minted(tree) == 7
        assert await resolver.resolve_leaf_index(tree) == 6

    # ================================================================
    # Fallback: read-index
    # ================================================================

    async def test_zero_counter_falls_back_to_read_index(self):
        """Test read-index fallback picks the highest leaf in the tree."""
        chain = FakeChainClient()
        tree = new_address()
        recipient = new_address()
        chain.num_minted[tree] = 0
        chain.owner_assets[recipient] = [
            self._das_item(tree, 3),
            self._das_item(tree, 5),
            self._das_item(new_address(), 9),
        ]
        resolver = self._create_resolver(chain)

        leaf_index = await resolver.resolve_leaf_index(tree, recipient)

        assert leaf_index == 5
        assert chain.read_index_calls[0][0] == "getAssetsByOwner"

    async def test_fallback_defaults_to_identity_owner(self):
        """Test fallback queries the minting identity without a recipient."""
        chain = FakeChainClient()
        tree = new_address()
        chain.owner_assets[chain.identity] = [self._das_item(tree, 2)]
        resolver = self._create_resolver(chain)

        assert await resolver.resolve_leaf_index(tree) == 2

    async def test_unresolved_returns_none(self):
        """Test None when counter and read-index both fail."""
        chain = FakeChainClient()
        chain.read_index_error = RPCError("getAssetsByOwner failed: HTTP 503")
        resolver = self._create_resolver(chain)

        assert await resolver.resolve_leaf_index(new_address()) is None

    async def test_no_matching_tree_returns_none(self):
        """Test None when the owner holds no leaf in the tree."""
        chain = FakeChainClient()
        recipient = new_address()
        chain.owner_assets[recipient] = [self._das_item(new_address(), 1)]
        resolver = self._create_resolver(chain)

        assert await resolver.resolve_leaf_index(new_address(), recipient) is None
