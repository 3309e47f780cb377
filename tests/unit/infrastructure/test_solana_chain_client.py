"""
Unit tests for SolanaChainClient.

RPC endpoints are replaced through client_factory; the read-index is
served by httpx.MockTransport.

Usage:
    pytest tests/unit/infrastructure/test_solana_chain_client.py
"""

import json

import base58
import httpx
import pytest
from solders.keypair import Keypair

from frappeur.domain.exceptions import (
    ChainConnectionError,
    ReadIndexError,
    RPCError,
)
from frappeur.infrastructure.blockchain.solana_chain_client import (
    SolanaChainClient,
    load_keypair,
)


class StubRpc:
    """Minimal AsyncClient stand-in for connection probing."""

    def __init__(self, healthy: bool):
        self.healthy = healthy
        self.probes = 0
        self.closed = False

    async def get_latest_blockhash(self):
        self.probes += 1
        if not self.healthy:
            raise ConnectionError("endpoint down")
        return object()

    async def close(self):
        self.closed = True


class TestSolanaChainClient:
    """Unit tests for endpoint failover and read-index calls."""

    # ================================================================
    # Helper Methods
    # ================================================================

    def _create_client(self, stubs: dict, http_handler=None, **kwargs):
        http_client = None
        if http_handler is not None:
            http_client = httpx.AsyncClient(
                transport=httpx.MockTransport(http_handler)
            )
        return SolanaChainClient(
            keypair=Keypair(),
            endpoints=list(stubs),
            client_factory=lambda url: stubs[url],
            http_client=http_client,
            **kwargs,
        )

    # ================================================================
    # Connection
    # ================================================================

    async def test_connect_prefers_primary(self):
        """Test healthy primary is selected first."""
        stubs = {"https://a.rpc": StubRpc(True), "https://b.rpc": StubRpc(True)}
        client = self._create_client(stubs)

        assert await client.connect() == "https://a.rpc"
        assert client.active_endpoint == "https://a.rpc"
        assert stubs["https://b.rpc"].probes == 0

    async def test_connect_fails_over_in_order(self):
        """Test dead endpoints are skipped in priority order."""
        stubs = {
            "https://a.rpc": StubRpc(False),
            "https://b.rpc": StubRpc(False),
            "https://c.rpc": StubRpc(True),
        }
        client = self._create_client(stubs)

        assert await client.connect() == "https://c.rpc"
        assert stubs["https://a.rpc"].probes == 1
        assert stubs["https://b.rpc"].probes == 1

    async def test_connect_all_down(self):
        """Test ChainConnectionError lists every failed endpoint."""
        stubs = {"https://a.rpc": StubRpc(False), "https://b.rpc": StubRpc(False)}
        client = self._create_client(stubs)

        with pytest.raises(ChainConnectionError) as exc_info:
            await client.connect()

        assert [url for url, _ in exc_info.value.failures] == list(stubs)
        assert exc_info.value.code == "CHAIN_UNAVAILABLE"
        assert client.active_endpoint is None

    async def test_close_releases_clients(self):
        """Test close closes every cached RPC client."""
        stubs = {"https://a.rpc": StubRpc(True)}
        client = self._create_client(stubs)
        await client.connect()

        await client.close()

        assert stubs["https://a.rpc"].closed
        assert client.active_endpoint is None

    def test_requires_endpoint(self):
        """Test at least one endpoint is required."""
        with pytest.raises(ValueError):
            SolanaChainClient(keypair=Keypair(), endpoints=[])

    # ================================================================
    # Read-index
    # ================================================================

    async def test_read_index_returns_result(self):
        """Test JSON-RPC envelope and result extraction."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": 1, "result": {"id": "abc"}}
            )

        client = self._create_client(
            {"https://a.rpc": StubRpc(True)},
            http_handler=handler,
            read_index_url="https://das.rpc",
        )

        asset = await client.get_asset("abc")

        assert asset == {"id": "abc"}
        assert seen[0]["method"] == "getAsset"
        assert seen[0]["params"] == {"id": "abc"}
        assert seen[0]["jsonrpc"] == "2.0"

    async def test_read_index_error_object(self):
        """Test JSON-RPC error becomes ReadIndexError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "error": {"code": -32000, "message": "Asset Not Found"},
                },
            )

        client = self._create_client(
            {"https://a.rpc": StubRpc(True)}, http_handler=handler
        )

        with pytest.raises(ReadIndexError) as exc_info:
            await client.get_asset("abc")

        assert exc_info.value.is_not_found

    async def test_read_index_http_error(self):
        """Test HTTP 429 becomes RPCError with status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, text="slow down")

        client = self._create_client(
            {"https://a.rpc": StubRpc(True)}, http_handler=handler
        )

        with pytest.raises(RPCError) as exc_info:
            await client.get_asset_proof("abc")

        assert exc_info.value.status_code == 429

    async def test_assets_by_owner_items(self):
        """Test getAssetsByOwner unwraps the items list."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "result": {"items": [{"id": "x"}]}},
            )

        client = self._create_client(
            {"https://a.rpc": StubRpc(True)}, http_handler=handler
        )

        assert await client.get_assets_by_owner("owner") == [{"id": "x"}]


class TestLoadKeypair:
    """Unit tests for load_keypair."""

    def test_from_base58_private_key(self):
        """Test base58 secret key round trip."""
        keypair = Keypair()
        encoded = base58.b58encode(bytes(keypair)).decode()

        assert load_keypair(private_key=encoded).pubkey() == keypair.pubkey()

    def test_from_keypair_file(self, tmp_path):
        """Test Solana CLI JSON keypair file."""
        keypair = Keypair()
        path = tmp_path / "id.json"
        path.write_text(json.dumps(list(bytes(keypair))))

        assert load_keypair(keypair_path=str(path)).pubkey() == keypair.pubkey()

    def test_missing_file(self, tmp_path):
        """Test missing keypair file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_keypair(keypair_path=str(tmp_path / "nope.json"))

    def test_nothing_configured(self):
        """Test ValueError when no key source is configured."""
        with pytest.raises(ValueError):
            load_keypair()
