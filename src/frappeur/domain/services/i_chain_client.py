"""
Chain client interface.

Defines the operations the mint pipeline needs from a Solana RPC node and
from a DAS-compatible read-index.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from solders.instruction import Instruction

from frappeur.domain.value_objects.signature_status import SignatureStatus


class IChainClient(ABC):
    """
    Abstract interface for blockchain access.

    Submits transactions signed by the minting identity, probes their
    status, reads raw accounts and forwards JSON-RPC calls to the
    read-index. Read-index helpers are implemented on top of
    call_read_index.
    """

    @property
    @abstractmethod
    def identity(self) -> str:
        """Base58 address of the signing identity."""

    @abstractmethod
    async def connect(self) -> str:
        """
        Select the first responsive RPC endpoint.

        Returns:
            URL of the active endpoint

        Raises:
            ChainConnectionError: If every candidate endpoint fails
        """

    @abstractmethod
    async def submit_transaction(
        self,
        instructions: Sequence[Instruction],
        skip_preflight: bool = False,
    ) -> str:
        """
        Sign and send a transaction without waiting for finality.

        Args:
            instructions: Instructions to include, in order
            skip_preflight: Skip node-side simulation

        Returns:
            Transaction signature (base58)

        Raises:
            RPCError: If the node rejects the transaction
        """

    @abstractmethod
    async def get_signature_status(
        self, signature: str
    ) -> Optional[SignatureStatus]:
        """
        Probe a signature once.

        Returns:
            SignatureStatus, or None when the node has not seen it yet
        """

    @abstractmethod
    async def get_account(self, address: str) -> Optional[bytes]:
        """
        Read raw account data.

        Returns:
            Account data bytes, or None if the account does not exist
        """

    @abstractmethod
    async def call_read_index(self, method: str, params: Any) -> Any:
        """
        Call a read-index JSON-RPC method.

        Returns:
            The JSON-RPC `result` member

        Raises:
            ReadIndexError: If the index returns an error object
            RPCError: On transport failures
        """

    async def get_balance(self) -> int:
        """Balance of the signing identity in lamports."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources."""

    # ================================================================
    # Read-index helpers
    # ================================================================

    async def get_asset(self, asset_id: str) -> Optional[dict]:
        """Fetch a compressed asset by ID."""
        return await self.call_read_index("getAsset", {"id": asset_id})

    async def get_asset_proof(self, asset_id: str) -> Optional[dict]:
        """Fetch the Merkle proof of a compressed asset."""
        return await self.call_read_index("getAssetProof", {"id": asset_id})

    async def get_assets_by_owner(
        self, owner: str, page: int = 1, limit: int = 1000
    ) -> list[dict]:
        """List assets owned by an address (first page only by default)."""
        result = await self.call_read_index(
            "getAssetsByOwner",
            {"ownerAddress": owner, "page": page, "limit": limit},
        )
        if not result:
            return []
        return list(result.get("items") or [])
