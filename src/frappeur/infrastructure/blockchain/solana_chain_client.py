"""
Solana chain client.

solana-py AsyncClient per RPC endpoint with ordered failover, plus an
httpx JSON-RPC client for the DAS read-index.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import base58
import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

from frappeur.domain.exceptions import (
    ChainConnectionError,
    ReadIndexError,
    RPCError,
)
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.domain.value_objects.signature_status import SignatureStatus
from frappeur.infrastructure.blockchain.bubblegum import to_pubkey
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str], AsyncClient]


def load_keypair(
    private_key: Optional[str] = None,
    keypair_path: Optional[str] = None,
) -> Keypair:
    """
    Load the minting identity.

    Args:
        private_key: Base58-encoded 64-byte secret key
        keypair_path: Path to a Solana CLI keypair JSON file

    Returns:
        Solana Keypair object

    Raises:
        ValueError: If neither source is configured
        FileNotFoundError: If keypair_path does not exist
    """
    if private_key:
        return Keypair.from_bytes(base58.b58decode(private_key))

    if keypair_path:
        path = Path(keypair_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Keypair not found: {keypair_path}")
        with open(path, "r") as f:
            secret_key = json.load(f)
        return Keypair.from_bytes(bytes(secret_key))

    raise ValueError("No signing key configured (private_key or keypair_path)")


def _confirmation_level(status) -> Optional[str]:
    if status is None:
        return None
    if status == TransactionConfirmationStatus.Finalized:
        return "finalized"
    if status == TransactionConfirmationStatus.Confirmed:
        return "confirmed"
    return "processed"


def _to_rpc_error(method: str, exc: Exception) -> RPCError:
    """Wrap solana-py / httpx failures, keeping HTTP status and program logs."""
    cause = exc.__cause__ if exc.__cause__ is not None else exc
    response = getattr(cause, "response", None)
    status_code = getattr(response, "status_code", None)

    details: dict[str, Any] = {"method": method}
    if isinstance(exc, RPCException) and exc.args:
        rpc_error = exc.args[0]
        logs = getattr(getattr(rpc_error, "data", None), "logs", None)
        if logs:
            details["logs"] = list(logs)

    message = str(exc) or str(cause) or type(exc).__name__
    if status_code is not None:
        message = f"{message} (HTTP {status_code})"

    return RPCError(
        f"{method} failed: {message}",
        details=details,
        status_code=status_code,
    )


class SolanaChainClient(IChainClient):
    """
    IChainClient backed by Solana JSON-RPC.

    Design:
    - One AsyncClient per endpoint URL, created once and cached
    - connect() walks the endpoints in priority order
    - Transport failures drop the active endpoint; the next call reconnects
    - Read-index calls go through a lazily created httpx client
    """

    def __init__(
        self,
        keypair: Keypair,
        endpoints: Sequence[str],
        read_index_url: Optional[str] = None,
        commitment: str = "confirmed",
        connect_timeout: float = 10.0,
        read_index_timeout: float = 10.0,
        client_factory: Optional[ClientFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize chain client.

        Args:
            keypair: Signing identity
            endpoints: RPC URLs in priority order (primary first)
            read_index_url: DAS endpoint (defaults to the primary RPC)
            commitment: Commitment used for reads and preflight
            connect_timeout: Liveness probe timeout per endpoint
            read_index_timeout: Timeout for read-index calls
            client_factory: Builds an AsyncClient for a URL
            http_client: Pre-built httpx client for the read-index
        """
        if not endpoints:
            raise ValueError("At least one RPC endpoint is required")

        self.keypair = keypair
        self.endpoints = list(endpoints)
        self.read_index_url = read_index_url or self.endpoints[0]
        self.commitment = Commitment(commitment)
        self.connect_timeout = connect_timeout
        self.read_index_timeout = read_index_timeout
        self._client_factory = client_factory or self._default_client_factory
        self._clients: dict[str, AsyncClient] = {}
        self._active_url: Optional[str] = None
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._lock = asyncio.Lock()
        self._request_id = 0

    def _default_client_factory(self, url: str) -> AsyncClient:
        return AsyncClient(
            url,
            commitment=self.commitment,
            timeout=self.connect_timeout,
        )

    @property
    def identity(self) -> str:
        """Base58 address of the signing identity."""
        return str(self.keypair.pubkey())

    @property
    def active_endpoint(self) -> Optional[str]:
        """URL currently used for RPC calls."""
        return self._active_url

    # ================================================================
    # Connection management
    # ================================================================

    def _client_for(self, url: str) -> AsyncClient:
        client = self._clients.get(url)
        if client is None:
            client = self._client_factory(url)
            self._clients[url] = client
        return client

    async def connect(self) -> str:
        """
        Select the first RPC endpoint answering getLatestBlockhash.

        Returns:
            URL of the active endpoint

        Raises:
            ChainConnectionError: If every candidate endpoint fails
        """
        failures: list[tuple[str, str]] = []

        for url in self.endpoints:
            client = self._client_for(url)
            try:
                await asyncio.wait_for(
                    client.get_latest_blockhash(),
                    timeout=self.connect_timeout,
                )
            except asyncio.TimeoutError:
                reason = f"timeout after {self.connect_timeout}s"
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
            else:
                self._active_url = url
                metrics.rpc_connect_total.labels(endpoint=url, result="ok").inc()
                logger.info(
                    f"Connected to RPC endpoint {url}",
                    extra={"identity": self.identity},
                )
                return url

            metrics.rpc_connect_total.labels(endpoint=url, result="failed").inc()
            logger.warning(f"RPC endpoint {url} unavailable: {reason}")
            failures.append((url, reason))

        self._active_url = None
        raise ChainConnectionError(failures)

    async def _active_client(self) -> AsyncClient:
        if self._active_url is None:
            await self.connect()
        return self._clients[self._active_url]

    def _drop_active(self, exc: Exception) -> None:
        # Transport-level failure: re-probe endpoints on next call
        if isinstance(exc, (SolanaRpcException, httpx.TransportError)):
            logger.warning(f"Dropping RPC endpoint {self._active_url}: {exc}")
            self._active_url = None

    # ================================================================
    # Transactions
    # ================================================================

    async def submit_transaction(
        self,
        instructions: Sequence[Instruction],
        skip_preflight: bool = False,
    ) -> str:
        """
        Sign and send a v0 transaction with a fresh blockhash.

        Returns:
            Transaction signature (base58)

        Raises:
            RPCError: If the node rejects the transaction
        """
        client = await self._active_client()

        try:
            blockhash_resp = await client.get_latest_blockhash()
            message = MessageV0.try_compile(
                payer=self.keypair.pubkey(),
                instructions=list(instructions),
                address_lookup_table_accounts=[],
                recent_blockhash=blockhash_resp.value.blockhash,
            )
            transaction = VersionedTransaction(message, [self.keypair])
            response = await client.send_transaction(
                transaction,
                opts=TxOpts(
                    skip_preflight=skip_preflight,
                    preflight_commitment=self.commitment,
                ),
            )
        except (RPCException, SolanaRpcException, httpx.HTTPError) as e:
            self._drop_active(e)
            raise _to_rpc_error("sendTransaction", e) from e

        signature = str(response.value)
        logger.debug(f"Submitted transaction {signature}")
        return signature

    async def get_signature_status(
        self, signature: str
    ) -> Optional[SignatureStatus]:
        """Probe a signature once; None while unseen."""
        client = await self._active_client()

        try:
            response = await client.get_signature_statuses(
                [Signature.from_string(signature)]
            )
        except (RPCException, SolanaRpcException, httpx.HTTPError) as e:
            self._drop_active(e)
            raise _to_rpc_error("getSignatureStatuses", e) from e

        status = response.value[0] if response.value else None
        if status is None:
            return None

        return SignatureStatus(
            confirmation_status=_confirmation_level(status.confirmation_status),
            err=str(status.err) if status.err is not None else None,
            slot=status.slot,
        )

    # ================================================================
    # Accounts
    # ================================================================

    async def get_account(self, address: str) -> Optional[bytes]:
        """Raw account data, or None for a missing account."""
        client = await self._active_client()

        try:
            response = await client.get_account_info(to_pubkey(address))
        except (RPCException, SolanaRpcException, httpx.HTTPError) as e:
            self._drop_active(e)
            raise _to_rpc_error("getAccountInfo", e) from e

        if response.value is None:
            return None
        return bytes(response.value.data)

    async def get_balance(self) -> int:
        """Balance of the signing identity in lamports."""
        client = await self._active_client()

        try:
            response = await client.get_balance(self.keypair.pubkey())
        except (RPCException, SolanaRpcException, httpx.HTTPError) as e:
            self._drop_active(e)
            raise _to_rpc_error("getBalance", e) from e

        return response.value

    # ================================================================
    # Read-index (DAS)
    # ================================================================

    async def _ensure_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            async with self._lock:
                if self._http_client is None:
                    self._http_client = httpx.AsyncClient(
                        timeout=self.read_index_timeout,
                        limits=httpx.Limits(
                            max_connections=20,
                            max_keepalive_connections=10,
                        ),
                    )
        return self._http_client

    async def call_read_index(self, method: str, params: Any) -> Any:
        """
        Call a DAS JSON-RPC method.

        Returns:
            The `result` member of the response

        Raises:
            ReadIndexError: If the index returns an error object
            RPCError: On HTTP or transport failures
        """
        client = await self._ensure_http_client()
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(self.read_index_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RPCError(
                f"{method} failed: HTTP {e.response.status_code}",
                details={"method": method, "body": e.response.text[:500]},
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise RPCError(
                f"{method} failed: network error {type(e).__name__}: {e}",
                details={"method": method},
            ) from e
        except ValueError as e:
            raise RPCError(
                f"{method} failed: invalid JSON response",
                details={"method": method},
            ) from e

        if data.get("error"):
            raise ReadIndexError(method, data["error"])

        return data.get("result")

    async def close(self) -> None:
        """Close every cached RPC client and the read-index client."""
        for url, client in list(self._clients.items()):
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Error closing RPC client {url}: {e}")
        self._clients.clear()
        self._active_url = None

        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
