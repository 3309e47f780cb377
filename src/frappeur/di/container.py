"""
Dependency Injection Container for Frappeur.

Builds every pipeline component from settings. Components are created
lazily on first access and shared for the lifetime of the app.
"""

from typing import Optional

import httpx

from frappeur.application.mint_orchestrator import MintOrchestrator
from frappeur.config.settings import FrappeurConfig
from frappeur.domain.repositories.i_operation_store import IOperationStore
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.infrastructure.blockchain.asset_id_deriver import AssetIdDeriver
from frappeur.infrastructure.blockchain.leaf_index_resolver import (
    CounterOffset,
    LeafIndexResolver,
)
from frappeur.infrastructure.blockchain.solana_chain_client import (
    SolanaChainClient,
    load_keypair,
)
from frappeur.infrastructure.blockchain.submission_engine import (
    MintSubmissionEngine,
)
from frappeur.infrastructure.collections.collection_registry import (
    CollectionRegistry,
)
from frappeur.infrastructure.indexing.asset_diagnostics import AssetDiagnostics
from frappeur.infrastructure.indexing.indexing_monitor import IndexingMonitor
from frappeur.infrastructure.monitoring.logger import get_logger
from frappeur.infrastructure.notifications.webhook_notifier import (
    WebhookNotifier,
)
from frappeur.infrastructure.persistence.database import Database
from frappeur.infrastructure.persistence.in_memory_operation_store import (
    InMemoryOperationStore,
)
from frappeur.infrastructure.persistence.sqlalchemy_operation_store import (
    SqlAlchemyOperationStore,
)
from frappeur.infrastructure.scheduling.background_tasks import BackgroundTasks

logger = get_logger(__name__)


class FrappeurContainer:
    """
    Dependency Injection Container.

    Overrides let tests swap the chain client, the store or the webhook
    HTTP client without touching settings.
    """

    def __init__(
        self,
        settings: FrappeurConfig,
        chain_client: Optional[IChainClient] = None,
        operation_store: Optional[IOperationStore] = None,
        webhook_http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize container.

        Args:
            settings: Application configuration
            chain_client: Pre-built chain client (skips keypair loading)
            operation_store: Pre-built operation store
            webhook_http_client: HTTP client used for webhook delivery
        """
        self.settings = settings
        self._chain_client = chain_client
        self._operation_store = operation_store
        self._webhook_http_client = webhook_http_client

        self._database: Optional[Database] = None
        self._background_tasks: Optional[BackgroundTasks] = None
        self._submission_engine: Optional[MintSubmissionEngine] = None
        self._leaf_index_resolver: Optional[LeafIndexResolver] = None
        self._asset_id_deriver: Optional[AssetIdDeriver] = None
        self._indexing_monitor: Optional[IndexingMonitor] = None
        self._diagnostics: Optional[AssetDiagnostics] = None
        self._webhook_notifier: Optional[WebhookNotifier] = None
        self._collection_registry: Optional[CollectionRegistry] = None
        self._orchestrator: Optional[MintOrchestrator] = None

    async def initialize(self) -> None:
        """Open connections that must exist before serving requests."""
        if self.database is not None:
            await self.database.connect()

        try:
            await self.chain_client.connect()
        except Exception as e:
            # Not fatal: the client reconnects on first use
            logger.warning(f"Initial RPC connection failed: {e}")

        # Build the object graph up front so monitor listeners are wired
        _ = self.orchestrator

    async def shutdown(self) -> None:
        """Cleanup resources and close connections."""
        if self._orchestrator is not None:
            await self._orchestrator.shutdown()
        else:
            if self._chain_client is not None:
                await self._chain_client.close()
            if self._webhook_notifier is not None:
                await self._webhook_notifier.close()

        if self._database is not None:
            await self._database.disconnect()

    # ================================================================
    # Infrastructure
    # ================================================================

    @property
    def database(self) -> Optional[Database]:
        """Database, only when a database_url is configured."""
        if self._database is None and self.settings.database_url:
            self._database = Database(database_url=self.settings.database_url)
        return self._database

    @property
    def operation_store(self) -> IOperationStore:
        if self._operation_store is None:
            if self.database is not None:
                self._operation_store = SqlAlchemyOperationStore(self.database)
            else:
                self._operation_store = InMemoryOperationStore()
        return self._operation_store

    @property
    def chain_client(self) -> IChainClient:
        if self._chain_client is None:
            chain = self.settings.chain
            self._chain_client = SolanaChainClient(
                keypair=load_keypair(chain.private_key, chain.keypair_path),
                endpoints=chain.endpoints,
                read_index_url=chain.resolved_read_index_url,
                commitment=chain.commitment,
                connect_timeout=chain.connect_timeout,
                read_index_timeout=chain.read_index_timeout,
            )
        return self._chain_client

    @property
    def background_tasks(self) -> BackgroundTasks:
        if self._background_tasks is None:
            self._background_tasks = BackgroundTasks()
        return self._background_tasks

    @property
    def collection_registry(self) -> CollectionRegistry:
        if self._collection_registry is None:
            self._collection_registry = CollectionRegistry.from_config(
                self.settings.collections
            )
        return self._collection_registry

    # ================================================================
    # Pipeline components
    # ================================================================

    @property
    def submission_engine(self) -> MintSubmissionEngine:
        if self._submission_engine is None:
            confirmation = self.settings.confirmation
            self._submission_engine = MintSubmissionEngine(
                chain_client=self.chain_client,
                max_attempts=confirmation.max_attempts,
                poll_interval=confirmation.poll_interval,
                max_polls=confirmation.max_polls,
                retry_delay=confirmation.retry_delay,
                blockhash_retry_delay=confirmation.blockhash_retry_delay,
                rate_limit_base_delay=confirmation.rate_limit_base_delay,
                fatal_error_markers=confirmation.fatal_error_markers,
                skip_preflight=confirmation.skip_preflight,
            )
        return self._submission_engine

    @property
    def leaf_index_resolver(self) -> LeafIndexResolver:
        if self._leaf_index_resolver is None:
            leaf = self.settings.leaf_index
            self._leaf_index_resolver = LeafIndexResolver(
                chain_client=self.chain_client,
                initial_delay=leaf.initial_delay,
                retry_delay=leaf.retry_delay,
                counter_offsets=[
                    CounterOffset(c.offset, c.label) for c in leaf.counter_offsets
                ],
                sanity_ceiling=leaf.sanity_ceiling,
            )
        return self._leaf_index_resolver

    @property
    def asset_id_deriver(self) -> AssetIdDeriver:
        if self._asset_id_deriver is None:
            self._asset_id_deriver = AssetIdDeriver()
        return self._asset_id_deriver

    @property
    def indexing_monitor(self) -> IndexingMonitor:
        if self._indexing_monitor is None:
            indexing = self.settings.indexing
            self._indexing_monitor = IndexingMonitor(
                chain_client=self.chain_client,
                operation_store=self.operation_store,
                check_interval=indexing.check_interval,
                max_attempts=indexing.max_attempts,
                probe_timeout=indexing.probe_timeout,
                completed_cache_size=indexing.completed_cache_size,
                background_tasks=self.background_tasks,
            )
        return self._indexing_monitor

    @property
    def diagnostics(self) -> AssetDiagnostics:
        if self._diagnostics is None:
            self._diagnostics = AssetDiagnostics(self.chain_client)
        return self._diagnostics

    @property
    def webhook_notifier(self) -> WebhookNotifier:
        if self._webhook_notifier is None:
            webhooks = self.settings.webhooks
            self._webhook_notifier = WebhookNotifier(
                http_client=self._webhook_http_client,
                retry_attempts=webhooks.retry_attempts,
                retry_delay=webhooks.retry_delay,
                timeout=webhooks.timeout,
                user_agent=webhooks.user_agent,
                signature_header=webhooks.signature_header,
            )
        return self._webhook_notifier

    @property
    def orchestrator(self) -> MintOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = MintOrchestrator(
                chain_client=self.chain_client,
                submission_engine=self.submission_engine,
                leaf_index_resolver=self.leaf_index_resolver,
                asset_id_deriver=self.asset_id_deriver,
                indexing_monitor=self.indexing_monitor,
                webhook_notifier=self.webhook_notifier,
                operation_store=self.operation_store,
                collection_registry=self.collection_registry,
                diagnostics=self.diagnostics,
                background_tasks=self.background_tasks,
                default_recipient=self.settings.default_recipient,
                batch_max_items=self.settings.batch.max_items,
                batch_item_delay=self.settings.batch.item_delay,
                indexing_enabled=self.settings.indexing.enabled,
            )
        return self._orchestrator
