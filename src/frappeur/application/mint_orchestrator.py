"""
Mint orchestrator.

Accepts mint requests, runs the submission pipeline in the background
and exposes status, indexing and wallet queries. It owns the components
it is built with; nothing here is a module-level singleton.
"""

import asyncio
import dataclasses
from typing import Any, Optional, Sequence, Union

from frappeur.domain.entities.collection import Collection
from frappeur.domain.entities.mint_operation import (
    BatchItem,
    IndexingStatus,
    MintOperation,
    MintResult,
    OperationType,
    utcnow,
)
from frappeur.domain.exceptions import (
    MintAttemptsExhaustedError,
    MintFatalError,
    OperationNotFoundError,
    ValidationError,
)
from frappeur.domain.repositories.i_operation_store import IOperationStore
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.domain.value_objects.mint_metadata import MintMetadata
from frappeur.infrastructure.blockchain.asset_id_deriver import (
    AssetIdDeriver,
    is_placeholder_asset_id,
)
from frappeur.infrastructure.blockchain.bubblegum import is_valid_address
from frappeur.infrastructure.blockchain.leaf_index_resolver import (
    LeafIndexResolver,
)
from frappeur.infrastructure.blockchain.submission_engine import (
    MintSubmissionEngine,
)
from frappeur.infrastructure.collections.collection_registry import (
    CollectionRegistry,
)
from frappeur.infrastructure.indexing.asset_diagnostics import AssetDiagnostics
from frappeur.infrastructure.indexing.indexing_monitor import (
    IndexingMonitor,
    MonitorEvent,
)
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger
from frappeur.infrastructure.notifications.webhook_notifier import (
    WebhookNotifier,
)
from frappeur.infrastructure.scheduling.background_tasks import BackgroundTasks

logger = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
LOW_BALANCE_SOL = 1.0
BASE_FEE_SOL = 0.00025
PER_ITEM_FEE_SOL = 0.0001

RECHECK_RECOMMENDATION = "Check again in 15-30 minutes."
DUPLICATE_RECOMMENDATION = (
    "Leaf already existed; look the asset up by owner in the read-index."
)
PLACEHOLDER_RECOMMENDATION = (
    "Asset ID could not be derived; resolve it from the read-index by owner."
)
BATCH_RECOMMENDATION = "Check each item with GET /api/indexing/{asset_id}."

MetadataInput = Union[MintMetadata, dict]


class MintOrchestrator:
    """
    Entry point for every mint use case.

    Pipeline per leaf:
    submit + confirm -> resolve leaf index -> derive asset ID ->
    start indexing monitor -> record collection stats
    """

    def __init__(
        self,
        chain_client: IChainClient,
        submission_engine: MintSubmissionEngine,
        leaf_index_resolver: LeafIndexResolver,
        asset_id_deriver: AssetIdDeriver,
        indexing_monitor: IndexingMonitor,
        webhook_notifier: WebhookNotifier,
        operation_store: IOperationStore,
        collection_registry: CollectionRegistry,
        diagnostics: Optional[AssetDiagnostics] = None,
        background_tasks: Optional[BackgroundTasks] = None,
        default_recipient: Optional[str] = None,
        batch_max_items: int = 50,
        batch_item_delay: float = 2.0,
        indexing_enabled: bool = True,
    ):
        self.chain_client = chain_client
        self.submission_engine = submission_engine
        self.leaf_index_resolver = leaf_index_resolver
        self.asset_id_deriver = asset_id_deriver
        self.indexing_monitor = indexing_monitor
        self.webhook_notifier = webhook_notifier
        self.operation_store = operation_store
        self.collection_registry = collection_registry
        self.diagnostics = diagnostics or AssetDiagnostics(chain_client)
        self.background_tasks = background_tasks or BackgroundTasks()
        self.default_recipient = default_recipient
        self.batch_max_items = batch_max_items
        self.batch_item_delay = batch_item_delay
        self.indexing_enabled = indexing_enabled

        for event in MonitorEvent:
            self.indexing_monitor.on(event, self._forward_event)

    async def _forward_event(self, event: str, data: dict) -> None:
        await self.webhook_notifier.notify_event(event, data)

    # ================================================================
    # Validation
    # ================================================================

    def _resolve_recipient(self, recipient: Optional[str], field: str) -> str:
        recipient = recipient or self.default_recipient
        if not recipient:
            raise ValidationError(field, "recipient is required")
        if not is_valid_address(recipient):
            raise ValidationError(field, f"invalid Solana address {recipient}")
        return recipient

    def _build_metadata(
        self, metadata: MetadataInput, collection: Collection, field: str
    ) -> MintMetadata:
        if metadata is None:
            raise ValidationError(field, "metadata is required")

        if isinstance(metadata, dict):
            try:
                metadata = MintMetadata.from_dict(
                    metadata,
                    default_basis_points=collection.seller_fee_basis_points,
                )
            except (ValueError, TypeError, KeyError) as e:
                raise ValidationError(field, str(e)) from e

        for creator in metadata.creators:
            if not is_valid_address(creator.address):
                raise ValidationError(
                    f"{field}.creators",
                    f"invalid creator address {creator.address}",
                )

        if not metadata.symbol and collection.symbol:
            metadata = dataclasses.replace(metadata, symbol=collection.symbol)

        return metadata

    # ================================================================
    # Single mint
    # ================================================================

    async def accept_mint(
        self,
        collection_id: str,
        recipient: Optional[str],
        metadata: MetadataInput,
    ) -> MintOperation:
        """
        Validate a single mint and schedule it.

        Args:
            collection_id: Configured collection to mint into
            recipient: Leaf owner (falls back to the default recipient)
            metadata: MintMetadata or request payload dict

        Returns:
            Operation in PROCESSING status

        Raises:
            CollectionNotFoundError: Unknown collection
            MintNotAllowedError: Collection refuses new mints
            ValidationError: Invalid recipient or metadata
        """
        collection = self.collection_registry.check_can_mint(collection_id)
        recipient = self._resolve_recipient(recipient, "recipient")
        mint_metadata = self._build_metadata(metadata, collection, "metadata")

        operation = MintOperation(
            collection_id=collection.id,
            collection_name=collection.name,
            tree_address=collection.tree_address,
            collection_address=collection.collection_address,
            recipient=recipient,
            metadata=mint_metadata,
        )
        await self._persist(operation)

        metrics.mint_operations_in_flight.inc()
        self.background_tasks.spawn(
            self._run_single(operation), name=f"mint-{operation.id}"
        )

        logger.info(
            f"Accepted mint of '{mint_metadata.name}' into {collection.id}",
            extra={"operation_id": operation.id, "recipient": recipient},
        )
        return operation

    async def _run_single(self, operation: MintOperation) -> None:
        try:
            result = await self._mint_leaf(
                operation, operation.recipient, operation.metadata
            )
        except (MintFatalError, MintAttemptsExhaustedError) as e:
            await self._fail_operation(operation, e.message)
            return
        except Exception as e:
            logger.error(
                f"Mint pipeline crashed for {operation.id}: {e}", exc_info=True
            )
            await self._fail_operation(operation, f"{type(e).__name__}: {e}")
            return

        monitor = False
        try:
            monitor = self._apply_indexing_plan(operation, result)
            self.collection_registry.record_mint(operation.collection_id)
        except Exception as e:
            logger.warning(
                f"Post-mint bookkeeping failed for {operation.id}: {e}",
                exc_info=True,
            )
            operation.recommendations.append(RECHECK_RECOMMENDATION)
            monitor = False

        operation.complete(result)
        await self._persist(operation)
        self._record_finished(operation)

        if monitor:
            await self.indexing_monitor.start_monitoring(
                operation.id,
                result.asset_id,
                {
                    "tree_address": operation.tree_address,
                    "leaf_index": result.leaf_index,
                    "collection": operation.collection_id,
                    "nft_name": operation.metadata.name,
                    "recipient": operation.recipient,
                },
            )

    async def _mint_leaf(
        self,
        operation: MintOperation,
        recipient: str,
        metadata: MintMetadata,
    ) -> MintResult:
        """Submit, confirm, then resolve leaf index and asset ID."""
        submission = await self.submission_engine.mint_asset(
            operation.tree_address,
            operation.collection_address,
            recipient,
            metadata,
        )
        result = MintResult(
            signature=submission.signature,
            elapsed_time=submission.elapsed_time,
            attempts=submission.attempts,
            already_exists=submission.already_exists,
        )
        if submission.already_exists:
            return result

        leaf_index = await self.leaf_index_resolver.resolve_leaf_index(
            operation.tree_address, recipient
        )
        if leaf_index is not None:
            result.leaf_index = leaf_index
            result.asset_id = self.asset_id_deriver.derive_asset_id(
                operation.tree_address, leaf_index
            )
        return result

    def _apply_indexing_plan(
        self, operation: MintOperation, result: MintResult
    ) -> bool:
        """Set initial indexing fields; True when the asset can be monitored."""
        if result.already_exists:
            operation.indexing_status = IndexingStatus.UNAVAILABLE
            operation.recommendations.append(DUPLICATE_RECOMMENDATION)
            return False

        if result.asset_id is None:
            logger.warning(
                f"Leaf index unresolved for {operation.id}; mint succeeded",
                extra={"signature": result.signature},
            )
            operation.indexing_status = IndexingStatus.UNAVAILABLE
            operation.recommendations.append(RECHECK_RECOMMENDATION)
            return False

        if is_placeholder_asset_id(result.asset_id):
            operation.indexing_status = IndexingStatus.UNAVAILABLE
            operation.recommendations.append(PLACEHOLDER_RECOMMENDATION)
            return False

        if not self.indexing_enabled:
            return False

        operation.indexing_status = IndexingStatus.MONITORING
        return True

    # ================================================================
    # Batch mint
    # ================================================================

    async def accept_batch_mint(
        self, collection_id: str, items: Sequence[dict]
    ) -> MintOperation:
        """
        Validate a batch and schedule sequential minting.

        Args:
            collection_id: Configured collection to mint into
            items: [{recipient, metadata}, ...]

        Returns:
            Batch operation in PROCESSING status

        Raises:
            CollectionNotFoundError: Unknown collection
            MintNotAllowedError: Collection refuses the batch size
            ValidationError: Empty or oversized batch, or an invalid item
        """
        if not items:
            raise ValidationError("items", "at least one item is required")
        if len(items) > self.batch_max_items:
            raise ValidationError(
                "items",
                f"batch exceeds {self.batch_max_items} items ({len(items)})",
            )

        collection = self.collection_registry.check_can_mint(
            collection_id, count=len(items)
        )

        batch_items = []
        for index, item in enumerate(items):
            prefix = f"items[{index}]"
            batch_items.append(
                BatchItem(
                    index=index,
                    recipient=self._resolve_recipient(
                        item.get("recipient"), f"{prefix}.recipient"
                    ),
                    metadata=self._build_metadata(
                        item.get("metadata"), collection, f"{prefix}.metadata"
                    ),
                )
            )

        operation = MintOperation(
            type=OperationType.BATCH,
            collection_id=collection.id,
            collection_name=collection.name,
            tree_address=collection.tree_address,
            collection_address=collection.collection_address,
            items=batch_items,
        )
        await self._persist(operation)

        metrics.mint_operations_in_flight.inc()
        self.background_tasks.spawn(
            self._run_batch(operation), name=f"batch-{operation.id}"
        )

        logger.info(
            f"Accepted batch of {len(batch_items)} mints into {collection.id}",
            extra={"operation_id": operation.id},
        )
        return operation

    async def _run_batch(self, operation: MintOperation) -> None:
        for item in operation.items:
            if item.index > 0 and self.batch_item_delay > 0:
                await asyncio.sleep(self.batch_item_delay)

            try:
                item.result = await self._mint_leaf(
                    operation, item.recipient, item.metadata
                )
            except (MintFatalError, MintAttemptsExhaustedError) as e:
                item.status = "failed"
                item.error = e.message
                operation.failed_items += 1
            except Exception as e:
                logger.error(
                    f"Batch item {item.index} of {operation.id} crashed: {e}",
                    exc_info=True,
                )
                item.status = "failed"
                item.error = f"{type(e).__name__}: {e}"
                operation.failed_items += 1
            else:
                item.status = "completed"
                operation.successful_items += 1

            operation.processed_items += 1
            await self._persist(operation)
            logger.info(
                f"Batch {operation.id}: {operation.processed_items}/"
                f"{operation.total_items} processed"
            )

        if operation.successful_items == 0:
            await self._fail_operation(
                operation, f"All {operation.total_items} batch items failed"
            )
            return

        self.collection_registry.record_mint(
            operation.collection_id, operation.successful_items
        )
        operation.recommendations.append(BATCH_RECOMMENDATION)
        operation.complete()
        await self._persist(operation)
        self._record_finished(operation)

    # ================================================================
    # Persistence helpers
    # ================================================================

    async def _fail_operation(self, operation: MintOperation, error: str) -> None:
        operation.fail(error)
        await self._persist(operation)
        self._record_finished(operation)
        logger.error(
            f"Mint operation {operation.id} failed: {error}",
            extra={"operation_id": operation.id},
        )

    def _record_finished(self, operation: MintOperation) -> None:
        metrics.mint_operations_in_flight.dec()
        metrics.mint_operations_total.labels(
            type=operation.type.value, status=operation.status.value
        ).inc()

    async def _persist(self, operation: MintOperation) -> None:
        try:
            await self.operation_store.save(operation)
        except Exception as e:
            logger.error(f"Failed to persist operation {operation.id}: {e}")

    async def _update(self, operation_id: str, fields: dict[str, Any]) -> None:
        try:
            await self.operation_store.update(operation_id, fields)
        except Exception as e:
            logger.error(f"Failed to update operation {operation_id}: {e}")

    async def _load(self, operation_id: str) -> MintOperation:
        operation = await self.operation_store.get(operation_id)
        if operation is None:
            raise OperationNotFoundError(operation_id)
        return operation

    # ================================================================
    # Queries
    # ================================================================

    async def get_operation_status(self, operation_id: str) -> dict:
        """
        Operation snapshot plus live monitoring state.

        Raises:
            OperationNotFoundError: Unknown operation ID
        """
        operation = await self._load(operation_id)
        data = operation.to_dict()
        data["monitoring"] = self.indexing_monitor.get_operation_status(
            operation_id
        )
        return data

    async def list_operations(
        self,
        status: Optional[str] = None,
        operation_type: Optional[str] = None,
        collection_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[dict]:
        operations = await self.operation_store.list_operations(
            status=status,
            operation_type=operation_type,
            collection_id=collection_id,
            limit=limit,
        )
        return [operation.to_dict() for operation in operations]

    def _check_asset_id(self, asset_id: str) -> None:
        if not (is_valid_address(asset_id) or is_placeholder_asset_id(asset_id)):
            raise ValidationError("asset_id", f"invalid asset ID {asset_id}")

    async def get_indexing_status(self, asset_id: str) -> dict:
        """
        Quick read-index status of an asset.

        Raises:
            ValidationError: Malformed asset ID
        """
        self._check_asset_id(asset_id)
        return await self.diagnostics.quick_status(asset_id)

    async def force_recheck_indexing(
        self, asset_id: str, operation_id: Optional[str] = None
    ) -> dict:
        """
        Run the full diagnostic now.

        When the asset is indexed, the operation is updated and its
        monitoring job is stopped.

        Raises:
            ValidationError: Malformed asset ID
            OperationNotFoundError: Unknown operation ID
        """
        self._check_asset_id(asset_id)
        operation = await self._load(operation_id) if operation_id else None

        report = await self.diagnostics.full_report(
            asset_id,
            tree_address=operation.tree_address if operation else None,
            leaf_index=(
                operation.result.leaf_index
                if operation and operation.result
                else None
            ),
        )

        if operation_id and report["checks"]["das_indexed"]:
            await self.indexing_monitor.stop_monitoring(
                operation_id, reason="indexed_on_recheck"
            )
            await self._update(
                operation_id,
                {
                    "indexing_status": IndexingStatus.INDEXED,
                    "phantom_ready": report["summary"]["phantom_ready"],
                    "last_checked": utcnow(),
                    "recommendations": list(report["recommendations"]),
                },
            )

        report["operation_id"] = operation_id
        report["monitoring"] = (
            self.indexing_monitor.get_operation_status(operation_id)
            if operation_id
            else None
        )
        return report

    # ================================================================
    # Monitoring passthroughs
    # ================================================================

    def get_monitoring_stats(self) -> dict:
        return self.indexing_monitor.get_monitoring_stats()

    def get_active_monitoring(self) -> list[dict]:
        return self.indexing_monitor.get_active_operations()

    def get_monitoring_status(self, operation_id: str) -> dict:
        """
        Raises:
            OperationNotFoundError: No job, active or cached, for the ID
        """
        status = self.indexing_monitor.get_operation_status(operation_id)
        if status is None:
            raise OperationNotFoundError(operation_id)
        return status

    async def stop_monitoring(
        self, operation_id: str, reason: str = "manual"
    ) -> bool:
        return await self.indexing_monitor.stop_monitoring(operation_id, reason)

    # ================================================================
    # Wallet
    # ================================================================

    async def get_wallet_status(self) -> dict:
        """
        Balance of the minting identity.

        Raises:
            BlockchainError: Balance could not be read
        """
        lamports = await self.chain_client.get_balance()
        balance = lamports / LAMPORTS_PER_SOL
        low_balance = balance < LOW_BALANCE_SOL
        if low_balance:
            logger.warning(
                f"Low wallet balance: {balance:.4f} SOL",
                extra={"address": self.chain_client.identity},
            )

        return {
            "address": self.chain_client.identity,
            "balance": balance,
            "lamports": lamports,
            "low_balance": low_balance,
            "warning": (
                f"Balance below {LOW_BALANCE_SOL} SOL" if low_balance else None
            ),
            "timestamp": utcnow().isoformat(),
        }

    def estimate_mint_cost(self, item_count: int = 1) -> dict:
        """
        Approximate SOL cost of minting `item_count` leaves.

        Raises:
            ValidationError: Count outside 1..batch_max_items
        """
        if not 1 <= item_count <= self.batch_max_items:
            raise ValidationError(
                "items", f"must be between 1 and {self.batch_max_items}"
            )
        return {
            "estimated_cost": BASE_FEE_SOL + PER_ITEM_FEE_SOL * item_count,
            "item_count": item_count,
            "base_fee": BASE_FEE_SOL,
            "per_item_fee": PER_ITEM_FEE_SOL,
            "currency": "SOL",
        }

    async def can_afford_operation(self, item_count: int = 1) -> dict:
        """Compare the cost estimate against the current balance."""
        estimate = self.estimate_mint_cost(item_count)
        wallet = await self.get_wallet_status()
        remaining = wallet["balance"] - estimate["estimated_cost"]
        return {
            "can_afford": remaining >= 0,
            "current_balance": wallet["balance"],
            "estimated_cost": estimate["estimated_cost"],
            "remaining_balance": max(0.0, remaining),
            "item_count": item_count,
            "warning": (
                "Balance will be low after this operation"
                if remaining < LOW_BALANCE_SOL
                else None
            ),
        }

    # ================================================================
    # Lifecycle
    # ================================================================

    async def shutdown(self) -> None:
        """Stop monitoring, cancel pipelines and release clients."""
        await self.indexing_monitor.shutdown()
        await self.background_tasks.cancel_all()
        await self.chain_client.close()
        await self.webhook_notifier.close()
        logger.info("Mint orchestrator shut down")
