"""
Unit tests for domain entities.

Tests MintOperation lifecycle, MonitoringJob transitions, Collection mint
rules, WebhookRegistration validation and MintMetadata parsing.

Usage:
    pytest tests/unit/domain/test_entities.py
"""

import pytest

from frappeur.domain.entities.collection import Collection, CollectionStatus
from frappeur.domain.entities.mint_operation import (
    BatchItem,
    IndexingStatus,
    MintOperation,
    MintResult,
    OperationStatus,
    OperationType,
)
from frappeur.domain.entities.monitoring_job import JobStatus, MonitoringJob
from frappeur.domain.entities.webhook_registration import (
    DEFAULT_WEBHOOK_EVENTS,
    WebhookRegistration,
)
from frappeur.domain.value_objects.mint_metadata import Creator, MintMetadata

TREE = "kshy5yns5FGGXcFVfjT2fTzVsQLFnbZzL9zuh1ZKR2y"
COLLECTION = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
RECIPIENT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class TestMintOperation:
    """Unit tests for MintOperation entity."""

    # ================================================================
    # Helper Methods
    # ================================================================

    def _create_metadata(self) -> MintMetadata:
        return MintMetadata(
            name="Ticket #1",
            symbol="TIX",
            uri="https://example.com/1.json",
            seller_fee_basis_points=500,
            creators=(Creator(RECIPIENT, 100),),
        )

    def _create_operation(self, **kwargs) -> MintOperation:
        defaults = {
            "collection_id": "tickets",
            "tree_address": TREE,
            "collection_address": COLLECTION,
            "recipient": RECIPIENT,
            "metadata": self._create_metadata(),
        }
        defaults.update(kwargs)
        return MintOperation(**defaults)

    def _create_batch(self) -> MintOperation:
        items = [
            BatchItem(index=i, recipient=RECIPIENT, metadata=self._create_metadata())
            for i in range(2)
        ]
        return MintOperation(
            type=OperationType.BATCH,
            collection_id="tickets",
            tree_address=TREE,
            collection_address=COLLECTION,
            items=items,
        )

    # ================================================================
    # Creation
    # ================================================================

    def test_new_operation_is_processing(self):
        """Test operation starts in PROCESSING with pending indexing."""
        operation = self._create_operation()

        assert operation.status == OperationStatus.PROCESSING
        assert operation.indexing_status == IndexingStatus.PENDING
        assert operation.total_items == 1
        assert not operation.is_terminal
        assert operation.id

    def test_single_requires_metadata(self):
        """Test single operation without metadata is rejected."""
        with pytest.raises(ValueError, match="metadata"):
            self._create_operation(metadata=None)

    def test_batch_requires_items(self):
        """Test batch operation without items is rejected."""
        with pytest.raises(ValueError, match="at least one item"):
            MintOperation(
                type=OperationType.BATCH,
                collection_id="tickets",
                tree_address=TREE,
                collection_address=COLLECTION,
            )

    # ================================================================
    # Transitions
    # ================================================================

    def test_complete_sets_result(self):
        """Test completing stores result and timestamp."""
        operation = self._create_operation()
        result = MintResult(signature="sig", leaf_index=0, asset_id="asset")

        operation.complete(result)

        assert operation.status == OperationStatus.COMPLETED
        assert operation.result is result
        assert operation.completed_at is not None

    def test_fail_sets_error(self):
        """Test failing stores error message."""
        operation = self._create_operation()

        operation.fail("boom")

        assert operation.status == OperationStatus.FAILED
        assert operation.error == "boom"
        assert operation.is_terminal

    def test_transition_only_once(self):
        """Test terminal operation refuses further transitions."""
        operation = self._create_operation()
        operation.complete()

        with pytest.raises(ValueError, match="completed"):
            operation.fail("late")

        with pytest.raises(ValueError, match="completed"):
            operation.complete()

    def test_apply_updates_coerces_enums(self):
        """Test string status values are coerced to enums."""
        operation = self._create_operation()

        operation.apply_updates(
            {"indexing_status": "indexed", "phantom_ready": True}
        )

        assert operation.indexing_status == IndexingStatus.INDEXED
        assert operation.phantom_ready is True

    def test_apply_updates_rejects_unknown_fields(self):
        """Test unknown field names raise ValueError."""
        operation = self._create_operation()

        with pytest.raises(ValueError, match="Unknown"):
            operation.apply_updates({"nope": 1})

    # ================================================================
    # Serialization
    # ================================================================

    def test_to_dict_single_has_no_batch_fields(self):
        """Test single operation dict omits batch counters."""
        data = self._create_operation().to_dict()

        assert data["type"] == "single"
        assert data["status"] == "processing"
        assert data["metadata"]["name"] == "Ticket #1"
        assert "items" not in data

    def test_to_dict_batch_has_counters(self):
        """Test batch operation dict includes item counters."""
        data = self._create_batch().to_dict()

        assert data["type"] == "batch"
        assert data["total_items"] == 2
        assert data["processed_items"] == 0
        assert len(data["items"]) == 2

    def test_from_dict_rebuilds_completed_operation(self):
        """Test snapshot rebuild keeps status, result and timestamps."""
        operation = self._create_operation()
        operation.indexing_status = IndexingStatus.MONITORING
        operation.complete(MintResult(signature="sig", leaf_index=3, asset_id="a"))

        rebuilt = MintOperation.from_dict(operation.to_dict())

        assert rebuilt.id == operation.id
        assert rebuilt.status == OperationStatus.COMPLETED
        assert rebuilt.indexing_status == IndexingStatus.MONITORING
        assert rebuilt.result.leaf_index == 3
        assert rebuilt.metadata == operation.metadata
        assert rebuilt.created_at == operation.created_at
        assert rebuilt.completed_at == operation.completed_at

    def test_from_dict_rebuilds_batch_items(self):
        """Test batch snapshot rebuild keeps per-item state."""
        operation = self._create_batch()
        operation.items[0].status = "completed"
        operation.items[0].result = MintResult(signature="s0", leaf_index=0)
        operation.items[1].status = "failed"
        operation.items[1].error = "rejected"

        rebuilt = MintOperation.from_dict(operation.to_dict())

        assert rebuilt.type == OperationType.BATCH
        assert rebuilt.items[0].result.signature == "s0"
        assert rebuilt.items[1].error == "rejected"


class TestMonitoringJob:
    """Unit tests for MonitoringJob entity."""

    def test_finish_once(self):
        """Test job moves to a terminal status exactly once."""
        job = MonitoringJob(operation_id="op", asset_id="asset")

        job.finish(JobStatus.INDEXED, "indexed")

        assert not job.is_active
        assert job.stop_reason == "indexed"
        with pytest.raises(ValueError):
            job.finish(JobStatus.STOPPED)

    def test_monitoring_is_not_terminal(self):
        """Test MONITORING cannot be used as a terminal status."""
        job = MonitoringJob(operation_id="op", asset_id="asset")

        with pytest.raises(ValueError, match="terminal"):
            job.finish(JobStatus.MONITORING)

    def test_record_poll_tracks_last_error(self):
        """Test poll history and last error are recorded."""
        job = MonitoringJob(operation_id="op", asset_id="asset")
        job.attempts = 1

        job.record_poll(False, 0.1, error="timeout")

        assert len(job.history) == 1
        assert job.history[0].attempt == 1
        assert job.last_error == "timeout"

    def test_elapsed_frozen_after_finish(self):
        """Test elapsed time stops growing once finished."""
        job = MonitoringJob(operation_id="op", asset_id="asset")
        job.finish(JobStatus.TIMEOUT)

        assert job.elapsed == job.end_time - job.start_time


class TestCollection:
    """Unit tests for Collection entity."""

    def _create_collection(self, **kwargs) -> Collection:
        defaults = {
            "id": "tickets",
            "name": "Tickets",
            "tree_address": TREE,
            "collection_address": COLLECTION,
        }
        defaults.update(kwargs)
        return Collection(**defaults)

    def test_active_collection_can_mint(self):
        """Test active collection allows minting."""
        allowed, reason = self._create_collection().can_mint()

        assert allowed
        assert reason is None

    def test_paused_collection_refuses(self):
        """Test paused collection refuses minting."""
        collection = self._create_collection(status=CollectionStatus.PAUSED)

        allowed, reason = collection.can_mint()

        assert not allowed
        assert "paused" in reason

    def test_max_supply_enforced(self):
        """Test batch larger than remaining supply is refused."""
        collection = self._create_collection(max_supply=3, total_minted=2)

        assert collection.can_mint(1)[0]
        assert not collection.can_mint(2)[0]

    def test_record_mint_rejects_negative(self):
        """Test negative mint counts are rejected."""
        with pytest.raises(ValueError):
            self._create_collection().record_mint(-1)


class TestWebhookRegistration:
    """Unit tests for WebhookRegistration entity."""

    def test_defaults_to_indexing_events(self):
        """Test registration subscribes to terminal indexing events."""
        webhook = WebhookRegistration(id="w1", url="https://hooks.test/in")

        assert webhook.events == DEFAULT_WEBHOOK_EVENTS
        assert webhook.subscribes_to("indexingCompleted")
        assert not webhook.subscribes_to("monitoringStarted")

    def test_inactive_subscribes_to_nothing(self):
        """Test inactive webhook receives no events."""
        webhook = WebhookRegistration(
            id="w1", url="https://hooks.test/in", active=False
        )

        assert not webhook.subscribes_to("indexingCompleted")

    def test_invalid_url_rejected(self):
        """Test non-http URL is rejected."""
        with pytest.raises(ValueError, match="Invalid webhook URL"):
            WebhookRegistration(id="w1", url="ftp://hooks.test")

    def test_to_dict_redacts_secret(self):
        """Test secret never appears in the dict form."""
        webhook = WebhookRegistration(
            id="w1", url="https://hooks.test/in", secret="s3cret"
        )

        data = webhook.to_dict()

        assert data["has_secret"] is True
        assert "s3cret" not in str(data)


class TestMintMetadata:
    """Unit tests for MintMetadata value object."""

    def test_from_dict_accepts_camel_case_royalty(self):
        """Test sellerFeeBasisPoints is accepted."""
        metadata = MintMetadata.from_dict(
            {"name": "A", "uri": "https://x/a.json", "sellerFeeBasisPoints": 250}
        )

        assert metadata.seller_fee_basis_points == 250

    def test_from_dict_uses_default_royalty(self):
        """Test collection default applies when royalty is omitted."""
        metadata = MintMetadata.from_dict(
            {"name": "A", "uri": "https://x/a.json"}, default_basis_points=500
        )

        assert metadata.seller_fee_basis_points == 500

    def test_name_required(self):
        """Test empty name is rejected."""
        with pytest.raises(ValueError, match="name"):
            MintMetadata(name="", uri="https://x/a.json")

    def test_name_length_limit(self):
        """Test names longer than 32 chars are rejected."""
        with pytest.raises(ValueError, match="32"):
            MintMetadata(name="x" * 33, uri="https://x/a.json")

    def test_name_limit_counts_utf8_bytes(self):
        """Test 20 Cyrillic letters (40 bytes) exceed the 32-byte name limit."""
        with pytest.raises(ValueError, match="32 bytes"):
            MintMetadata(name="Ж" * 20, uri="https://x/a.json")

    def test_name_at_byte_limit_accepted(self):
        """Test 16 two-byte letters fill the name limit exactly."""
        metadata = MintMetadata(name="Ж" * 16, uri="https://x/a.json")

        assert metadata.name == "Ж" * 16

    def test_symbol_limit_counts_utf8_bytes(self):
        """Test a 3-emoji symbol (12 bytes) exceeds the 10-byte limit."""
        with pytest.raises(ValueError, match="symbol"):
            MintMetadata(name="A", uri="https://x/a.json", symbol="🎟🎟🎟")

    def test_uri_limit_counts_utf8_bytes(self):
        """Test a non-ASCII URI is measured in bytes."""
        uri = "https://x/" + "é" * 100

        with pytest.raises(ValueError, match="uri"):
            MintMetadata(name="A", uri=uri)

    def test_royalty_range(self):
        """Test basis points above 10000 are rejected."""
        with pytest.raises(ValueError, match="seller_fee_basis_points"):
            MintMetadata(
                name="A", uri="https://x/a.json", seller_fee_basis_points=10_001
            )
