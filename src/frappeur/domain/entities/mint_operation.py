"""
MintOperation entity - one request to mint compressed NFTs.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from frappeur.domain.value_objects.mint_metadata import MintMetadata


class OperationType(str, Enum):
    """Mint operation kinds."""

    SINGLE = "single"
    BATCH = "batch"


class OperationStatus(str, Enum):
    """Operation lifecycle states."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class IndexingStatus(str, Enum):
    """Read-index visibility of the minted asset."""

    PENDING = "pending"
    MONITORING = "monitoring"
    INDEXED = "indexed"
    TIMEOUT = "timeout"
    ERROR = "error"
    STOPPED = "stopped"
    UNAVAILABLE = "unavailable"


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


@dataclass
class MintResult:
    """On-chain outcome of a single mint."""

    signature: Optional[str] = None
    leaf_index: Optional[int] = None
    asset_id: Optional[str] = None
    elapsed_time: float = 0.0
    attempts: int = 0
    already_exists: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "signature": self.signature,
            "leaf_index": self.leaf_index,
            "asset_id": self.asset_id,
            "elapsed_time": round(self.elapsed_time, 3),
            "attempts": self.attempts,
            "already_exists": self.already_exists,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MintResult":
        """Rebuild from to_dict output."""
        return cls(
            signature=data.get("signature"),
            leaf_index=data.get("leaf_index"),
            asset_id=data.get("asset_id"),
            elapsed_time=float(data.get("elapsed_time") or 0.0),
            attempts=int(data.get("attempts") or 0),
            already_exists=bool(data.get("already_exists", False)),
        )


@dataclass
class BatchItem:
    """One entry of a batch mint."""

    index: int
    recipient: str
    metadata: MintMetadata
    status: str = "pending"
    result: Optional[MintResult] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "index": self.index,
            "recipient": self.recipient,
            "metadata": self.metadata.to_dict(),
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BatchItem":
        """Rebuild from to_dict output."""
        result = data.get("result")
        return cls(
            index=int(data["index"]),
            recipient=data["recipient"],
            metadata=MintMetadata.from_dict(data["metadata"]),
            status=data.get("status", "pending"),
            result=MintResult.from_dict(result) if result else None,
            error=data.get("error"),
        )


@dataclass
class MintOperation:
    """
    MintOperation entity tracking one accepted mint request.

    Business rules:
    - Created in PROCESSING status when the request is accepted
    - Status transitions: PROCESSING → COMPLETED or FAILED (once)
    - Indexing fields keep changing after completion until the
      indexing monitor reaches a terminal state
    - phantom_ready means signature confirmed AND visible in the read-index
    """

    collection_id: str
    tree_address: str
    collection_address: str
    id: str = field(default_factory=lambda: str(uuid4()))
    type: OperationType = field(default=OperationType.SINGLE)
    status: OperationStatus = field(default=OperationStatus.PROCESSING)
    collection_name: str = field(default="")
    recipient: Optional[str] = field(default=None)
    metadata: Optional[MintMetadata] = field(default=None)
    result: Optional[MintResult] = field(default=None)
    error: Optional[str] = field(default=None)
    indexing_status: IndexingStatus = field(default=IndexingStatus.PENDING)
    phantom_ready: bool = field(default=False)
    indexing_history: list[dict] = field(default_factory=list)
    total_indexing_time: Optional[float] = field(default=None)
    recommendations: list[str] = field(default_factory=list)
    last_checked: Optional[datetime] = field(default=None)
    items: list[BatchItem] = field(default_factory=list)
    processed_items: int = field(default=0)
    successful_items: int = field(default=0)
    failed_items: int = field(default=0)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = field(default=None)

    def __post_init__(self):
        """Validate operation data after initialization."""
        if not self.collection_id:
            raise ValueError("Collection ID is required")

        if not self.tree_address:
            raise ValueError("Tree address is required")

        if self.type == OperationType.SINGLE and self.metadata is None:
            raise ValueError("Single mint requires metadata")

        if self.type == OperationType.BATCH and not self.items:
            raise ValueError("Batch mint requires at least one item")

    @property
    def total_items(self) -> int:
        """Number of leaves requested by this operation."""
        return len(self.items) if self.type == OperationType.BATCH else 1

    @property
    def is_terminal(self) -> bool:
        """Submission path finished (indexing may still be running)."""
        return self.status != OperationStatus.PROCESSING

    def complete(self, result: Optional[MintResult] = None) -> None:
        """
        Mark operation as completed.

        Raises:
            ValueError: If not in PROCESSING status
        """
        if self.status != OperationStatus.PROCESSING:
            raise ValueError(
                f"Cannot complete operation in {self.status.value} status"
            )

        self.status = OperationStatus.COMPLETED
        self.result = result or self.result
        self.completed_at = utcnow()

    def fail(self, error: str) -> None:
        """
        Mark operation as failed.

        Raises:
            ValueError: If not in PROCESSING status
        """
        if self.status != OperationStatus.PROCESSING:
            raise ValueError(f"Cannot fail operation in {self.status.value} status")

        self.status = OperationStatus.FAILED
        self.error = error
        self.completed_at = utcnow()

    def apply_updates(self, updates: dict[str, Any]) -> None:
        """
        Apply partial field updates coming from a store update call.

        Raises:
            ValueError: If a field name is unknown
        """
        known = {f.name for f in fields(self)}
        unknown = set(updates) - known
        if unknown:
            raise ValueError(f"Unknown MintOperation fields: {sorted(unknown)}")

        for name, value in updates.items():
            if name == "status" and not isinstance(value, OperationStatus):
                value = OperationStatus(value)
            elif name == "indexing_status" and not isinstance(
                value, IndexingStatus
            ):
                value = IndexingStatus(value)
            setattr(self, name, value)

    def to_dict(self) -> dict:
        """Convert entity to dictionary representation."""
        data = {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "collection_id": self.collection_id,
            "collection_name": self.collection_name,
            "tree_address": self.tree_address,
            "collection_address": self.collection_address,
            "recipient": self.recipient,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "indexing_status": self.indexing_status.value,
            "phantom_ready": self.phantom_ready,
            "indexing_history": list(self.indexing_history),
            "total_indexing_time": self.total_indexing_time,
            "recommendations": list(self.recommendations),
            "last_checked": (
                self.last_checked.isoformat() if self.last_checked else None
            ),
            "created_at": self.created_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }

        if self.type == OperationType.BATCH:
            data.update(
                {
                    "total_items": self.total_items,
                    "processed_items": self.processed_items,
                    "successful_items": self.successful_items,
                    "failed_items": self.failed_items,
                    "items": [item.to_dict() for item in self.items],
                }
            )

        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MintOperation":
        """
        Rebuild an operation from its to_dict snapshot.

        Used by stores that persist the snapshot as JSON.
        """
        metadata = data.get("metadata")
        result = data.get("result")
        return cls(
            id=data["id"],
            type=OperationType(data.get("type", OperationType.SINGLE.value)),
            status=OperationStatus(data["status"]),
            collection_id=data["collection_id"],
            collection_name=data.get("collection_name") or "",
            tree_address=data["tree_address"],
            collection_address=data.get("collection_address") or "",
            recipient=data.get("recipient"),
            metadata=MintMetadata.from_dict(metadata) if metadata else None,
            result=MintResult.from_dict(result) if result else None,
            error=data.get("error"),
            indexing_status=IndexingStatus(
                data.get("indexing_status", IndexingStatus.PENDING.value)
            ),
            phantom_ready=bool(data.get("phantom_ready", False)),
            indexing_history=list(data.get("indexing_history") or []),
            total_indexing_time=data.get("total_indexing_time"),
            recommendations=list(data.get("recommendations") or []),
            last_checked=_parse_datetime(data.get("last_checked")),
            items=[BatchItem.from_dict(item) for item in data.get("items") or []],
            processed_items=int(data.get("processed_items") or 0),
            successful_items=int(data.get("successful_items") or 0),
            failed_items=int(data.get("failed_items") or 0),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
            completed_at=_parse_datetime(data.get("completed_at")),
        )


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
