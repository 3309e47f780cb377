"""
MonitoringJob entity - one active indexing poll cycle.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class JobStatus(str, Enum):
    """Indexing monitor job states."""

    MONITORING = "monitoring"
    INDEXED = "indexed"
    TIMEOUT = "timeout"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass(frozen=True)
class PollRecord:
    """Outcome of one read-index probe."""

    attempt: int
    timestamp: datetime
    indexed: bool
    response_time: float
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "attempt": self.attempt,
            "timestamp": self.timestamp.isoformat(),
            "indexed": self.indexed,
            "response_time": round(self.response_time, 3),
            "error": self.error,
        }


@dataclass
class MonitoringJob:
    """
    MonitoringJob entity tracking read-index polling for one operation.

    Business rules:
    - At most one active job per operation_id (enforced by the monitor)
    - Status transitions: MONITORING → INDEXED | TIMEOUT | ERROR | STOPPED
    - History grows by one record per probe
    """

    operation_id: str
    asset_id: str
    metadata: dict[str, Any] = field(default_factory=dict)
    status: JobStatus = field(default=JobStatus.MONITORING)
    attempts: int = field(default=0)
    history: list[PollRecord] = field(default_factory=list)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = field(default=None)
    stop_reason: Optional[str] = field(default=None)
    last_error: Optional[str] = field(default=None)

    def __post_init__(self):
        """Validate job data after initialization."""
        if not self.operation_id:
            raise ValueError("Operation ID is required")

        if not self.asset_id:
            raise ValueError("Asset ID is required")

    @property
    def is_active(self) -> bool:
        """Job still polling."""
        return self.status == JobStatus.MONITORING

    @property
    def elapsed(self) -> float:
        """Seconds since monitoring started (frozen once finished)."""
        end = self.end_time if self.end_time is not None else time.monotonic()
        return end - self.start_time

    def record_poll(
        self,
        indexed: bool,
        response_time: float,
        error: Optional[str] = None,
    ) -> PollRecord:
        """Append a probe outcome to the history."""
        record = PollRecord(
            attempt=self.attempts,
            timestamp=datetime.now(timezone.utc),
            indexed=indexed,
            response_time=response_time,
            error=error,
        )
        self.history.append(record)
        if error:
            self.last_error = error
        return record

    def finish(self, status: JobStatus, reason: Optional[str] = None) -> None:
        """
        Move job to a terminal status.

        Raises:
            ValueError: If job already finished or status is not terminal
        """
        if status == JobStatus.MONITORING:
            raise ValueError("MONITORING is not a terminal status")

        if not self.is_active:
            raise ValueError(f"Cannot finish job in {self.status.value} status")

        self.status = status
        self.stop_reason = reason
        self.end_time = time.monotonic()

    def to_dict(self) -> dict:
        """Convert entity to dictionary representation."""
        return {
            "operation_id": self.operation_id,
            "asset_id": self.asset_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "started_at": self.started_at.isoformat(),
            "elapsed_time": round(self.elapsed, 3),
            "stop_reason": self.stop_reason,
            "last_error": self.last_error,
            "metadata": dict(self.metadata),
            "history": [record.to_dict() for record in self.history],
        }
