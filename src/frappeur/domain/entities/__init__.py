"""
Domain entities for Frappeur.
"""

from frappeur.domain.entities.collection import Collection, CollectionStatus
from frappeur.domain.entities.mint_operation import (
    BatchItem,
    IndexingStatus,
    MintOperation,
    MintResult,
    OperationStatus,
    OperationType,
)
from frappeur.domain.entities.monitoring_job import (
    JobStatus,
    MonitoringJob,
    PollRecord,
)
from frappeur.domain.entities.webhook_registration import (
    DEFAULT_WEBHOOK_EVENTS,
    WebhookRegistration,
)

__all__ = [
    "BatchItem",
    "Collection",
    "CollectionStatus",
    "DEFAULT_WEBHOOK_EVENTS",
    "IndexingStatus",
    "JobStatus",
    "MintOperation",
    "MintResult",
    "MonitoringJob",
    "OperationStatus",
    "OperationType",
    "PollRecord",
    "WebhookRegistration",
]
