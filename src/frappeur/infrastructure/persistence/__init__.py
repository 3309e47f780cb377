"""Operation persistence."""

from frappeur.infrastructure.persistence.database import Database
from frappeur.infrastructure.persistence.in_memory_operation_store import (
    InMemoryOperationStore,
)
from frappeur.infrastructure.persistence.sqlalchemy_operation_store import (
    SqlAlchemyOperationStore,
)

__all__ = ["Database", "InMemoryOperationStore", "SqlAlchemyOperationStore"]
