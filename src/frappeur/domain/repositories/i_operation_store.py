"""
Operation store interface.

Defines durable persistence for MintOperation snapshots.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from frappeur.domain.entities.mint_operation import MintOperation


class IOperationStore(ABC):
    """
    Abstract interface for mint operation persistence.

    Callers treat every failure as non-fatal: errors are logged and the
    mint pipeline carries on.
    """

    @abstractmethod
    async def save(self, operation: MintOperation) -> None:
        """
        Insert or replace an operation snapshot.

        Args:
            operation: MintOperation entity to persist
        """

    @abstractmethod
    async def update(self, operation_id: str, fields: dict[str, Any]) -> bool:
        """
        Apply a partial update to a stored operation.

        Args:
            operation_id: Operation identifier
            fields: MintOperation attribute names mapped to new values

        Returns:
            True if the operation existed and was updated
        """

    @abstractmethod
    async def get(self, operation_id: str) -> Optional[MintOperation]:
        """
        Retrieve an operation snapshot.

        Args:
            operation_id: Operation identifier

        Returns:
            MintOperation if found, None otherwise
        """

    @abstractmethod
    async def list_operations(
        self,
        status: Optional[str] = None,
        operation_type: Optional[str] = None,
        collection_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[MintOperation]:
        """
        List operations, newest first.

        Args:
            status: Optional status filter
            operation_type: Optional type filter (single/batch)
            collection_id: Optional collection filter
            limit: Maximum number of operations to return

        Returns:
            List of MintOperation entities
        """
