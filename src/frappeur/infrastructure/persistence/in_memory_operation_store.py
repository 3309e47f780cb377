"""
In-memory operation store.

Default store when no database_url is configured. Operations do not
survive a restart.
"""

import asyncio
import copy
from typing import Any, Optional

from frappeur.domain.entities.mint_operation import MintOperation
from frappeur.domain.repositories.i_operation_store import IOperationStore


class InMemoryOperationStore(IOperationStore):
    """
    Dict-backed IOperationStore.

    Stores and returns deep copies so callers never share mutable state
    with the store.
    """

    def __init__(self):
        self._operations: dict[str, MintOperation] = {}
        self._lock = asyncio.Lock()

    async def save(self, operation: MintOperation) -> None:
        async with self._lock:
            self._operations[operation.id] = copy.deepcopy(operation)

    async def update(self, operation_id: str, fields: dict[str, Any]) -> bool:
        async with self._lock:
            operation = self._operations.get(operation_id)
            if operation is None:
                return False
            operation.apply_updates(copy.deepcopy(fields))
            return True

    async def get(self, operation_id: str) -> Optional[MintOperation]:
        async with self._lock:
            operation = self._operations.get(operation_id)
            return copy.deepcopy(operation) if operation else None

    async def list_operations(
        self,
        status: Optional[str] = None,
        operation_type: Optional[str] = None,
        collection_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[MintOperation]:
        async with self._lock:
            operations = [
                op
                for op in self._operations.values()
                if (status is None or op.status.value == status)
                and (operation_type is None or op.type.value == operation_type)
                and (collection_id is None or op.collection_id == collection_id)
            ]
        operations.sort(key=lambda op: op.created_at, reverse=True)
        return [copy.deepcopy(op) for op in operations[:limit]]
