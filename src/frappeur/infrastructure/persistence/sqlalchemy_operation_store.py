"""
MintOperation store implementation using SQLAlchemy.
"""

from typing import Any, Optional

from sqlalchemy import select

from frappeur.domain.entities.mint_operation import MintOperation, utcnow
from frappeur.domain.repositories.i_operation_store import IOperationStore
from frappeur.infrastructure.persistence.database import Database
from frappeur.infrastructure.persistence.models import MintOperationModel


class SqlAlchemyOperationStore(IOperationStore):
    """
    SQLAlchemy implementation of the operation store.

    Each call runs in its own session; the store outlives requests.
    """

    def __init__(self, database: Database):
        """
        Initialize store with a connected database.

        Args:
            database: Database connection manager
        """
        self.database = database

    async def save(self, operation: MintOperation) -> None:
        """
        Insert or replace an operation snapshot.

        Args:
            operation: MintOperation entity to persist
        """
        async with self.database.session() as session:
            model = await session.get(MintOperationModel, operation.id)
            if model is None:
                model = MintOperationModel(
                    id=operation.id,
                    created_at=operation.created_at,
                )
                session.add(model)
            self._copy_to_model(operation, model)

    async def update(self, operation_id: str, fields: dict[str, Any]) -> bool:
        """
        Apply a partial update to a stored operation.

        Returns:
            True if the operation existed and was updated
        """
        async with self.database.session() as session:
            model = await session.get(
                MintOperationModel, operation_id, with_for_update=True
            )
            if model is None:
                return False

            operation = MintOperation.from_dict(model.payload)
            operation.apply_updates(fields)
            self._copy_to_model(operation, model)
            return True

    async def get(self, operation_id: str) -> Optional[MintOperation]:
        async with self.database.session() as session:
            model = await session.get(MintOperationModel, operation_id)
            return self._to_entity(model) if model else None

    async def list_operations(
        self,
        status: Optional[str] = None,
        operation_type: Optional[str] = None,
        collection_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[MintOperation]:
        stmt = select(MintOperationModel)
        if status is not None:
            stmt = stmt.where(MintOperationModel.status == status)
        if operation_type is not None:
            stmt = stmt.where(MintOperationModel.type == operation_type)
        if collection_id is not None:
            stmt = stmt.where(MintOperationModel.collection_id == collection_id)
        stmt = stmt.order_by(MintOperationModel.created_at.desc()).limit(limit)

        async with self.database.session() as session:
            result = await session.execute(stmt)
            models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    @staticmethod
    def _copy_to_model(
        operation: MintOperation, model: MintOperationModel
    ) -> None:
        model.type = operation.type.value
        model.status = operation.status.value
        model.collection_id = operation.collection_id
        model.indexing_status = operation.indexing_status.value
        model.payload = operation.to_dict()
        model.updated_at = utcnow()

    @staticmethod
    def _to_entity(model: MintOperationModel) -> MintOperation:
        return MintOperation.from_dict(model.payload)
