"""Repository interfaces."""

from frappeur.domain.repositories.i_operation_store import IOperationStore

__all__ = ["IOperationStore"]
