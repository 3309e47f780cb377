"""
Domain exceptions package.
"""

# Base exceptions
from frappeur.domain.exceptions.base import (
    CollectionNotFoundError,
    EntityNotFoundError,
    FrappeurException,
    MintNotAllowedError,
    OperationNotFoundError,
    ValidationError,
    WebhookNotFoundError,
)

# Blockchain exceptions
from frappeur.domain.exceptions.blockchain import (
    BlockchainError,
    ChainConnectionError,
    ConfirmationTimeoutError,
    MintAttemptsExhaustedError,
    MintFatalError,
    ReadIndexError,
    RPCError,
    TransactionFailedError,
)

__all__ = [
    # Base
    "FrappeurException",
    "EntityNotFoundError",
    "OperationNotFoundError",
    "CollectionNotFoundError",
    "WebhookNotFoundError",
    "ValidationError",
    "MintNotAllowedError",
    # Blockchain
    "BlockchainError",
    "ChainConnectionError",
    "RPCError",
    "ReadIndexError",
    "TransactionFailedError",
    "ConfirmationTimeoutError",
    "MintFatalError",
    "MintAttemptsExhaustedError",
]
