"""
Blockchain-related exceptions.

Defines exceptions raised by the chain client, the read-index and the
mint submission engine.
"""

from typing import Optional

from frappeur.domain.exceptions.base import FrappeurException


class BlockchainError(FrappeurException):
    """Base exception for blockchain operations."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        code: str | None = None,
    ):
        super().__init__(message, code=code or "BLOCKCHAIN_ERROR")
        self.details = details or {}


class ChainConnectionError(BlockchainError):
    """Raised when no candidate RPC endpoint responds."""

    def __init__(self, failures: list[tuple[str, str]]):
        """
        Initialize connection error.

        Args:
            failures: (endpoint, reason) pairs for every attempted endpoint
        """
        summary = "; ".join(f"{url}: {reason}" for url, reason in failures)
        super().__init__(
            f"No RPC endpoint reachable ({summary})",
            details={"endpoints": [url for url, _ in failures]},
            code="CHAIN_UNAVAILABLE",
        )
        self.failures = failures


class RPCError(BlockchainError):
    """Raised when an RPC call fails (transport or node error)."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details=details, code="RPC_ERROR")
        self.status_code = status_code


class ReadIndexError(BlockchainError):
    """Raised when the DAS read-index returns a JSON-RPC error object."""

    def __init__(self, method: str, error: dict):
        message = error.get("message") or str(error)
        super().__init__(
            f"{method} failed: {message}",
            details={"method": method, "error": error},
            code="READ_INDEX_ERROR",
        )
        self.method = method
        self.error = error

    @property
    def is_not_found(self) -> bool:
        """True when the index simply does not know the asset (yet)."""
        return "not found" in str(self.error.get("message", "")).lower()


class TransactionFailedError(BlockchainError):
    """Raised when a submitted transaction reports an on-chain error."""

    def __init__(self, signature: str, error):
        super().__init__(
            f"Transaction {signature} failed on-chain: {error}",
            details={"signature": signature, "error": str(error)},
            code="TRANSACTION_FAILED",
        )
        self.signature = signature
        self.error = error


class ConfirmationTimeoutError(BlockchainError):
    """Raised when a signature is not confirmed within the polling budget."""

    def __init__(self, signature: str, polls: int):
        super().__init__(
            f"Transaction {signature} not confirmed after {polls} status checks",
            details={"signature": signature, "polls": polls},
            code="CONFIRMATION_TIMEOUT",
        )
        self.signature = signature
        self.polls = polls


class MintFatalError(BlockchainError):
    """Raised when the chain rejects a mint with a non-retryable error."""

    def __init__(self, reason: str, message: str):
        super().__init__(
            message,
            details={"reason": reason},
            code="MINT_FATAL",
        )
        self.reason = reason


class MintAttemptsExhaustedError(BlockchainError):
    """Raised when every mint attempt failed with retryable errors."""

    def __init__(self, attempts: int, last_error: Exception):
        super().__init__(
            f"Mint failed after {attempts} attempts: {last_error}",
            details={"attempts": attempts, "last_error": str(last_error)},
            code="MINT_ATTEMPTS_EXHAUSTED",
        )
        self.attempts = attempts
        self.last_error = last_error
