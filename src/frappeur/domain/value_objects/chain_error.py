"""
Chain error classification.

Maps upstream failures (RPC errors, HTTP errors, program logs) onto the
small set of outcomes the submission engine branches on. Substring
matching on messages lives here and nowhere else.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from frappeur.domain.exceptions.blockchain import (
    ConfirmationTimeoutError,
    TransactionFailedError,
)

DUPLICATE_LEAF_MARKERS = (
    "leaf already exists",
    "already exists",
)

# Matched against the top-level message only, never program logs
RATE_LIMIT_PATTERN = re.compile(r"\b429\b|too many requests|rate limit")

STALE_BLOCK_MARKERS = (
    "blockhash not found",
    "blockhashnotfound",
    "block height exceeded",
)


class ChainErrorKind(str, Enum):
    """Outcome classes for a failed mint attempt."""

    DUPLICATE_LEAF = "duplicate_leaf"
    RATE_LIMITED = "rate_limited"
    STALE_BLOCK_REFERENCE = "stale_block_reference"
    FATAL = "fatal"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ChainErrorClassification:
    """Classified error with the matched fatal reason, if any."""

    kind: ChainErrorKind
    message: str
    reason: Optional[str] = None

    @property
    def is_retryable(self) -> bool:
        """Whether another attempt may succeed."""
        return self.kind in (
            ChainErrorKind.RATE_LIMITED,
            ChainErrorKind.STALE_BLOCK_REFERENCE,
            ChainErrorKind.UNKNOWN,
        )


def _status_code(error: BaseException) -> Optional[int]:
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    response = getattr(error, "response", None)
    response_status = getattr(response, "status_code", None)
    if isinstance(response_status, int):
        return response_status

    return None


def _error_text(error: BaseException) -> str:
    if isinstance(error, TransactionFailedError):
        # Signature text must not leak into marker matching
        return str(error.error)

    parts = [str(error)]
    details = getattr(error, "details", None)
    if details:
        parts.append(str(details))
    cause = error.__cause__
    if cause is not None:
        parts.append(str(cause))
    return " | ".join(p for p in parts if p)


def classify_chain_error(
    error: BaseException,
    fatal_markers: Sequence[str] = (),
) -> ChainErrorClassification:
    """
    Classify a mint-attempt failure.

    Priority: duplicate leaf, rate limit, stale blockhash, fatal, unknown.

    Args:
        error: Exception raised while submitting or confirming
        fatal_markers: Program error names that must never be retried

    Returns:
        ChainErrorClassification
    """
    if isinstance(error, ConfirmationTimeoutError):
        return ChainErrorClassification(ChainErrorKind.UNKNOWN, str(error))

    message = _error_text(error)
    lowered = message.lower()

    if any(marker in lowered for marker in DUPLICATE_LEAF_MARKERS):
        return ChainErrorClassification(ChainErrorKind.DUPLICATE_LEAF, message)

    if _status_code(error) == 429 or RATE_LIMIT_PATTERN.search(
        str(error).lower()
    ):
        return ChainErrorClassification(ChainErrorKind.RATE_LIMITED, message)

    if any(marker in lowered for marker in STALE_BLOCK_MARKERS):
        return ChainErrorClassification(
            ChainErrorKind.STALE_BLOCK_REFERENCE, message
        )

    for marker in fatal_markers:
        if marker.lower() in lowered:
            return ChainErrorClassification(
                ChainErrorKind.FATAL, message, reason=marker
            )

    return ChainErrorClassification(ChainErrorKind.UNKNOWN, message)
