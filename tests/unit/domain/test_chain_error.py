"""
Unit tests for chain error classification.

Usage:
    pytest tests/unit/domain/test_chain_error.py
"""

import httpx

from frappeur.domain.exceptions import (
    ConfirmationTimeoutError,
    RPCError,
    TransactionFailedError,
)
from frappeur.domain.value_objects.chain_error import (
    ChainErrorKind,
    classify_chain_error,
)

FATAL_MARKERS = ("CollectionNotFound", "insufficient funds")


class TestClassifyChainError:
    """Unit tests for classify_chain_error."""

    # ================================================================
    # Branches
    # ================================================================

    def test_duplicate_leaf(self):
        """Test 'already exists' classifies as duplicate leaf."""
        error = RPCError("sendTransaction failed: Leaf already exists")

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.DUPLICATE_LEAF
        assert not result.is_retryable

    def test_rate_limited_by_status_code(self):
        """Test HTTP 429 status code classifies as rate limited."""
        error = RPCError("sendTransaction failed", status_code=429)

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.RATE_LIMITED
        assert result.is_retryable

    def test_rate_limited_by_httpx_response(self):
        """Test 429 carried on an httpx response is detected."""
        request = httpx.Request("POST", "https://rpc.test")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("boom", request=request, response=response)

        result = classify_chain_error(error)

        assert result.kind == ChainErrorKind.RATE_LIMITED

    def test_rate_limited_by_message(self):
        """Test 'Too Many Requests' text classifies as rate limited."""
        result = classify_chain_error(RuntimeError("Too Many Requests"))

        assert result.kind == ChainErrorKind.RATE_LIMITED

    def test_stale_blockhash(self):
        """Test 'Blockhash not found' classifies as stale block reference."""
        error = RPCError("sendTransaction failed: Blockhash not found")

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.STALE_BLOCK_REFERENCE
        assert result.is_retryable

    def test_fatal_marker(self):
        """Test configured program error marker classifies as fatal."""
        error = RPCError(
            "sendTransaction failed: custom program error",
            details={"logs": ["Program log: Error: CollectionNotFound"]},
        )

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.FATAL
        assert result.reason == "CollectionNotFound"
        assert not result.is_retryable

    def test_fatal_marker_is_case_insensitive(self):
        """Test fatal markers match regardless of case."""
        error = RuntimeError("Transfer: INSUFFICIENT FUNDS for rent")

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.FATAL

    def test_unknown(self):
        """Test unrecognized errors classify as unknown and retryable."""
        result = classify_chain_error(RuntimeError("socket hang up"), FATAL_MARKERS)

        assert result.kind == ChainErrorKind.UNKNOWN
        assert result.is_retryable

    def test_confirmation_timeout_is_unknown(self):
        """Test confirmation timeout is retried as unknown."""
        error = ConfirmationTimeoutError("sig", polls=30)

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.UNKNOWN

    # ================================================================
    # Priority
    # ================================================================

    def test_duplicate_wins_over_rate_limit(self):
        """Test duplicate leaf has priority over rate limit markers."""
        error = RPCError("429: leaf already exists", status_code=429)

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.DUPLICATE_LEAF

    def test_rate_limit_wins_over_fatal(self):
        """Test rate limit has priority over fatal markers."""
        error = RPCError("CollectionNotFound (rate limit)", status_code=None)

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.RATE_LIMITED

    def test_transaction_failure_ignores_signature_text(self):
        """Test on-chain failure classifies on the error, not the signature."""
        error = TransactionFailedError("429abc", {"InstructionError": [0, "x"]})

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.UNKNOWN

    # ================================================================
    # Program logs
    # ================================================================

    def test_fatal_log_next_to_429_compute_units(self):
        """Test a 429 inside program logs does not mask a fatal error."""
        error = RPCError(
            "sendTransaction failed: Transaction simulation failed",
            details={
                "logs": [
                    "Program log: AnchorError occurred. "
                    "Error Code: CollectionNotFound.",
                    "Program BGUMAp9Gq7iTEuizy4pqaxsTyUCBK68MDfK752saRPUY "
                    "consumed 14290 of 200000 compute units",
                ]
            },
        )

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.FATAL
        assert result.reason == "CollectionNotFound"

    def test_rate_limit_text_in_logs_ignored(self):
        """Test rate limit markers are only read from the top-level message."""
        error = RPCError(
            "sendTransaction failed",
            details={"logs": ["Program log: rate limit 429 reached"]},
        )

        result = classify_chain_error(error, FATAL_MARKERS)

        assert result.kind == ChainErrorKind.UNKNOWN

    def test_429_must_be_a_whole_number(self):
        """Test digits embedded in a longer number are not a status code."""
        result = classify_chain_error(RuntimeError("slot 84291 not available"))

        assert result.kind == ChainErrorKind.UNKNOWN

    def test_429_in_message_is_rate_limited(self):
        """Test a standalone 429 in the message still counts."""
        result = classify_chain_error(RuntimeError("HTTP 429 from upstream"))

        assert result.kind == ChainErrorKind.RATE_LIMITED
