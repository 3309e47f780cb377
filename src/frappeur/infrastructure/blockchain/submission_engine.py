"""
Mint submission and confirmation engine.

Per attempt: build -> submit -> poll -> confirmed | duplicate |
retryable | fatal. Retry policy depends on the classified error.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from solders.instruction import Instruction

from frappeur.domain.exceptions import (
    ConfirmationTimeoutError,
    MintAttemptsExhaustedError,
    MintFatalError,
    TransactionFailedError,
)
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.domain.value_objects.chain_error import (
    ChainErrorKind,
    classify_chain_error,
)
from frappeur.domain.value_objects.creators import resolve_creators
from frappeur.domain.value_objects.mint_metadata import Creator, MintMetadata
from frappeur.infrastructure.blockchain.bubblegum import (
    build_mint_to_collection_instruction,
)
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

InstructionBuilder = Callable[
    [str, str, str, str, MintMetadata, Sequence[Creator]], Instruction
]


@dataclass(frozen=True)
class MintSubmission:
    """Outcome of mint_asset."""

    success: bool
    signature: Optional[str]
    elapsed_time: float
    attempts: int
    already_exists: bool = False
    creators: tuple[Creator, ...] = ()


class MintSubmissionEngine:
    """
    Submits Bubblegum mints and waits for finality.

    Error policy per failed attempt (see classify_chain_error):
    - duplicate leaf: success, stop
    - fatal marker: raise MintFatalError, stop
    - last attempt: raise MintAttemptsExhaustedError
    - rate limited: sleep rate_limit_base_delay * 2**attempt
    - stale blockhash: sleep blockhash_retry_delay
    - anything else: sleep retry_delay
    """

    def __init__(
        self,
        chain_client: IChainClient,
        max_attempts: int = 3,
        poll_interval: float = 3.0,
        max_polls: int = 30,
        retry_delay: float = 7.0,
        blockhash_retry_delay: float = 1.0,
        rate_limit_base_delay: float = 1.0,
        fatal_error_markers: Sequence[str] = (),
        skip_preflight: bool = False,
        instruction_builder: Optional[InstructionBuilder] = None,
    ):
        self.chain_client = chain_client
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.retry_delay = retry_delay
        self.blockhash_retry_delay = blockhash_retry_delay
        self.rate_limit_base_delay = rate_limit_base_delay
        self.fatal_error_markers = tuple(fatal_error_markers)
        self.skip_preflight = skip_preflight
        self.instruction_builder = (
            instruction_builder or build_mint_to_collection_instruction
        )

    async def mint_asset(
        self,
        tree_address: str,
        collection_address: str,
        recipient: str,
        metadata: MintMetadata,
        max_attempts: Optional[int] = None,
    ) -> MintSubmission:
        """
        Mint one compressed NFT into a collection.

        Args:
            tree_address: Merkle tree address
            collection_address: Collection mint address
            recipient: Leaf owner
            metadata: Requested metadata (creators may be overridden)
            max_attempts: Attempt budget (defaults to engine setting)

        Returns:
            MintSubmission on confirmation or duplicate leaf

        Raises:
            MintFatalError: Non-retryable chain rejection
            MintAttemptsExhaustedError: Budget spent on retryable errors
        """
        budget = max_attempts or self.max_attempts
        identity = self.chain_client.identity
        creators = resolve_creators(metadata.creators, identity)
        started = time.monotonic()

        for attempt in range(1, budget + 1):
            try:
                # Fresh instruction per attempt; the client fetches a new blockhash
                instruction = self.instruction_builder(
                    tree_address,
                    collection_address,
                    recipient,
                    identity,
                    metadata,
                    creators,
                )
                signature = await self.chain_client.submit_transaction(
                    [instruction], skip_preflight=self.skip_preflight
                )
                logger.info(
                    f"Mint attempt {attempt}/{budget} submitted",
                    extra={"signature": signature, "tree": tree_address},
                )

                await self._await_confirmation(signature)

            except Exception as e:
                classification = classify_chain_error(e, self.fatal_error_markers)
                metrics.mint_attempts_total.labels(
                    outcome=classification.kind.value
                ).inc()

                if classification.kind == ChainErrorKind.DUPLICATE_LEAF:
                    logger.info(
                        "Leaf already exists, treating mint as successful",
                        extra={"tree": tree_address, "attempt": attempt},
                    )
                    return MintSubmission(
                        success=True,
                        signature=None,
                        elapsed_time=time.monotonic() - started,
                        attempts=attempt,
                        already_exists=True,
                        creators=creators,
                    )

                if classification.kind == ChainErrorKind.FATAL:
                    logger.error(
                        f"Mint rejected ({classification.reason}): "
                        f"{classification.message}"
                    )
                    raise MintFatalError(
                        classification.reason, classification.message
                    ) from e

                if attempt >= budget:
                    logger.error(f"Mint failed after {attempt} attempts: {e}")
                    raise MintAttemptsExhaustedError(attempt, e) from e

                delay = self._retry_delay(classification.kind, attempt)
                logger.warning(
                    f"Mint attempt {attempt}/{budget} failed "
                    f"({classification.kind.value}): {e}. "
                    f"Retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            elapsed = time.monotonic() - started
            metrics.mint_attempts_total.labels(outcome="confirmed").inc()
            metrics.mint_confirmation_seconds.observe(elapsed)
            logger.info(
                f"Mint confirmed in {elapsed:.1f}s",
                extra={"signature": signature, "attempts": attempt},
            )
            return MintSubmission(
                success=True,
                signature=signature,
                elapsed_time=elapsed,
                attempts=attempt,
                creators=creators,
            )

        raise MintAttemptsExhaustedError(
            budget, RuntimeError("no attempts were made")
        )

    def _retry_delay(self, kind: ChainErrorKind, attempt: int) -> float:
        if kind == ChainErrorKind.RATE_LIMITED:
            return self.rate_limit_base_delay * (2**attempt)
        if kind == ChainErrorKind.STALE_BLOCK_REFERENCE:
            return self.blockhash_retry_delay
        return self.retry_delay

    async def _await_confirmation(self, signature: str) -> None:
        """
        Poll a signature until confirmed.

        Raises:
            TransactionFailedError: Status reports an on-chain error
            ConfirmationTimeoutError: Not confirmed within max_polls
        """
        for poll in range(1, self.max_polls + 1):
            await asyncio.sleep(self.poll_interval)

            try:
                status = await self.chain_client.get_signature_status(signature)
            except Exception as e:
                logger.warning(
                    f"Status check {poll}/{self.max_polls} failed for "
                    f"{signature}: {e}"
                )
                continue

            if status is None:
                continue

            if status.has_error:
                raise TransactionFailedError(signature, status.err)

            if status.is_confirmed:
                return

        raise ConfirmationTimeoutError(signature, self.max_polls)
