"""Resilience patterns."""

from frappeur.infrastructure.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
)

__all__ = ["BackoffStrategy", "Retry", "RetryConfig", "RetryError"]
