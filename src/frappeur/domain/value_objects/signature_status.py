"""
SignatureStatus value object - normalized getSignatureStatuses entry.
"""

from dataclasses import dataclass
from typing import Any, Optional

FINAL_CONFIRMATION_LEVELS = ("confirmed", "finalized")


@dataclass(frozen=True)
class SignatureStatus:
    """Status of a submitted transaction as reported by the RPC node."""

    confirmation_status: Optional[str] = None
    err: Optional[Any] = None
    slot: Optional[int] = None

    @property
    def is_confirmed(self) -> bool:
        """Transaction reached confirmed or finalized commitment."""
        return self.confirmation_status in FINAL_CONFIRMATION_LEVELS

    @property
    def has_error(self) -> bool:
        """Transaction landed but failed."""
        return self.err is not None
