"""
Value objects for Frappeur domain.
"""

from frappeur.domain.value_objects.chain_error import (
    ChainErrorClassification,
    ChainErrorKind,
    classify_chain_error,
)
from frappeur.domain.value_objects.creators import (
    CreatorResolution,
    DiffersFromIdentity,
    MatchesIdentity,
    Unspecified,
    classify_creators,
    resolve_creators,
)
from frappeur.domain.value_objects.mint_metadata import Creator, MintMetadata
from frappeur.domain.value_objects.signature_status import SignatureStatus

__all__ = [
    "ChainErrorClassification",
    "ChainErrorKind",
    "classify_chain_error",
    "Creator",
    "CreatorResolution",
    "DiffersFromIdentity",
    "MatchesIdentity",
    "MintMetadata",
    "SignatureStatus",
    "Unspecified",
    "classify_creators",
    "resolve_creators",
]
