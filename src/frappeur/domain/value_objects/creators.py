"""
Creator resolution for minted leaves.

The minting identity always ends up as a verified creator so that no
separate creator-verification transaction is needed. When the requested
creators do not include the identity, the identity replaces them.
"""

from dataclasses import dataclass
from typing import Sequence, Union

from frappeur.domain.value_objects.mint_metadata import Creator


@dataclass(frozen=True)
class MatchesIdentity:
    """Requested creators include the signing identity."""

    creators: tuple[Creator, ...]


@dataclass(frozen=True)
class DiffersFromIdentity:
    """Requested creators exist but none is the signing identity."""

    requested: tuple[Creator, ...]
    identity: str


@dataclass(frozen=True)
class Unspecified:
    """No creators were requested."""

    identity: str


CreatorResolution = Union[MatchesIdentity, DiffersFromIdentity, Unspecified]


def classify_creators(
    requested: Sequence[Creator], identity: str
) -> CreatorResolution:
    """
    Decide which creator branch applies.

    Args:
        requested: Creators supplied by the caller (may be empty)
        identity: Base58 address of the signing identity

    Returns:
        Tagged resolution describing the branch
    """
    if not requested:
        return Unspecified(identity=identity)

    if any(creator.address == identity for creator in requested):
        return MatchesIdentity(creators=tuple(requested))

    return DiffersFromIdentity(requested=tuple(requested), identity=identity)


def _even_shares(count: int) -> list[int]:
    # Shares must sum to exactly 100
    base, remainder = divmod(100, count)
    return [base + (1 if i < remainder else 0) for i in range(count)]


def resolve_creators(
    requested: Sequence[Creator], identity: str
) -> tuple[Creator, ...]:
    """
    Compute the final, verified creator list for a mint.

    Args:
        requested: Creators supplied by the caller (may be empty)
        identity: Base58 address of the signing identity

    Returns:
        Creators to encode into the mint instruction
    """
    resolution = classify_creators(requested, identity)

    if isinstance(resolution, MatchesIdentity):
        creators = resolution.creators
        if sum(c.share for c in creators) == 100:
            shares = [c.share for c in creators]
        else:
            shares = _even_shares(len(creators))
        return tuple(
            Creator(
                address=c.address,
                share=share,
                # Only the signer can be verified inside the mint instruction
                verified=c.address == identity,
            )
            for c, share in zip(creators, shares)
        )

    if isinstance(resolution, DiffersFromIdentity):
        return (Creator(address=resolution.identity, share=100, verified=True),)

    if isinstance(resolution, Unspecified):
        return (Creator(address=resolution.identity, share=100, verified=True),)

    raise TypeError(f"Unhandled creator resolution: {resolution!r}")
