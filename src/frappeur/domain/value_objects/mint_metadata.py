"""
MintMetadata value object - requested on-chain metadata for one leaf.
"""

from dataclasses import dataclass, field
from typing import Optional

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_BASIS_POINTS = 10_000


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


@dataclass(frozen=True)
class Creator:
    """Creator entry of the Metaplex metadata."""

    address: str
    share: int
    verified: bool = False

    def __post_init__(self):
        """Validate creator share."""
        if not self.address:
            raise ValueError("Creator address is required")

        if not 0 <= self.share <= 100:
            raise ValueError(f"Creator share must be 0-100, got {self.share}")

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "address": self.address,
            "share": self.share,
            "verified": self.verified,
        }


@dataclass(frozen=True)
class MintMetadata:
    """
    Value object holding the metadata requested for a compressed NFT.

    Business rules:
    - Name and URI are required
    - Royalties are expressed in basis points (0-10000)
    - Creators are optional; the final list is decided at mint time
    """

    name: str
    uri: str
    symbol: str = ""
    seller_fee_basis_points: int = 0
    creators: tuple[Creator, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate metadata on creation."""
        if not self.name:
            raise ValueError("Metadata name is required")

        if not self.uri:
            raise ValueError("Metadata uri is required")

        # On-chain limits count UTF-8 bytes
        if _byte_length(self.name) > MAX_NAME_LENGTH:
            raise ValueError(f"Metadata name exceeds {MAX_NAME_LENGTH} bytes")

        if _byte_length(self.symbol) > MAX_SYMBOL_LENGTH:
            raise ValueError(f"Metadata symbol exceeds {MAX_SYMBOL_LENGTH} bytes")

        if _byte_length(self.uri) > MAX_URI_LENGTH:
            raise ValueError(f"Metadata uri exceeds {MAX_URI_LENGTH} bytes")

        if not 0 <= self.seller_fee_basis_points <= MAX_BASIS_POINTS:
            raise ValueError(
                "seller_fee_basis_points must be between 0 and "
                f"{MAX_BASIS_POINTS}"
            )

    @classmethod
    def from_dict(
        cls, data: dict, default_basis_points: Optional[int] = None
    ) -> "MintMetadata":
        """
        Build metadata from a request payload.

        Accepts both snake_case and camelCase royalty keys.
        """
        basis_points = data.get(
            "seller_fee_basis_points", data.get("sellerFeeBasisPoints")
        )
        if basis_points is None:
            basis_points = default_basis_points or 0

        creators = tuple(
            Creator(
                address=c["address"],
                share=int(c.get("share", 0)),
                verified=bool(c.get("verified", False)),
            )
            for c in data.get("creators") or []
        )

        return cls(
            name=data.get("name") or "",
            uri=data.get("uri") or "",
            symbol=data.get("symbol") or "",
            seller_fee_basis_points=int(basis_points),
            creators=creators,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "uri": self.uri,
            "seller_fee_basis_points": self.seller_fee_basis_points,
            "creators": [c.to_dict() for c in self.creators],
        }
