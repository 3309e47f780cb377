"""
API schemas for mint operations.

Request and response models for mint endpoints. Business validation
(name length, royalties, addresses) happens in the domain layer.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class CreatorSchema(BaseModel):
    """Requested creator entry."""

    address: str = Field(..., description="Creator wallet address")
    share: int = Field(..., ge=0, le=100, description="Royalty share (%)")
    verified: bool = Field(default=False)


class MintMetadataSchema(BaseModel):
    """Metadata requested for one compressed NFT."""

    name: str = Field(..., description="NFT name", examples=["Ticket #1"])
    uri: str = Field(
        ...,
        description="Off-chain JSON metadata URI",
        examples=["https://arweave.net/abc123"],
    )
    symbol: str = Field(default="", description="Symbol (collection's if empty)")
    seller_fee_basis_points: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "seller_fee_basis_points", "sellerFeeBasisPoints"
        ),
        description="Royalties in basis points (collection default if omitted)",
    )
    creators: list[CreatorSchema] = Field(default_factory=list)


class MintSingleRequest(BaseModel):
    """Request schema for a single mint."""

    collection_id: str = Field(..., description="Configured collection ID")
    recipient: Optional[str] = Field(
        default=None,
        description="Leaf owner (configured default recipient if omitted)",
    )
    metadata: MintMetadataSchema


class BatchItemRequest(BaseModel):
    """One entry of a batch mint."""

    recipient: Optional[str] = Field(default=None)
    metadata: MintMetadataSchema


class MintBatchRequest(BaseModel):
    """Request schema for a batch mint."""

    collection_id: str = Field(..., description="Configured collection ID")
    items: list[BatchItemRequest] = Field(..., min_length=1)


class MintAcceptedResponse(BaseModel):
    """Response schema for an accepted mint request."""

    operation_id: str = Field(..., description="Operation ID to poll")
    status: str = Field(..., examples=["processing"])
    type: str = Field(..., examples=["single"])
    total_items: int = Field(default=1)
    status_url: str = Field(..., description="Where to poll for progress")
