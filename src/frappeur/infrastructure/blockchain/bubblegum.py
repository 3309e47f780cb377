"""
Metaplex Bubblegum helpers.

Program IDs, PDA derivations and the mintToCollectionV1 instruction.
Instruction data is the Anchor discriminator followed by the borsh
encoding of MetadataArgs.
"""

import hashlib
import struct
from typing import Optional, Sequence

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from frappeur.domain.value_objects.mint_metadata import Creator, MintMetadata

BUBBLEGUM_PROGRAM_ID = Pubkey.from_string(
    "BGUMAp9Gq7iTEuizy4pqaxsTyUCBK68MDfK752saRPUY"
)
ACCOUNT_COMPRESSION_PROGRAM_ID = Pubkey.from_string(
    "cmtDvXumGCrqC1Age74AVPhSRVXJMd8PJS91L8KbNCK"
)
NOOP_PROGRAM_ID = Pubkey.from_string("noopb9bkMVfRPU8AsbpTUg8AQkHtKwMYZiFUjNRtMmV")
TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string(
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
)
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

MINT_TO_COLLECTION_V1_DISCRIMINATOR = hashlib.sha256(
    b"global:mint_to_collection_v1"
).digest()[:8]

# TokenStandard::NonFungible
TOKEN_STANDARD_NON_FUNGIBLE = 0
# TokenProgramVersion::Original
TOKEN_PROGRAM_VERSION_ORIGINAL = 0


def to_pubkey(address) -> Pubkey:
    """Coerce a base58 string (or Pubkey) into a Pubkey."""
    if isinstance(address, Pubkey):
        return address
    return Pubkey.from_string(address)


def is_valid_address(address: Optional[str]) -> bool:
    """Check that a string is a base58-encoded 32-byte public key."""
    if not address:
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


# ================================================================
# PDA derivations
# ================================================================


def derive_tree_config(tree_address) -> Pubkey:
    """TreeConfig PDA holding num_minted for a Merkle tree."""
    pda, _ = Pubkey.find_program_address(
        [bytes(to_pubkey(tree_address))], BUBBLEGUM_PROGRAM_ID
    )
    return pda


def derive_bubblegum_signer() -> Pubkey:
    """PDA Bubblegum signs collection CPIs with."""
    pda, _ = Pubkey.find_program_address([b"collection_cpi"], BUBBLEGUM_PROGRAM_ID)
    return pda


def derive_metadata_account(mint_address) -> Pubkey:
    """Token Metadata account of a mint."""
    pda, _ = Pubkey.find_program_address(
        [
            b"metadata",
            bytes(TOKEN_METADATA_PROGRAM_ID),
            bytes(to_pubkey(mint_address)),
        ],
        TOKEN_METADATA_PROGRAM_ID,
    )
    return pda


def derive_master_edition(mint_address) -> Pubkey:
    """Master edition account of a mint."""
    pda, _ = Pubkey.find_program_address(
        [
            b"metadata",
            bytes(TOKEN_METADATA_PROGRAM_ID),
            bytes(to_pubkey(mint_address)),
            b"edition",
        ],
        TOKEN_METADATA_PROGRAM_ID,
    )
    return pda


def derive_asset_id(tree_address: str, leaf_index: int) -> str:
    """
    Canonical compressed asset ID.

    Args:
        tree_address: Merkle tree address (base58)
        leaf_index: Zero-based leaf position

    Returns:
        Asset ID (base58)
    """
    if leaf_index < 0:
        raise ValueError(f"Leaf index must be non-negative, got {leaf_index}")

    pda, _ = Pubkey.find_program_address(
        [
            b"asset",
            bytes(to_pubkey(tree_address)),
            struct.pack("<Q", leaf_index),
        ],
        BUBBLEGUM_PROGRAM_ID,
    )
    return str(pda)


# ================================================================
# Borsh encoding
# ================================================================


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def _borsh_bool(value: bool) -> bytes:
    return struct.pack("<?", value)


def encode_metadata_args(
    metadata: MintMetadata,
    creators: Sequence[Creator],
    collection_address,
    is_mutable: bool = True,
) -> bytes:
    """
    Borsh-encode Bubblegum MetadataArgs.

    Args:
        metadata: Requested metadata
        creators: Final creator list (already resolved)
        collection_address: Collection mint the leaf belongs to
        is_mutable: Whether metadata can be updated later

    Returns:
        Encoded bytes
    """
    data = bytearray()
    data += _borsh_string(metadata.name)
    data += _borsh_string(metadata.symbol)
    data += _borsh_string(metadata.uri)
    data += struct.pack("<H", metadata.seller_fee_basis_points)
    data += _borsh_bool(False)  # primary_sale_happened
    data += _borsh_bool(is_mutable)
    data += b"\x00"  # edition_nonce: None
    data += b"\x01" + struct.pack("<B", TOKEN_STANDARD_NON_FUNGIBLE)
    # collection: Some({verified: false, key}); the program verifies it
    data += b"\x01" + _borsh_bool(False) + bytes(to_pubkey(collection_address))
    data += b"\x00"  # uses: None
    data += struct.pack("<B", TOKEN_PROGRAM_VERSION_ORIGINAL)
    data += struct.pack("<I", len(creators))
    for creator in creators:
        data += bytes(to_pubkey(creator.address))
        data += _borsh_bool(creator.verified)
        data += struct.pack("<B", creator.share)
    return bytes(data)


def build_mint_to_collection_instruction(
    tree_address: str,
    collection_address: str,
    recipient: str,
    payer: str,
    metadata: MintMetadata,
    creators: Sequence[Creator],
) -> Instruction:
    """
    Build a Bubblegum mintToCollectionV1 instruction.

    The payer doubles as tree delegate and collection update authority.

    Args:
        tree_address: Merkle tree address
        collection_address: Verified collection mint
        recipient: Leaf owner (also leaf delegate)
        payer: Signing identity
        metadata: Requested metadata
        creators: Final creator list

    Returns:
        solders Instruction
    """
    tree = to_pubkey(tree_address)
    collection_mint = to_pubkey(collection_address)
    owner = to_pubkey(recipient)
    authority = to_pubkey(payer)

    accounts = [
        AccountMeta(derive_tree_config(tree), is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(tree, is_signer=False, is_writable=True),
        AccountMeta(authority, is_signer=True, is_writable=True),
        AccountMeta(authority, is_signer=True, is_writable=False),
        AccountMeta(authority, is_signer=True, is_writable=False),
        # No collection authority record: the program ID stands in for None
        AccountMeta(BUBBLEGUM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(collection_mint, is_signer=False, is_writable=False),
        AccountMeta(
            derive_metadata_account(collection_mint),
            is_signer=False,
            is_writable=True,
        ),
        AccountMeta(
            derive_master_edition(collection_mint),
            is_signer=False,
            is_writable=False,
        ),
        AccountMeta(derive_bubblegum_signer(), is_signer=False, is_writable=False),
        AccountMeta(NOOP_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(
            ACCOUNT_COMPRESSION_PROGRAM_ID, is_signer=False, is_writable=False
        ),
        AccountMeta(TOKEN_METADATA_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]

    data = MINT_TO_COLLECTION_V1_DISCRIMINATOR + encode_metadata_args(
        metadata, creators, collection_mint
    )

    return Instruction(BUBBLEGUM_PROGRAM_ID, data, accounts)
