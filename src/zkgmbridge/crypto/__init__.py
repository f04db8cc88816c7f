"""
Hashing and address codec for zkgmbridge.
"""

from .addresses import (
    Address,
    ChainKind,
    CosmosDisplay,
    EvmDisplay,
    derive_instantiate2_address,
    derive_intermediate_sender,
    parse_address,
    to_canonical,
    to_display,
    to_zkgm,
    with_prefix,
)
from .hashing import Hash, SHA256Hasher, keccak256

__all__ = [
    "Address",
    "ChainKind",
    "CosmosDisplay",
    "EvmDisplay",
    "parse_address",
    "to_canonical",
    "to_display",
    "to_zkgm",
    "with_prefix",
    "derive_instantiate2_address",
    "derive_intermediate_sender",
    "Hash",
    "SHA256Hasher",
    "keccak256",
]
