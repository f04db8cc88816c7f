"""
Hash functions and utilities for zkgmbridge.

SHA-256 drives Cosmos address derivation; keccak-256 drives EVM-side
identifiers such as packet hashes and proxy salts.
"""

import hashlib
from dataclasses import dataclass
from typing import Union

from eth_utils import keccak


@dataclass(frozen=True)
class Hash:
    """Immutable 32-byte hash value with comparison and string representation."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != 32:
            raise ValueError("Hash must be exactly 32 bytes")

    def __str__(self) -> str:
        return self.value.hex()

    def __repr__(self) -> str:
        return f"Hash('{self.value.hex()}')"

    def __lt__(self, other: "Hash") -> bool:
        return self.value < other.value

    @classmethod
    def from_hex(cls, hex_string: str) -> "Hash":
        """Create a Hash from a hexadecimal string, with or without 0x."""
        if hex_string.startswith(("0x", "0X")):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> "Hash":
        """Create a zero hash (all zeros)."""
        return cls(b"\x00" * 32)

    def to_hex(self, prefix: bool = True) -> str:
        """Convert hash to hexadecimal string."""
        return ("0x" if prefix else "") + self.value.hex()

    def to_int(self) -> int:
        """Convert hash to integer (big-endian)."""
        return int.from_bytes(self.value, byteorder="big")


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class SHA256Hasher:
    """SHA-256 hasher with Cosmos-specific utilities."""

    @staticmethod
    def hash(data: Union[bytes, str]) -> Hash:
        """
        Hash data using SHA-256.

        Args:
            data: Data to hash (bytes or string)

        Returns:
            Hash object containing the SHA-256 hash
        """
        return Hash(hashlib.sha256(_to_bytes(data)).digest())

    @staticmethod
    def address_hash(typ: Union[bytes, str], key: Union[bytes, str]) -> Hash:
        """
        Cosmos SDK typed address hash: ``sha256(sha256(typ) ++ key)``.

        Args:
            typ: Address type tag, e.g. ``"module"``
            key: Derivation key

        Returns:
            Hash of the typed key
        """
        typ_hash = hashlib.sha256(_to_bytes(typ)).digest()
        return Hash(hashlib.sha256(typ_hash + _to_bytes(key)).digest())


def keccak256(data: Union[bytes, str]) -> Hash:
    """Keccak-256 (the Ethereum variant, not NIST SHA3-256)."""
    return Hash(keccak(_to_bytes(data)))
