"""
Address codec for zkgmbridge.

Converts between the display forms of Cosmos (bech32) and EVM (hex)
accounts and their canonical bytes, and derives the deterministic
addresses the hub chain computes on its side:

- CosmWasm ``instantiate2`` contract addresses (used for ZKGM proxies)
- ibc-hooks intermediate senders (the account that executes a memo)

A one-byte mistake in any of these produces a valid-looking but wrong
address, so every width and prefix is checked.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from bech32 import bech32_decode, bech32_encode, convertbits
from eth_utils import to_checksum_address

from ..errors import AddressDerivationError, DecodeError
from .hashing import SHA256Hasher

HEX_PREFIXES = ("0x", "0X")

EVM_ADDRESS_LENGTH = 20
COSMOS_ADDRESS_LENGTHS = (20, 32)

WASM_MODULE_NAME = b"wasm"
IBC_HOOKS_SENDER_PREFIX = "ibc-wasm-hook-intermediary"

# CosmWasm limits instantiate2 salts to 1..64 bytes
MAX_SALT_LENGTH = 64


class ChainKind(Enum):
    """Execution environment of a chain."""

    COSMOS = "cosmos"
    EVM = "evm"


@dataclass(frozen=True)
class CosmosDisplay:
    """Bech32 account or contract address."""

    address: str

    @property
    def kind(self) -> ChainKind:
        return ChainKind.COSMOS

    @property
    def prefix(self) -> str:
        """Human-readable part of the address."""
        return self.address[: self.address.rfind("1")].lower()

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class EvmDisplay:
    """Hex EVM account or contract address."""

    address: str

    @property
    def kind(self) -> ChainKind:
        return ChainKind.EVM

    def __str__(self) -> str:
        return self.address


Address = Union[CosmosDisplay, EvmDisplay]


def parse_address(address: str) -> Address:
    """Wrap a raw address string in its display type."""
    if address.startswith(HEX_PREFIXES):
        return EvmDisplay(address)
    return CosmosDisplay(address)


def _decode_bech32(address: str) -> Tuple[str, bytes]:
    decoded = bech32_decode(address)
    hrp, data = decoded[0], decoded[1]
    if hrp is None or data is None:
        raise DecodeError(
            f"Invalid bech32 address: {address}", field="address", value=address
        )
    raw = convertbits(data, 5, 8, False)
    if raw is None:
        raise DecodeError(
            f"Invalid bech32 padding: {address}", field="address", value=address
        )
    return hrp, bytes(raw)


def _decode_evm(address: str) -> bytes:
    body = address[2:] if address.startswith(HEX_PREFIXES) else None
    if body is None or len(body) != EVM_ADDRESS_LENGTH * 2:
        raise DecodeError(
            f"EVM address must be 0x followed by 40 hex characters: {address}",
            field="address",
            value=address,
        )
    try:
        raw = bytes.fromhex(body)
    except ValueError:
        raise DecodeError(
            f"EVM address is not hex: {address}", field="address", value=address
        ) from None

    # Mixed case means the address carries an ERC-55 checksum
    if body != body.lower() and body != body.upper():
        if to_checksum_address(raw) != "0x" + body:
            raise DecodeError(
                f"Invalid EVM address checksum: {address}",
                field="address",
                value=address,
            )
    return raw


def to_canonical(display: Address, expected_prefix: Optional[str] = None) -> bytes:
    """
    Decode a display address into its canonical bytes.

    Args:
        display: Cosmos or EVM display address
        expected_prefix: Bech32 prefix the address must carry (Cosmos only)

    Returns:
        Canonical account bytes

    Raises:
        DecodeError: Wrong prefix, bad checksum or wrong byte length
    """
    if isinstance(display, EvmDisplay):
        return _decode_evm(display.address)

    if isinstance(display, CosmosDisplay):
        hrp, raw = _decode_bech32(display.address)
        if expected_prefix is not None and hrp != expected_prefix:
            raise DecodeError(
                f"Expected prefix '{expected_prefix}', got '{hrp}'",
                field="address",
                value=display.address,
            )
        if len(raw) not in COSMOS_ADDRESS_LENGTHS:
            raise DecodeError(
                f"Cosmos address must be 20 or 32 bytes, got {len(raw)}",
                field="address",
                value=display.address,
            )
        return raw

    raise TypeError(f"Not an address: {display!r}")


def to_display(
    canonical: bytes, kind: ChainKind, prefix: Optional[str] = None
) -> Address:
    """
    Encode canonical bytes into the display form of ``kind``.

    Raises:
        DecodeError: Width does not match the chain kind, or no prefix
            was given for a Cosmos address
    """
    canonical = bytes(canonical)

    if kind is ChainKind.EVM:
        if len(canonical) != EVM_ADDRESS_LENGTH:
            raise DecodeError(
                f"EVM address must be 20 bytes, got {len(canonical)}",
                field="canonical",
                value=canonical.hex(),
            )
        return EvmDisplay(to_checksum_address(canonical))

    if not prefix:
        raise DecodeError("A bech32 prefix is required for Cosmos addresses")
    if len(canonical) not in COSMOS_ADDRESS_LENGTHS:
        raise DecodeError(
            f"Cosmos address must be 20 or 32 bytes, got {len(canonical)}",
            field="canonical",
            value=canonical.hex(),
        )
    return CosmosDisplay(bech32_encode(prefix, convertbits(canonical, 8, 5, True)))


def to_zkgm(display: Address) -> bytes:
    """
    Bytes used for an address inside ZKGM operands.

    EVM addresses are their 20 raw bytes; Cosmos addresses are the UTF-8
    bytes of the bech32 string, which is what CosmWasm contracts read back.
    """
    canonical = to_canonical(display)
    if isinstance(display, EvmDisplay):
        return canonical
    return display.address.encode("utf-8")


def with_prefix(display: CosmosDisplay, prefix: str) -> CosmosDisplay:
    """Re-encode a Cosmos address under another chain's prefix."""
    canonical = to_canonical(display)
    return to_display(canonical, ChainKind.COSMOS, prefix)


def _length_prefixed(data: bytes) -> bytes:
    return len(data).to_bytes(8, "big") + data


def derive_instantiate2_address(
    module_hash: bytes,
    checksum: bytes,
    creator: bytes,
    salt: bytes,
    prefix: str,
    init_msg: bytes = b"",
) -> CosmosDisplay:
    """
    Predict a CosmWasm ``instantiate2`` contract address.

    The preimage is ``module_hash ++ "wasm" ++ 0x00`` followed by the
    checksum, creator, salt and init message, each prefixed with its
    length as a big-endian u64. The address is its SHA-256.

    Args:
        module_hash: ``sha256("module")``
        checksum: Code checksum of the contract to instantiate
        creator: Canonical bytes of the instantiating contract
        salt: Instantiation salt
        prefix: Bech32 prefix of the chain
        init_msg: Init message bound into the address (usually empty)

    Raises:
        AddressDerivationError: Input widths are not acceptable
    """
    if len(module_hash) != 32:
        raise AddressDerivationError(
            f"Module hash must be 32 bytes, got {len(module_hash)}",
            algorithm="instantiate2",
        )
    if len(checksum) != 32:
        raise AddressDerivationError(
            f"Code checksum must be 32 bytes, got {len(checksum)}",
            algorithm="instantiate2",
        )
    if not creator:
        raise AddressDerivationError("Creator address is empty", algorithm="instantiate2")
    if not 1 <= len(salt) <= MAX_SALT_LENGTH:
        raise AddressDerivationError(
            f"Salt must be 1..{MAX_SALT_LENGTH} bytes, got {len(salt)}",
            algorithm="instantiate2",
        )

    preimage = b"".join(
        [
            bytes(module_hash),
            WASM_MODULE_NAME,
            b"\x00",
            _length_prefixed(bytes(checksum)),
            _length_prefixed(bytes(creator)),
            _length_prefixed(bytes(salt)),
            _length_prefixed(bytes(init_msg)),
        ]
    )
    address = SHA256Hasher.hash(preimage).value
    try:
        return to_display(address, ChainKind.COSMOS, prefix)
    except DecodeError as e:
        raise AddressDerivationError(str(e.message), algorithm="instantiate2", cause=e) from e


def derive_intermediate_sender(
    channel: str, original_sender: str, prefix: str
) -> CosmosDisplay:
    """
    Account an ibc-hooks middleware uses to execute a memo's wasm call.

    ``sha256(sha256("ibc-wasm-hook-intermediary") ++ "<channel>/<sender>")``
    where ``channel`` is the receiving channel on the hook chain.
    """
    if not channel or not original_sender:
        raise AddressDerivationError(
            "Channel and original sender are required", algorithm="ibc-hooks"
        )
    digest = SHA256Hasher.address_hash(
        IBC_HOOKS_SENDER_PREFIX, f"{channel}/{original_sender}"
    )
    return to_display(digest.value, ChainKind.COSMOS, prefix)
