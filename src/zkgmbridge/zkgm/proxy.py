"""
Proxy account prediction.

For every (path, channel, sender) the hub ZKGM contract instantiates a
proxy account with ``instantiate2``. Funds sent from an EVM chain land on
that proxy, which then executes the accompanying ``Call``.
"""

from eth_abi import encode as abi_encode

from ..constants import HUB_BECH32_PREFIX, HubLink
from ..crypto.addresses import (
    Address,
    CosmosDisplay,
    derive_instantiate2_address,
    to_zkgm,
)
from ..crypto.hashing import keccak256
from ..errors import AddressDerivationError, DecodeError


def proxy_salt(path: int, channel_id: int, sender: Address) -> bytes:
    """``keccak256(abi.encode(uint256 path, uint32 channel, bytes sender))``."""
    try:
        sender_bytes = to_zkgm(sender)
    except DecodeError as e:
        raise AddressDerivationError(
            f"Invalid proxy sender: {e.message}", algorithm="proxy", cause=e
        ) from e
    encoded = abi_encode(["uint256", "uint32", "bytes"], [path, channel_id, sender_bytes])
    return keccak256(encoded).value


def predict_proxy(
    path: int,
    channel_id: int,
    sender: Address,
    link: HubLink,
    prefix: str = HUB_BECH32_PREFIX,
) -> CosmosDisplay:
    """Address of the hub proxy owned by ``sender`` on ``channel_id``."""
    return derive_instantiate2_address(
        module_hash=link.module_hash,
        checksum=link.proxy_checksum,
        creator=link.hub_zkgm_canonical,
        salt=proxy_salt(path, channel_id, sender),
        prefix=prefix,
    )
