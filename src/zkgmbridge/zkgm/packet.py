"""
ZKGM packets and packet hashes.

The packet hash is the key the Union indexer tracks a transfer by. It is
``keccak256`` of the ABI-encoded IBC packet envelope whose ``data`` is the
ABI-encoded ZKGM packet, so both encodings must match the contracts
exactly.
"""

from dataclasses import dataclass
from typing import Union

from eth_abi import encode as abi_encode

from ..crypto.hashing import Hash, keccak256
from .encoding import INSTRUCTION_ABI, EncodedInstruction

ZKGM_PACKET_ABI = f"(bytes32,uint256,{INSTRUCTION_ABI})"
PACKET_ENVELOPE_ABI = "(uint32,uint32,bytes,uint64,uint64)"


def derive_packet_salt(sender: bytes, raw_salt: bytes) -> bytes:
    """
    Salt the ZKGM contract stores in the packet.

    The contract hashes the caller into the user supplied salt so two
    senders can never produce the same packet: ``keccak256(sender ++ salt)``.
    """
    if len(raw_salt) != 32:
        raise ValueError("Salt must be exactly 32 bytes")
    return keccak256(bytes(sender) + bytes(raw_salt)).value


@dataclass(frozen=True)
class ZkgmPacket:
    """Salt, forwarding path and root instruction."""

    salt: bytes
    path: int
    instruction: EncodedInstruction

    def encode(self) -> bytes:
        return abi_encode(
            [ZKGM_PACKET_ABI],
            [(self.salt, self.path, self.instruction.as_tuple())],
        )


@dataclass(frozen=True)
class PacketEnvelope:
    """IBC packet as committed by the sending chain."""

    source_channel_id: int
    destination_channel_id: int
    data: bytes
    timeout_height: int
    timeout_timestamp: int

    def encode(self) -> bytes:
        return abi_encode(
            [PACKET_ENVELOPE_ABI],
            [
                (
                    self.source_channel_id,
                    self.destination_channel_id,
                    self.data,
                    self.timeout_height,
                    self.timeout_timestamp,
                )
            ],
        )

    def hash(self) -> Hash:
        return keccak256(self.encode())


def compute_packet_hash(
    sender: bytes,
    raw_salt: Union[bytes, str],
    path: int,
    instruction: EncodedInstruction,
    source_channel_id: int,
    destination_channel_id: int,
    timeout_timestamp: int,
    timeout_height: int = 0,
) -> str:
    """
    Packet hash of a ZKGM send, as the indexer will report it.

    Args:
        sender: Bytes of the account calling the ZKGM contract
        raw_salt: Salt passed to ``send`` (bytes or hex)
        path: Forwarding path
        instruction: Encoded root instruction
        source_channel_id: Channel on the sending chain
        destination_channel_id: Channel on the receiving chain
        timeout_timestamp: Timeout in nanoseconds
        timeout_height: Timeout height (0 for none)

    Returns:
        ``0x``-prefixed 32-byte hex hash
    """
    if isinstance(raw_salt, str):
        raw_salt = Hash.from_hex(raw_salt).value
    packet = ZkgmPacket(
        salt=derive_packet_salt(sender, raw_salt), path=path, instruction=instruction
    )
    envelope = PacketEnvelope(
        source_channel_id=source_channel_id,
        destination_channel_id=destination_channel_id,
        data=packet.encode(),
        timeout_height=timeout_height,
        timeout_timestamp=timeout_timestamp,
    )
    return envelope.hash().to_hex()
