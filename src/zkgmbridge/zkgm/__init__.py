"""
Union ZKGM (UCS03) instructions, wire encoding and packets.
"""

from .client import EvmZkgmClient, PreparedTransaction, ZkgmClientRequest
from .encoding import (
    EncodedInstruction,
    InstructionEncoder,
    decode_instruction,
    encode_instruction,
)
from .instructions import (
    Batch,
    Call,
    Instruction,
    InstructionVersion,
    Opcode,
    TokenOrder,
    TokenOrderKind,
)
from .packet import PacketEnvelope, ZkgmPacket, compute_packet_hash, derive_packet_salt
from .proxy import predict_proxy, proxy_salt

__all__ = [
    # Instructions
    "Instruction",
    "TokenOrder",
    "Call",
    "Batch",
    "Opcode",
    "InstructionVersion",
    "TokenOrderKind",
    # Encoding
    "EncodedInstruction",
    "InstructionEncoder",
    "encode_instruction",
    "decode_instruction",
    # Packets
    "ZkgmPacket",
    "PacketEnvelope",
    "compute_packet_hash",
    "derive_packet_salt",
    # Proxy
    "predict_proxy",
    "proxy_salt",
    # Client
    "EvmZkgmClient",
    "ZkgmClientRequest",
    "PreparedTransaction",
]
