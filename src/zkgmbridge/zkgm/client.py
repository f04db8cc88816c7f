"""
EVM-side ZKGM client.

Prepares a call to ``UCS03Zkgm.send`` so a wallet only has to sign and
broadcast it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector

from ..chains.registry import ChainEndpoint
from ..crypto.addresses import ChainKind, EvmDisplay, to_canonical
from ..errors import EncodeError, ValidationError
from .encoding import InstructionEncoder
from .instructions import Instruction
from .packet import compute_packet_hash

logger = logging.getLogger(__name__)

SEND_SIGNATURE = "send(uint32,uint64,uint64,bytes32,(uint8,uint8,bytes))"
SEND_SELECTOR = function_signature_to_4byte_selector(SEND_SIGNATURE)


@dataclass(frozen=True)
class ZkgmClientRequest:
    """Everything needed to call ``send`` on a UCS03 contract."""

    source: ChainEndpoint
    destination: ChainEndpoint
    channel_id: int
    ucs03_address: str
    instruction: Instruction
    salt: bytes
    timeout_timestamp: int
    timeout_height: int = 0
    # Counterparty channel; needed only to precompute the packet hash
    destination_channel_id: Optional[int] = None


@dataclass(frozen=True)
class PreparedTransaction:
    """Unsigned EVM transaction."""

    to: str
    data: str
    value: int = 0
    packet_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Transaction fields a wallet signs."""
        return {"to": self.to, "data": self.data, "value": self.value}


class EvmZkgmClient:
    """Builds ``send`` transactions for EVM chains."""

    def __init__(self, encoder: Optional[InstructionEncoder] = None):
        self.encoder = encoder or InstructionEncoder()

    async def prepare(
        self, request: ZkgmClientRequest, sender: Optional[EvmDisplay] = None
    ) -> PreparedTransaction:
        """
        Encode the request into calldata.

        Args:
            request: The ZKGM send request
            sender: Account that will submit the transaction. With a
                destination channel in the request this yields the packet hash.

        Raises:
            ValidationError: The source chain is not an EVM chain
            EncodeError: The instruction or salt cannot be encoded
        """
        if request.source.kind is not ChainKind.EVM:
            raise ValidationError(
                f"{request.source.universal_chain_id} is not an EVM chain",
                field="source",
            )
        if len(request.salt) != 32:
            raise EncodeError("Salt must be exactly 32 bytes", field="salt")

        contract = EvmDisplay(request.ucs03_address)
        to_canonical(contract)  # rejects a malformed contract address
        instruction = await self.encoder.encode(request.instruction)

        arguments = abi_encode(
            ["uint32", "uint64", "uint64", "bytes32", "(uint8,uint8,bytes)"],
            [
                request.channel_id,
                request.timeout_height,
                request.timeout_timestamp,
                request.salt,
                instruction.as_tuple(),
            ],
        )

        packet_hash = None
        if sender is not None and request.destination_channel_id is not None:
            packet_hash = compute_packet_hash(
                sender=to_canonical(sender),
                raw_salt=request.salt,
                path=0,
                instruction=instruction,
                source_channel_id=request.channel_id,
                destination_channel_id=request.destination_channel_id,
                timeout_timestamp=request.timeout_timestamp,
                timeout_height=request.timeout_height,
            )

        logger.debug(
            f"Prepared ZKGM send on channel {request.channel_id} "
            f"to {request.destination.universal_chain_id}"
        )
        return PreparedTransaction(
            to=contract.address,
            data="0x" + (SEND_SELECTOR + arguments).hex(),
            value=0,
            packet_hash=packet_hash,
        )
