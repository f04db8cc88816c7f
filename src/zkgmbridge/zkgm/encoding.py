"""
UCS03 wire encoding of ZKGM instructions.

Every instruction encodes to the ABI tuple ``(uint8 version, uint8 opcode,
bytes operand)``. Operands are themselves ABI tuples:

- TokenOrder v2: ``(bytes,bytes,bytes,uint256,bytes,uint256,uint8,bytes)``
- Call: ``(bytes,bool,bytes,bytes)``
- Batch: ``((uint8,uint8,bytes)[])``

The receiving contracts decode these bytes verbatim, so encoding is strict:
anything that does not fit the layout raises :class:`EncodeError`.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Tuple, Type, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError

from ..crypto.addresses import HEX_PREFIXES, Address, to_zkgm
from ..errors import DecodeError, EncodeError
from .instructions import (
    Batch,
    Call,
    Instruction,
    InstructionVersion,
    Opcode,
    TokenOrder,
    TokenOrderKind,
)

logger = logging.getLogger(__name__)

INSTRUCTION_ABI = "(uint8,uint8,bytes)"
TOKEN_ORDER_V2_ABI = "(bytes,bytes,bytes,uint256,bytes,uint256,uint8,bytes)"
CALL_ABI = "(bytes,bool,bytes,bytes)"
BATCH_ABI = "((uint8,uint8,bytes)[])"

UINT256_MAX = 2**256 - 1


@dataclass(frozen=True)
class EncodedInstruction:
    """An instruction header plus its encoded operand."""

    version: int
    opcode: int
    operand: bytes

    def as_tuple(self) -> Tuple[int, int, bytes]:
        return (self.version, self.opcode, self.operand)

    def to_bytes(self) -> bytes:
        """ABI-encode the ``(version, opcode, operand)`` tuple."""
        return abi_encode([INSTRUCTION_ABI], [self.as_tuple()])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()


def decode_instruction(data: Union[bytes, str]) -> EncodedInstruction:
    """
    Parse an encoded instruction header.

    Raises:
        DecodeError: Bytes are not a valid ``(uint8,uint8,bytes)`` tuple
    """
    if isinstance(data, str):
        data = hex_to_bytes(data, "instruction", DecodeError)
    try:
        ((version, opcode, operand),) = abi_decode([INSTRUCTION_ABI], data)
    except DecodingError as e:
        raise DecodeError(f"Malformed instruction bytes: {e}", cause=e) from e
    return EncodedInstruction(version=version, opcode=opcode, operand=operand)


def hex_to_bytes(value: str, field: str, error: Type[Exception] = EncodeError) -> bytes:
    """Decode a ``0x``-prefixed (or bare) hex string."""
    if not isinstance(value, str):
        raise error(f"{field} must be a hex string", field=field, value=value)
    body = value[2:] if value.startswith(HEX_PREFIXES) else value
    if len(body) % 2:
        raise error(f"{field} has odd hex length", field=field, value=value)
    try:
        return bytes.fromhex(body)
    except ValueError:
        raise error(f"{field} is not valid hex", field=field, value=value) from None


def _address_bytes(address: Address, field: str) -> bytes:
    try:
        return to_zkgm(address)
    except DecodeError as e:
        raise EncodeError(
            f"Invalid {field} address: {e.message}", field=field, value=str(address), cause=e
        ) from e


def _token_bytes(token: str, field: str) -> bytes:
    # Contract tokens are hex, native denoms travel as their UTF-8 name
    if not token:
        raise EncodeError(f"{field} is empty", field=field)
    if token.startswith(HEX_PREFIXES):
        return hex_to_bytes(token, field)
    return token.encode("utf-8")


def _amount(value: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"{field} must be an integer", field=field, value=value)
    if not 0 <= value <= UINT256_MAX:
        raise EncodeError(f"{field} does not fit in uint256", field=field, value=value)
    return value


class InstructionEncoder:
    """Recursive encoder over the instruction union.

    Batch children are encoded concurrently and reassembled in input order.
    """

    def __init__(self):
        self._handlers: Dict[type, Callable[..., Awaitable[EncodedInstruction]]] = {
            TokenOrder: self.encode_token_order,
            Call: self.encode_call,
            Batch: self.encode_batch,
        }

    @property
    def handled_types(self) -> Tuple[type, ...]:
        return tuple(self._handlers)

    async def encode(self, instruction: Instruction) -> EncodedInstruction:
        """Encode any instruction variant."""
        handler = self._handlers.get(type(instruction))
        if handler is None:
            raise TypeError(f"Unhandled instruction type: {type(instruction).__name__}")
        return await handler(instruction)

    async def encode_token_order(self, order: TokenOrder) -> EncodedInstruction:
        """Encode a token order using the v2 layout."""
        if order.version != InstructionVersion.V2:
            raise EncodeError(
                f"Unsupported token order version: {order.version}",
                field="version",
                value=order.version,
            )
        try:
            kind = TokenOrderKind.parse(order.kind)
        except KeyError:
            raise EncodeError(
                f"Unknown token order kind: {order.kind}", field="kind", value=order.kind
            ) from None

        operand = abi_encode(
            [TOKEN_ORDER_V2_ABI],
            [
                (
                    _address_bytes(order.sender, "sender"),
                    _address_bytes(order.receiver, "receiver"),
                    _token_bytes(order.base_token, "base_token"),
                    _amount(order.base_amount, "base_amount"),
                    _token_bytes(order.quote_token, "quote_token"),
                    _amount(order.quote_amount, "quote_amount"),
                    int(kind),
                    hex_to_bytes(order.metadata, "metadata"),
                )
            ],
        )
        return EncodedInstruction(
            version=InstructionVersion.V2, opcode=Opcode.TOKEN_ORDER, operand=operand
        )

    async def encode_call(self, call: Call) -> EncodedInstruction:
        """Encode a contract call."""
        operand = abi_encode(
            [CALL_ABI],
            [
                (
                    _address_bytes(call.sender, "sender"),
                    bool(call.eureka),
                    _address_bytes(call.contract_address, "contract_address"),
                    hex_to_bytes(call.contract_calldata, "contract_calldata"),
                )
            ],
        )
        return EncodedInstruction(version=call.version, opcode=Opcode.CALL, operand=operand)

    async def encode_batch(self, batch: Batch) -> EncodedInstruction:
        """Encode all children concurrently, keeping their order."""
        if not batch.instructions:
            raise EncodeError("Batch has no instructions", field="instructions")

        # gather() returns results in argument order whatever the completion order
        children = await asyncio.gather(
            *(self.encode(child) for child in batch.instructions)
        )
        operand = abi_encode([BATCH_ABI], [([child.as_tuple() for child in children],)])
        logger.debug(f"Encoded batch of {len(children)} instructions")
        return EncodedInstruction(version=batch.version, opcode=batch.opcode, operand=operand)


_default_encoder = InstructionEncoder()


async def encode_instruction(instruction: Instruction) -> EncodedInstruction:
    """Encode an instruction tree with the default encoder."""
    return await _default_encoder.encode(instruction)
