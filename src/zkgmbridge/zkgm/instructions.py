"""
ZKGM instruction tree.

An instruction is one of three variants: :class:`TokenOrder`,
:class:`Call` or :class:`Batch`. Instances are immutable; encoding them
(see :mod:`zkgmbridge.zkgm.encoding`) is a pure function of their fields.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Sequence, Tuple, Union

from ..chains.registry import ChainEndpoint
from ..crypto.addresses import Address


class Opcode(IntEnum):
    """UCS03 instruction opcodes."""

    FORWARD = 0x00
    CALL = 0x01
    BATCH = 0x02
    TOKEN_ORDER = 0x03


class InstructionVersion(IntEnum):
    """UCS03 instruction versions."""

    V0 = 0
    V1 = 1
    V2 = 2


class TokenOrderKind(IntEnum):
    """How the counterparty fills a token order."""

    INITIALIZE = 0
    ESCROW = 1
    UNESCROW = 2
    SOLVE = 3

    @classmethod
    def parse(cls, kind: str) -> "TokenOrderKind":
        return cls[kind.upper()]


@dataclass(frozen=True)
class TokenOrder:
    """Move ``base_amount`` of ``base_token`` along a chain pair."""

    source: ChainEndpoint
    destination: ChainEndpoint
    sender: Address
    receiver: Address
    base_token: str
    base_amount: int
    quote_token: str
    quote_amount: int
    kind: str = "solve"
    metadata: str = "0x"
    version: int = InstructionVersion.V2

    @property
    def opcode(self) -> Opcode:
        return Opcode.TOKEN_ORDER


@dataclass(frozen=True)
class Call:
    """Contract call executed by the destination ZKGM contract.

    When ``eureka`` is set the calldata is itself handed to the IBC
    stack as a nested packet instead of a plain contract execution.
    """

    sender: Address
    contract_address: Address
    contract_calldata: str
    eureka: bool = False
    version: int = InstructionVersion.V0

    @property
    def opcode(self) -> Opcode:
        return Opcode.CALL


@dataclass(frozen=True)
class Batch:
    """Ordered group of instructions executed atomically."""

    instructions: Tuple["Instruction", ...] = field(default_factory=tuple)
    opcode: int = Opcode.BATCH
    version: int = InstructionVersion.V0

    @classmethod
    def make(
        cls, instructions: Sequence["Instruction"], version: Optional[int] = None
    ) -> "Batch":
        """Build a batch from any sequence of instructions."""
        if version is None:
            return cls(instructions=tuple(instructions))
        return cls(instructions=tuple(instructions), version=version)


Instruction = Union[TokenOrder, Call, Batch]
