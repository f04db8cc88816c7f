"""
Unit tests for ZKGM instruction encoding.
"""

import asyncio
import typing

import pytest
from eth_abi import decode as abi_decode

from zkgmbridge.chains.registry import DEFAULT_CHAINS
from zkgmbridge.crypto.addresses import CosmosDisplay, EvmDisplay
from zkgmbridge.errors import DecodeError, EncodeError
from zkgmbridge.zkgm.encoding import (
    BATCH_ABI,
    CALL_ABI,
    TOKEN_ORDER_V2_ABI,
    EncodedInstruction,
    InstructionEncoder,
    decode_instruction,
    encode_instruction,
)
from zkgmbridge.zkgm.instructions import (
    Batch,
    Call,
    Instruction,
    Opcode,
    TokenOrder,
    TokenOrderKind,
)

HUB_SENDER = "osmo1qqqsyqcyq5rqwzqfpg9scrgwpugpzysntdz28t"
EVM_RECIPIENT = "0xA1a1d0B9182339e86e80db519218eA03Ec09a1A1"
ERC20 = "0xA1a1d0B9182339e86e80db519218eA03Ec09a1A1"

CHAINS = {chain.universal_chain_id: chain for chain in DEFAULT_CHAINS}
HUB = CHAINS["osmosis.osmosis-1"]
ETHEREUM = CHAINS["ethereum.1"]


def make_order(**overrides) -> TokenOrder:
    fields = dict(
        source=HUB,
        destination=ETHEREUM,
        sender=CosmosDisplay(HUB_SENDER),
        receiver=EvmDisplay(EVM_RECIPIENT),
        base_token="uatone",
        base_amount=20000,
        quote_token=ERC20,
        quote_amount=20000,
        kind="solve",
        metadata="0x" + "ab" * 40,
    )
    fields.update(overrides)
    return TokenOrder(**fields)


def make_call(**overrides) -> Call:
    fields = dict(
        sender=EvmDisplay(EVM_RECIPIENT),
        contract_address=CosmosDisplay(HUB_SENDER),
        contract_calldata="0x" + b"[]".hex(),
    )
    fields.update(overrides)
    return Call(**fields)


class TestTokenOrderEncoding:
    """Test the v2 token order layout."""

    @pytest.mark.asyncio
    async def test_header(self):
        """Test version and opcode of an encoded order."""
        encoded = await encode_instruction(make_order())
        assert encoded.version == 2
        assert encoded.opcode == Opcode.TOKEN_ORDER == 3

    @pytest.mark.asyncio
    async def test_operand_fields(self):
        """Test that every field lands in its ABI slot."""
        encoded = await encode_instruction(make_order())
        (operand,) = abi_decode([TOKEN_ORDER_V2_ABI], encoded.operand)
        sender, receiver, base_token, base_amount, quote_token, quote_amount, kind, metadata = (
            operand
        )
        assert sender == HUB_SENDER.encode()
        assert receiver == bytes.fromhex(EVM_RECIPIENT[2:])
        assert base_token == b"uatone"
        assert base_amount == 20000
        assert quote_token == bytes.fromhex(ERC20[2:])
        assert quote_amount == 20000
        assert kind == TokenOrderKind.SOLVE == 3
        assert metadata == b"\xab" * 40

    @pytest.mark.asyncio
    async def test_kinds(self):
        """Test that each order kind maps to its uint8."""
        for name, value in [("initialize", 0), ("escrow", 1), ("unescrow", 2), ("SOLVE", 3)]:
            encoded = await encode_instruction(make_order(kind=name))
            (operand,) = abi_decode([TOKEN_ORDER_V2_ABI], encoded.operand)
            assert operand[6] == value

    @pytest.mark.asyncio
    async def test_uppercase_hex_prefix(self):
        """Test that 0X-prefixed tokens decode as hex like 0x-prefixed ones."""
        lower = await encode_instruction(make_order(quote_token=ERC20))
        upper = await encode_instruction(make_order(quote_token="0X" + ERC20[2:]))
        assert upper.operand == lower.operand

    @pytest.mark.asyncio
    async def test_rejects_other_versions(self):
        """Test that only the v2 layout is produced."""
        with pytest.raises(EncodeError, match="version"):
            await encode_instruction(make_order(version=1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"metadata": "0xzz"},
            {"metadata": "0xabc"},
            {"quote_token": "0x12345"},
            {"base_token": ""},
            {"base_amount": -1},
            {"quote_amount": 2**256},
            {"base_amount": True},
            {"kind": "teleport"},
            {"receiver": EvmDisplay("0x1234")},
            {"sender": CosmosDisplay("osmo1notbech32")},
        ],
    )
    async def test_malformed_fields(self, overrides):
        """Test that malformed fields raise EncodeError."""
        with pytest.raises(EncodeError):
            await encode_instruction(make_order(**overrides))


class TestCallEncoding:
    """Test the call layout."""

    @pytest.mark.asyncio
    async def test_operand_fields(self):
        """Test call fields and the eureka flag."""
        encoded = await encode_instruction(make_call(eureka=True))
        assert encoded.opcode == Opcode.CALL
        assert encoded.version == 0
        sender, eureka, contract, calldata = abi_decode([CALL_ABI], encoded.operand)[0]
        assert sender == bytes.fromhex(EVM_RECIPIENT[2:])
        assert eureka is True
        assert contract == HUB_SENDER.encode()
        assert calldata == b"[]"

    @pytest.mark.asyncio
    async def test_non_hex_calldata(self):
        """Test that calldata must be hex."""
        with pytest.raises(EncodeError):
            await encode_instruction(make_call(contract_calldata="not hex"))


class DelayedEncoder(InstructionEncoder):
    """Encoder whose leaves finish in reverse order."""

    def __init__(self, delays):
        super().__init__()
        self.delays = delays
        self.completed = []

    async def encode_token_order(self, order):
        await asyncio.sleep(self.delays[order.base_amount])
        self.completed.append(order.base_amount)
        return await super().encode_token_order(order)


class TestBatchEncoding:
    """Test batch assembly."""

    @pytest.mark.asyncio
    async def test_children_in_order(self):
        """Test that the operand lists children in input order."""
        order, call = make_order(), make_call()
        encoded = await encode_instruction(Batch.make([order, call]))
        assert encoded.opcode == Opcode.BATCH == 2
        assert encoded.version == 0
        (children,) = abi_decode([BATCH_ABI], encoded.operand)[0]
        expected = [
            (await encode_instruction(order)).as_tuple(),
            (await encode_instruction(call)).as_tuple(),
        ]
        assert [tuple(child) for child in children] == expected

    @pytest.mark.asyncio
    async def test_order_preserved_under_unequal_delays(self):
        """Test that completion order does not leak into the output."""
        encoder = DelayedEncoder({1: 0.03, 2: 0.02, 3: 0.0})
        children = [make_order(base_amount=n, quote_amount=n) for n in (1, 2, 3)]
        encoded = await encoder.encode(Batch.make(children))

        assert encoder.completed == [3, 2, 1]
        (decoded,) = abi_decode([BATCH_ABI], encoded.operand)[0]
        amounts = [abi_decode([TOKEN_ORDER_V2_ABI], child[2])[0][3] for child in decoded]
        assert amounts == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_nested_batch(self):
        """Test that batches can contain batches."""
        inner = Batch.make([make_call()])
        encoded = await encode_instruction(Batch.make([inner, make_order()]))
        (children,) = abi_decode([BATCH_ABI], encoded.operand)[0]
        assert [child[1] for child in children] == [Opcode.BATCH, Opcode.TOKEN_ORDER]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        """Test that an empty batch is rejected."""
        with pytest.raises(EncodeError):
            await encode_instruction(Batch.make([]))

    @pytest.mark.asyncio
    async def test_child_error_propagates(self):
        """Test that a malformed child fails the whole batch."""
        with pytest.raises(EncodeError):
            await encode_instruction(Batch.make([make_call(), make_order(metadata="0xzz")]))


class TestEncoderDispatch:
    """Test dispatch over the instruction union."""

    def test_covers_every_variant(self):
        """Test that the dispatch table matches the Instruction union."""
        assert set(InstructionEncoder().handled_types) == set(typing.get_args(Instruction))

    @pytest.mark.asyncio
    async def test_unknown_type(self):
        """Test that an unknown instruction is a programming error."""
        with pytest.raises(TypeError):
            await encode_instruction("not an instruction")

    @pytest.mark.asyncio
    async def test_deterministic(self):
        """Test that equal inputs encode to identical bytes."""
        first = await encode_instruction(Batch.make([make_order(), make_call()]))
        second = await encode_instruction(Batch.make([make_order(), make_call()]))
        assert first == second
        assert first.to_bytes() == second.to_bytes()


class TestEncodedInstruction:
    """Test the instruction header codec."""

    def test_hex_round_trip(self):
        """Test that the header decodes back."""
        encoded = EncodedInstruction(version=2, opcode=3, operand=b"\x01\x02")
        hex_value = encoded.to_hex()
        assert hex_value.startswith("0x")
        assert len(hex_value) % 2 == 0
        assert decode_instruction(hex_value) == encoded
        assert decode_instruction(encoded.to_bytes()) == encoded

    def test_malformed(self):
        """Test that garbage does not decode."""
        with pytest.raises(DecodeError):
            decode_instruction(b"\x00" * 5)
        with pytest.raises(DecodeError):
            decode_instruction("0xnothex")
