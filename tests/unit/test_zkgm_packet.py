"""
Unit tests for ZKGM packets and packet hashes.
"""

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak

from zkgmbridge.zkgm.encoding import EncodedInstruction
from zkgmbridge.zkgm.packet import (
    PACKET_ENVELOPE_ABI,
    ZKGM_PACKET_ABI,
    PacketEnvelope,
    ZkgmPacket,
    compute_packet_hash,
    derive_packet_salt,
)

SENDER = bytes(range(20))
RAW_SALT = bytes(range(32, 64))
INSTRUCTION = EncodedInstruction(version=2, opcode=3, operand=b"\x01\x02\x03")


class TestPacketSalt:
    """Test contract-side salt derivation."""

    def test_salt_binds_sender(self):
        """Test that the salt is keccak(sender ++ salt)."""
        assert derive_packet_salt(SENDER, RAW_SALT) == keccak(SENDER + RAW_SALT)
        assert derive_packet_salt(b"\x01" * 20, RAW_SALT) != derive_packet_salt(SENDER, RAW_SALT)

    def test_salt_length(self):
        """Test that raw salts must be 32 bytes."""
        with pytest.raises(ValueError):
            derive_packet_salt(SENDER, b"\x00" * 31)


class TestZkgmPacket:
    """Test packet encoding."""

    def test_encode_layout(self):
        """Test that the packet decodes as (bytes32, uint256, instruction)."""
        packet = ZkgmPacket(salt=b"\x07" * 32, path=5, instruction=INSTRUCTION)
        ((salt, path, instruction),) = abi_decode([ZKGM_PACKET_ABI], packet.encode())
        assert salt == b"\x07" * 32
        assert path == 5
        assert instruction == (2, 3, b"\x01\x02\x03")


class TestPacketEnvelope:
    """Test envelope encoding and hashing."""

    def test_hash_is_keccak_of_envelope(self):
        """Test that the hash covers the whole envelope."""
        envelope = PacketEnvelope(
            source_channel_id=6,
            destination_channel_id=2,
            data=b"payload",
            timeout_height=0,
            timeout_timestamp=123,
        )
        expected = keccak(abi_encode([PACKET_ENVELOPE_ABI], [(6, 2, b"payload", 0, 123)]))
        assert envelope.hash().value == expected


class TestComputePacketHash:
    """Test end-to-end packet hash computation."""

    def test_matches_manual_composition(self):
        """Test against the hash assembled by hand."""
        packet_hash = compute_packet_hash(
            sender=SENDER,
            raw_salt=RAW_SALT,
            path=0,
            instruction=INSTRUCTION,
            source_channel_id=2,
            destination_channel_id=6,
            timeout_timestamp=1_000,
        )
        salt = keccak(SENDER + RAW_SALT)
        data = abi_encode([ZKGM_PACKET_ABI], [(salt, 0, (2, 3, b"\x01\x02\x03"))])
        expected = keccak(abi_encode([PACKET_ENVELOPE_ABI], [(2, 6, data, 0, 1_000)]))
        assert packet_hash == "0x" + expected.hex()

    def test_format(self):
        """Test the 0x + 64 hex rendering."""
        packet_hash = compute_packet_hash(SENDER, RAW_SALT, 0, INSTRUCTION, 2, 6, 1_000)
        assert packet_hash.startswith("0x")
        assert len(packet_hash) == 66

    def test_hex_salt(self):
        """Test that a hex salt gives the same hash as raw bytes."""
        from_bytes = compute_packet_hash(SENDER, RAW_SALT, 0, INSTRUCTION, 2, 6, 1_000)
        from_hex = compute_packet_hash(SENDER, "0x" + RAW_SALT.hex(), 0, INSTRUCTION, 2, 6, 1_000)
        assert from_bytes == from_hex

    def test_every_input_matters(self):
        """Test that channels, timeout and salt change the hash."""
        base = compute_packet_hash(SENDER, RAW_SALT, 0, INSTRUCTION, 2, 6, 1_000)
        assert compute_packet_hash(SENDER, RAW_SALT, 0, INSTRUCTION, 6, 2, 1_000) != base
        assert compute_packet_hash(SENDER, RAW_SALT, 0, INSTRUCTION, 2, 6, 1_001) != base
        assert compute_packet_hash(SENDER, b"\x00" * 32, 0, INSTRUCTION, 2, 6, 1_000) != base
