"""
Unit tests for the Union GraphQL indexer client.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, Mock

import aiohttp
import pytest

from zkgmbridge.constants import UNION_GRAPHQL_URL
from zkgmbridge.errors import IndexerQueryError
from zkgmbridge.indexer.graphql import (
    PACKET_DETAILS_QUERY,
    PacketDetails,
    PacketStatus,
    UnionIndexerClient,
    status_reached,
)

PACKET_HASH = "0x" + "5e" * 32

PACKET_ROW = {
    "packet_hash": PACKET_HASH,
    "status": "PACKET_RECV",
    "source_universal_chain_id": "osmosis.osmosis-1",
    "destination_universal_chain_id": "ethereum.1",
    "packet_send_transaction_hash": "0x" + "01" * 32,
    "packet_recv_transaction_hash": "0x" + "02" * 32,
    "packet_ack_transaction_hash": None,
    "traces": [
        {
            "type": "PACKET_SEND",
            "height": "123",
            "timestamp": "2025-06-01T00:00:00Z",
            "transaction_hash": "0x" + "01" * 32,
            "chain": {"universal_chain_id": "osmosis.osmosis-1"},
        },
        {
            "type": "PACKET_RECV",
            "height": None,
            "timestamp": None,
            "transaction_hash": None,
            "chain": None,
        },
    ],
}


def mock_session(status=200, body=None, text=""):
    response = Mock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = Mock()
    session.post = Mock(return_value=context)
    session.close = AsyncMock()
    return session


class TestPacketStatus:
    """Test status parsing and ordering."""

    def test_order(self):
        """Test the lifecycle order."""
        assert (
            PacketStatus.PACKET_SEND
            < PacketStatus.PACKET_RECV
            < PacketStatus.WRITE_ACK
            < PacketStatus.PACKET_ACK
        )

    def test_parse(self):
        """Test known, unknown and empty statuses."""
        assert PacketStatus.parse("WRITE_ACK") is PacketStatus.WRITE_ACK
        assert PacketStatus.parse("packet_ack") is PacketStatus.PACKET_ACK
        assert PacketStatus.parse("PACKND_SEND") is None
        assert PacketStatus.parse("") is None
        assert PacketStatus.parse(None) is None

    @pytest.mark.parametrize(
        "status,target,expected",
        [
            ("PACKET_SEND", PacketStatus.PACKET_SEND, True),
            ("PACKET_SEND", PacketStatus.PACKET_RECV, False),
            ("PACKET_ACK", PacketStatus.PACKET_RECV, True),
            ("WRITE_ACK", PacketStatus.PACKET_ACK, False),
            ("TIMEOUT", PacketStatus.PACKET_SEND, False),
            ("", PacketStatus.PACKET_SEND, False),
        ],
    )
    def test_status_reached(self, status, target, expected):
        """Test the at-or-past check."""
        assert status_reached(status, target) is expected


class TestPacketDetails:
    """Test row parsing."""

    def test_from_dict(self):
        """Test a full indexer row."""
        details = PacketDetails.from_dict(PACKET_ROW)
        assert details.packet_hash == PACKET_HASH
        assert details.packet_status is PacketStatus.PACKET_RECV
        assert details.packet_ack_transaction_hash is None
        assert len(details.traces) == 2
        assert details.traces[0].height == 123
        assert details.traces[0].chain_id == "osmosis.osmosis-1"
        assert details.traces[1].height is None
        assert details.traces[1].chain_id is None

    def test_sparse_row(self):
        """Test that missing fields default."""
        details = PacketDetails.from_dict({"packet_hash": PACKET_HASH, "status": None})
        assert details.status == ""
        assert details.packet_status is None
        assert details.traces == []

    def test_to_dict(self):
        """Test the JSON rendering."""
        data = PacketDetails.from_dict(PACKET_ROW).to_dict()
        assert data["status"] == "PACKET_RECV"
        assert data["traces"][0]["chain_id"] == "osmosis.osmosis-1"


class TestUnionIndexerClient:
    """Test the GraphQL transport."""

    @pytest.mark.asyncio
    async def test_query_payload(self):
        """Test the request body and the parsed response."""
        session = mock_session(body={"data": {"v2_packets": [PACKET_ROW]}})
        client = UnionIndexerClient(session=session)

        packets = await client.query_packet_details(PACKET_HASH)

        session.post.assert_called_once_with(
            UNION_GRAPHQL_URL,
            json={"query": PACKET_DETAILS_QUERY, "variables": {"packet_hash": PACKET_HASH}},
        )
        assert len(packets) == 1
        assert packets[0].status == "PACKET_RECV"

    def test_query_shape(self):
        """Test that the query asks for what the tracker reads."""
        assert "v2_packets(args: { p_packet_hash: $packet_hash })" in PACKET_DETAILS_QUERY
        assert "@cached(ttl: 30)" in PACKET_DETAILS_QUERY
        assert "universal_chain_id" in PACKET_DETAILS_QUERY

    @pytest.mark.asyncio
    async def test_not_indexed(self):
        """Test that an empty result is an empty list."""
        session = mock_session(body={"data": {"v2_packets": []}})
        client = UnionIndexerClient(session=session)
        assert await client.query_packet_details(PACKET_HASH) == []

    @pytest.mark.asyncio
    async def test_http_error(self):
        """Test that non-200 responses raise."""
        session = mock_session(status=502, text="bad gateway")
        client = UnionIndexerClient(url="https://indexer.test/graphql", session=session)
        with pytest.raises(IndexerQueryError) as exc_info:
            await client.query_packet_details(PACKET_HASH)
        assert exc_info.value.status_code == 502
        assert exc_info.value.endpoint == "https://indexer.test/graphql"
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_graphql_errors(self):
        """Test that GraphQL errors raise."""
        session = mock_session(body={"errors": [{"message": "field not found"}]})
        client = UnionIndexerClient(session=session)
        with pytest.raises(IndexerQueryError, match="field not found"):
            await client.query_packet_details(PACKET_HASH)

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        """Test that an unparseable 200 body raises IndexerQueryError."""
        session = mock_session()
        decode_error = json.JSONDecodeError("Expecting value", "not json", 0)
        session.post.return_value.__aenter__.return_value.json.side_effect = decode_error
        client = UnionIndexerClient(session=session)
        with pytest.raises(IndexerQueryError, match="malformed JSON") as exc_info:
            await client.query_packet_details(PACKET_HASH)
        assert exc_info.value.cause is decode_error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, [], "ok", 7])
    async def test_non_object_body(self, body):
        """Test that JSON bodies other than objects raise IndexerQueryError."""
        client = UnionIndexerClient(session=mock_session(body=body))
        with pytest.raises(IndexerQueryError, match="instead of a JSON object"):
            await client.query_packet_details(PACKET_HASH)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()]
    )
    async def test_transport_errors(self, error):
        """Test that transport failures become IndexerQueryError."""
        session = mock_session()
        session.post.side_effect = error
        client = UnionIndexerClient(session=session)
        with pytest.raises(IndexerQueryError) as exc_info:
            await client.query_packet_details(PACKET_HASH)
        assert exc_info.value.cause is error

    @pytest.mark.asyncio
    async def test_borrowed_session_left_open(self):
        """Test that a caller's session is not closed."""
        session = mock_session()
        async with UnionIndexerClient(session=session):
            pass
        session.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_session_closed(self):
        """Test that a lazily created session is closed."""
        client = UnionIndexerClient(timeout=5)
        session = client._get_session()
        assert isinstance(session, aiohttp.ClientSession)
        assert session.timeout.total == 5
        await client.close()
        assert session.closed
        assert client._session is None
