"""
Union GraphQL indexer client.

Looks up a ZKGM packet by hash. The indexer reports one row per packet with
its lifecycle status and the chain events (traces) seen so far.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

import aiohttp

from ..constants import UNION_GRAPHQL_URL
from ..errors import IndexerQueryError

logger = logging.getLogger(__name__)

PACKET_DETAILS_QUERY = """
query PacketDetails($packet_hash: String!) @cached(ttl: 30) {
  v2_packets(args: { p_packet_hash: $packet_hash }) {
    packet_hash
    status
    source_universal_chain_id
    destination_universal_chain_id
    packet_send_transaction_hash
    packet_recv_transaction_hash
    packet_ack_transaction_hash
    traces {
      type
      height
      timestamp
      transaction_hash
      chain {
        universal_chain_id
      }
    }
  }
}
""".strip()


class PacketStatus(IntEnum):
    """Packet lifecycle, in the order the indexer observes it."""

    PACKET_SEND = 0
    PACKET_RECV = 1
    WRITE_ACK = 2
    PACKET_ACK = 3

    @classmethod
    def parse(cls, status: Optional[str]) -> Optional["PacketStatus"]:
        """Known status, or None for anything the indexer adds later."""
        if not status:
            return None
        try:
            return cls[status.upper()]
        except KeyError:
            return None


def status_reached(status: Optional[str], target: PacketStatus) -> bool:
    """True when ``status`` is at or past ``target``; unknown never is."""
    parsed = PacketStatus.parse(status)
    return parsed is not None and parsed >= target


@dataclass(frozen=True)
class PacketTrace:
    """One chain event of a packet."""

    type: str
    height: Optional[int] = None
    timestamp: Optional[str] = None
    transaction_hash: Optional[str] = None
    chain_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PacketTrace":
        chain = data.get("chain") or {}
        height = data.get("height")
        return cls(
            type=data.get("type", ""),
            height=int(height) if height is not None else None,
            timestamp=data.get("timestamp"),
            transaction_hash=data.get("transaction_hash"),
            chain_id=chain.get("universal_chain_id"),
        )


@dataclass(frozen=True)
class PacketDetails:
    """Indexer view of a packet."""

    packet_hash: str
    status: str
    source_universal_chain_id: Optional[str] = None
    destination_universal_chain_id: Optional[str] = None
    packet_send_transaction_hash: Optional[str] = None
    packet_recv_transaction_hash: Optional[str] = None
    packet_ack_transaction_hash: Optional[str] = None
    traces: List[PacketTrace] = field(default_factory=list)

    @property
    def packet_status(self) -> Optional[PacketStatus]:
        return PacketStatus.parse(self.status)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PacketDetails":
        """Create from a ``v2_packets`` row."""
        return cls(
            packet_hash=data.get("packet_hash", ""),
            status=data.get("status") or "",
            source_universal_chain_id=data.get("source_universal_chain_id"),
            destination_universal_chain_id=data.get("destination_universal_chain_id"),
            packet_send_transaction_hash=data.get("packet_send_transaction_hash"),
            packet_recv_transaction_hash=data.get("packet_recv_transaction_hash"),
            packet_ack_transaction_hash=data.get("packet_ack_transaction_hash"),
            traces=[PacketTrace.from_dict(t) for t in data.get("traces") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "packet_hash": self.packet_hash,
            "status": self.status,
            "source_universal_chain_id": self.source_universal_chain_id,
            "destination_universal_chain_id": self.destination_universal_chain_id,
            "packet_send_transaction_hash": self.packet_send_transaction_hash,
            "packet_recv_transaction_hash": self.packet_recv_transaction_hash,
            "packet_ack_transaction_hash": self.packet_ack_transaction_hash,
            "traces": [
                {
                    "type": t.type,
                    "height": t.height,
                    "timestamp": t.timestamp,
                    "transaction_hash": t.transaction_hash,
                    "chain_id": t.chain_id,
                }
                for t in self.traces
            ],
        }


class UnionIndexerClient:
    """GraphQL client for the Union indexer.

    Use as an async context manager, or call :meth:`close` when done. A
    session passed in by the caller is left open.
    """

    def __init__(
        self,
        url: str = UNION_GRAPHQL_URL,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "UnionIndexerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def query_packet_details(self, packet_hash: str) -> List[PacketDetails]:
        """
        Fetch the indexer rows for ``packet_hash``.

        Returns:
            Matching packets; empty while the packet is not indexed yet

        Raises:
            IndexerQueryError: HTTP failure or GraphQL errors in the response
        """
        payload = {
            "query": PACKET_DETAILS_QUERY,
            "variables": {"packet_hash": packet_hash},
        }
        session = self._get_session()
        try:
            async with session.post(self.url, json=payload) as response:
                if response.status != 200:
                    text = await response.text()
                    raise IndexerQueryError(
                        f"Indexer returned HTTP {response.status}: {text[:200]}",
                        endpoint=self.url,
                        status_code=response.status,
                    )
                body = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise IndexerQueryError(
                f"Indexer request failed: {e}", endpoint=self.url, cause=e
            ) from e
        except ValueError as e:
            raise IndexerQueryError(
                f"Indexer returned malformed JSON: {e}", endpoint=self.url, cause=e
            ) from e

        if not isinstance(body, dict):
            raise IndexerQueryError(
                f"Indexer returned {type(body).__name__} instead of a JSON object",
                endpoint=self.url,
            )

        if body.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in body["errors"]
            )
            raise IndexerQueryError(
                f"Indexer query failed: {messages}", endpoint=self.url
            )

        rows = (body.get("data") or {}).get("v2_packets") or []
        return [PacketDetails.from_dict(row) for row in rows]
