"""
Union indexer client and packet status tracking.
"""

from .graphql import (
    PACKET_DETAILS_QUERY,
    PacketDetails,
    PacketStatus,
    PacketTrace,
    UnionIndexerClient,
    status_reached,
)
from .tracker import PacketTracker

__all__ = [
    "PACKET_DETAILS_QUERY",
    "PacketDetails",
    "PacketStatus",
    "PacketTrace",
    "UnionIndexerClient",
    "status_reached",
    "PacketTracker",
]
