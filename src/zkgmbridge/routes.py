"""
Static route table.

Routes are pre-configured ``{src, dest, denom, baseToken, quoteToken,
metadata}`` records. Chain tags match case-insensitively, denoms exactly.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .crypto.addresses import HEX_PREFIXES
from .errors import ConfigurationError, RouteNotFoundError

logger = logging.getLogger(__name__)

REQUIRED_ROUTE_FIELDS = ("src", "dest", "denom", "baseToken", "quoteToken", "metadata")


@dataclass(frozen=True)
class Route:
    """One supported (source, destination, denom) transfer."""

    src: str
    dest: str
    denom: str
    base_token: str
    quote_token: str
    metadata: str

    @property
    def src_tag(self) -> str:
        return self.src.lower()

    @property
    def dest_tag(self) -> str:
        return self.dest.lower()

    @property
    def requires_approval(self) -> bool:
        """Contract (ERC-20) base tokens need an allowance before sending."""
        return self.base_token.startswith(HEX_PREFIXES)

    def matches(self, src: str, dest: str, denom: str) -> bool:
        return (
            self.src_tag == src.lower()
            and self.dest_tag == dest.lower()
            and self.denom == denom
        )

    def to_dict(self) -> Dict[str, str]:
        """Convert to the route table's JSON shape."""
        return {
            "src": self.src,
            "dest": self.dest,
            "denom": self.denom,
            "baseToken": self.base_token,
            "quoteToken": self.quote_token,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Route":
        """Create from the route table's JSON shape."""
        missing = [key for key in REQUIRED_ROUTE_FIELDS if key not in data]
        if missing:
            raise ConfigurationError(
                f"Route is missing fields: {', '.join(missing)}", config_value=data
            )
        return cls(
            src=data["src"],
            dest=data["dest"],
            denom=data["denom"],
            base_token=data["baseToken"],
            quote_token=data["quoteToken"],
            metadata=data["metadata"],
        )


class RouteTable:
    """Lookup over a fixed list of routes."""

    def __init__(self, routes: Iterable[Route] = ()):
        self.routes: List[Route] = list(routes)

    def find_route(self, src: str, dest: str, denom: str) -> Optional[Route]:
        """First route matching exactly, or None."""
        for route in self.routes:
            if route.matches(src, dest, denom):
                return route
        return None

    def get_route(self, src: str, dest: str, denom: str) -> Route:
        """
        Matching route.

        Raises:
            RouteNotFoundError: Nothing matches; there is no fallback
        """
        route = self.find_route(src, dest, denom)
        if route is None:
            raise RouteNotFoundError(
                f"Bridge from {src} to {dest} for {denom} is not supported",
                src=src,
                dest=dest,
                denom=denom,
            )
        return route

    def __len__(self) -> int:
        return len(self.routes)

    @classmethod
    def from_list(cls, entries: Iterable[Dict[str, Any]]) -> "RouteTable":
        return cls(Route.from_dict(entry) for entry in entries)


def load_routes(path: Union[str, Path]) -> RouteTable:
    """
    Load a route table from a JSON file holding a list of route objects.

    Raises:
        ConfigurationError: The file is unreadable or malformed
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            entries = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Cannot load routes from {path}: {e}", config_key="routes_file", cause=e
        ) from e

    if not isinstance(entries, list):
        raise ConfigurationError(
            f"Route file {path} must contain a JSON list", config_key="routes_file"
        )

    table = RouteTable.from_list(entries)
    logger.info(f"Loaded {len(table)} routes from {path}")
    return table
