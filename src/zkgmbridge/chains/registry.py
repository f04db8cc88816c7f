"""
Chain registry for zkgmbridge.

Resolves a universal chain id (``<family>.<chain id>``) to the connection
metadata of that chain.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Mapping, Optional

from ..crypto.addresses import ChainKind
from ..errors import ChainNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainEndpoint:
    """Connection metadata for one chain."""

    universal_chain_id: str
    kind: ChainKind
    rpc_url: Optional[str] = None
    bech32_prefix: Optional[str] = None
    evm_chain_id: Optional[int] = None
    display_name: Optional[str] = None

    @property
    def family(self) -> str:
        return self.universal_chain_id.split(".", 1)[0]

    @property
    def chain_id(self) -> str:
        return self.universal_chain_id.split(".", 1)[-1]

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            "universal_chain_id": self.universal_chain_id,
            "kind": self.kind.value,
            "rpc_url": self.rpc_url,
            "bech32_prefix": self.bech32_prefix,
            "evm_chain_id": self.evm_chain_id,
            "display_name": self.display_name,
        }


DEFAULT_CHAINS = (
    ChainEndpoint(
        universal_chain_id="atomone.atomone-1",
        kind=ChainKind.COSMOS,
        rpc_url="https://atomone-rpc.allinbits.com/",
        bech32_prefix="atone",
        display_name="AtomOne",
    ),
    ChainEndpoint(
        universal_chain_id="osmosis.osmosis-1",
        kind=ChainKind.COSMOS,
        rpc_url="https://rpc.osmosis.zone/",
        bech32_prefix="osmo",
        display_name="Osmosis",
    ),
    ChainEndpoint(
        universal_chain_id="ethereum.1",
        kind=ChainKind.EVM,
        rpc_url="https://ethereum-rpc.publicnode.com",
        evm_chain_id=1,
        display_name="Ethereum",
    ),
    ChainEndpoint(
        universal_chain_id="base.8453",
        kind=ChainKind.EVM,
        rpc_url="https://mainnet.base.org",
        evm_chain_id=8453,
        display_name="Base",
    ),
)


class ChainRegistry:
    """In-memory chain registry."""

    def __init__(self, chains: Iterable[ChainEndpoint] = DEFAULT_CHAINS):
        self._chains: Dict[str, ChainEndpoint] = {}
        for chain in chains:
            self.register(chain)

    def register(self, chain: ChainEndpoint) -> None:
        """Add or replace a chain."""
        self._chains[chain.universal_chain_id] = chain

    async def by_universal_id(self, universal_chain_id: str) -> ChainEndpoint:
        """
        Look up a chain.

        Raises:
            ChainNotFoundError: The id is not registered
        """
        chain = self._chains.get(universal_chain_id)
        if chain is None:
            raise ChainNotFoundError(
                f"Unknown chain: {universal_chain_id}", chain_id=universal_chain_id
            )
        return chain

    def with_rpc_overrides(self, rpc_urls: Mapping[str, str]) -> "ChainRegistry":
        """Copy of the registry with RPC URLs replaced by universal id."""
        chains = []
        for chain in self._chains.values():
            url = rpc_urls.get(chain.universal_chain_id)
            if url:
                logger.debug(f"Overriding RPC for {chain.universal_chain_id}: {url}")
                chain = replace(chain, rpc_url=url)
            chains.append(chain)
        return ChainRegistry(chains)

    def __contains__(self, universal_chain_id: str) -> bool:
        return universal_chain_id in self._chains

    def __len__(self) -> int:
        return len(self._chains)
