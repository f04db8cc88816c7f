"""
Static protocol constants for the AtomOne <-> EVM bridge.

Transfers travel through Osmosis, which hosts the Union ZKGM (UCS03)
contract for every EVM link. Channel ids, contract addresses and code
checksums here must match what is deployed on chain.
"""

from dataclasses import dataclass
from typing import Dict

from .crypto.addresses import CosmosDisplay, EvmDisplay, to_canonical

# Universal chain ids as used by the Union indexer
ATOMONE_CHAIN_ID = "atomone.atomone-1"
OSMOSIS_CHAIN_ID = "osmosis.osmosis-1"
ETHEREUM_CHAIN_ID = "ethereum.1"
BASE_CHAIN_ID = "base.8453"

ATOMONE_BECH32_PREFIX = "atone"
OSMOSIS_BECH32_PREFIX = "osmo"

HUB_CHAIN_ID = OSMOSIS_CHAIN_ID
HUB_BECH32_PREFIX = OSMOSIS_BECH32_PREFIX

# Route table chain tags (lowercase) -> universal chain id
CHAIN_TAGS: Dict[str, str] = {
    "atomone": ATOMONE_CHAIN_ID,
    "osmosis": OSMOSIS_CHAIN_ID,
    "ethereum": ETHEREUM_CHAIN_ID,
    "base": BASE_CHAIN_ID,
}

UNION_GRAPHQL_URL = "https://graphql.union.build/v1/graphql"

# sha256("module"), the Cosmos SDK module account type hash
MODULE_HASH = bytes.fromhex(
    "120970d812836f19888625587a4606a5ad23cef31c8684e601771552548fc6b9"
)

# Checksum of the proxy account code the hub ZKGM contract instantiates
PROXY_BYTECODE_BASE_CHECKSUM = bytes.fromhex(
    "ec827349ed4c1fec5a9c3462ff7c979d4c40e7aa43b16ed34469d04ff835f2a1"
)

HUB_ZKGM_ADDRESS = "osmo1336jj8ertl8h7rdvnz4dh5rqahd09cy0x43guhsxx6xyrztx292qs2uecc"
UCS03_EVM_ADDRESS = "0x5FbE74A283f7954f10AA04C2eDf55578811aeb03"

# Direct ZKGM path (no forwarding hops)
ZKGM_PATH_DIRECT = 0

TIMEOUT_24H_NS = 24 * 60 * 60 * 1_000_000_000
MSG_TRANSFER_TIMEOUT_NS = 10 * 60 * 1_000_000_000

ICS20_TRANSFER_PORT = "transfer"
MSG_TRANSFER_TYPE_URL = "/ibc.applications.transfer.v1.MsgTransfer"


@dataclass(frozen=True)
class HubLink:
    """A ZKGM channel pair between an EVM chain and the hub."""

    tag: str
    evm_chain_id: str
    evm_channel_id: int
    hub_channel_id: int
    ucs03_evm_address: str
    hub_zkgm_address: str
    module_hash: bytes = MODULE_HASH
    proxy_checksum: bytes = PROXY_BYTECODE_BASE_CHECKSUM

    @property
    def ucs03_evm(self) -> EvmDisplay:
        return EvmDisplay(self.ucs03_evm_address)

    @property
    def hub_zkgm(self) -> CosmosDisplay:
        return CosmosDisplay(self.hub_zkgm_address)

    @property
    def hub_zkgm_canonical(self) -> bytes:
        """Canonical bytes of the hub ZKGM contract (proxy creator)."""
        return to_canonical(self.hub_zkgm, OSMOSIS_BECH32_PREFIX)


@dataclass(frozen=True)
class CosmosOrigin:
    """An ICS-20 link between a Cosmos chain and the hub."""

    tag: str
    chain_id: str
    bech32_prefix: str
    # Channel on the origin chain towards the hub
    transfer_channel: str
    # Channel on the hub towards the origin chain
    hub_channel: str


HUB_LINKS: Dict[str, HubLink] = {
    "ethereum": HubLink(
        tag="ethereum",
        evm_chain_id=ETHEREUM_CHAIN_ID,
        evm_channel_id=6,
        hub_channel_id=2,
        ucs03_evm_address=UCS03_EVM_ADDRESS,
        hub_zkgm_address=HUB_ZKGM_ADDRESS,
    ),
    # TODO: replace with the Base deployment once the Base <-> Osmosis
    # ZKGM channel is live; these mirror the Ethereum link.
    "base": HubLink(
        tag="base",
        evm_chain_id=BASE_CHAIN_ID,
        evm_channel_id=6,
        hub_channel_id=2,
        ucs03_evm_address=UCS03_EVM_ADDRESS,
        hub_zkgm_address=HUB_ZKGM_ADDRESS,
    ),
}

COSMOS_ORIGINS: Dict[str, CosmosOrigin] = {
    "atomone": CosmosOrigin(
        tag="atomone",
        chain_id=ATOMONE_CHAIN_ID,
        bech32_prefix=ATOMONE_BECH32_PREFIX,
        transfer_channel="channel-2",
        hub_channel="channel-94814",
    ),
}
