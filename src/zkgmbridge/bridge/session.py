"""
Bridge session.

One session per user: it owns the builder, the indexer connection and the
user's wallets, and runs a transfer from build to acknowledgement.
"""

import logging
from typing import Dict, Optional, Tuple

from ..chains.evm import EvmQueryClient
from ..chains.registry import ChainEndpoint, ChainRegistry
from ..chains.wallet import EvmWallet
from ..config import BridgeConfig
from ..errors import BackoffStrategy, ConfigurationError
from ..indexer.graphql import PacketDetails, PacketStatus, UnionIndexerClient
from ..indexer.tracker import PacketTracker
from ..routes import RouteTable, load_routes
from .allowance import AllowanceManager
from .builder import CosmosTransfer, EvmTransfer, TransactionBuilder

logger = logging.getLogger(__name__)


class BridgeSession:
    """Owns every collaborator a transfer needs."""

    def __init__(
        self,
        config: BridgeConfig,
        registry: ChainRegistry,
        routes: RouteTable,
        evm_wallet: Optional[EvmWallet] = None,
        indexer: Optional[UnionIndexerClient] = None,
        builder: Optional[TransactionBuilder] = None,
        tracker: Optional[PacketTracker] = None,
    ):
        self.config = config
        self.registry = registry
        self.routes = routes
        self.evm_wallet = evm_wallet
        self.indexer = indexer or UnionIndexerClient(
            url=config.indexer_url, timeout=config.indexer_timeout
        )
        self.builder = builder or TransactionBuilder(
            registry, routes, compute_packet_hash=config.compute_packet_hash
        )
        self.tracker = tracker or PacketTracker(
            self.indexer,
            backoff=BackoffStrategy(
                strategy_type=config.poll_backoff,
                base_delay=config.poll_interval,
                max_delay=max(config.poll_interval, 60.0),
            ),
        )
        self._query_clients: Dict[str, EvmQueryClient] = {}

    @classmethod
    def from_config(
        cls, config: BridgeConfig, evm_wallet: Optional[EvmWallet] = None
    ) -> "BridgeSession":
        """Session over the default chains with the configured overrides."""
        if not config.routes_file:
            raise ConfigurationError(
                "A routes file is required (set ZKGM_ROUTES_FILE)", config_key="routes_file"
            )
        registry = ChainRegistry().with_rpc_overrides(config.rpc_overrides())
        return cls(config, registry, load_routes(config.routes_file), evm_wallet=evm_wallet)

    async def __aenter__(self) -> "BridgeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.indexer.close()

    def query_client(self, chain: ChainEndpoint) -> EvmQueryClient:
        client = self._query_clients.get(chain.universal_chain_id)
        if client is None:
            client = EvmQueryClient(chain)
            self._query_clients[chain.universal_chain_id] = client
        return client

    async def prepare_cosmos_transfer(
        self, src: str, dest: str, sender: str, receiver: str, denom: str, amount: int
    ) -> CosmosTransfer:
        """Memo and ``MsgTransfer`` for the caller's Cosmos signer."""
        return await self.builder.build_from_cosmos(src, dest, sender, receiver, denom, amount)

    async def send_from_evm(
        self, src: str, dest: str, receiver: str, denom: str, amount: int
    ) -> Tuple[EvmTransfer, str]:
        """
        Build, approve if needed, and submit an EVM-origin transfer.

        Returns:
            The built transfer and the hash of the submitted transaction;
            ``transfer.packet_hash`` is the tracking key

        Raises:
            ConfigurationError: The session has no EVM wallet
        """
        if self.evm_wallet is None:
            raise ConfigurationError("No EVM wallet in this session", config_key="evm_wallet")

        addresses = await self.evm_wallet.get_addresses()
        if not addresses:
            raise ConfigurationError("EVM wallet has no accounts", config_key="evm_wallet")
        sender = addresses[0]

        transfer = await self.builder.build_from_evm(
            src, dest, sender.address, receiver, denom, amount
        )

        if transfer.approval is not None:
            allowance = AllowanceManager(
                self.query_client(transfer.chain),
                self.evm_wallet,
                poll_interval=self.config.allowance_poll_interval,
                timeout=self.config.allowance_timeout,
            )
            await allowance.ensure_allowance(transfer.approval, sender)

        tx_hash = await self.evm_wallet.send_transaction(transfer.to_transaction())
        logger.info(f"Submitted {src} -> {dest} transfer {tx_hash}, packet {transfer.packet_hash}")
        return transfer, tx_hash

    async def track(
        self,
        packet_hash: str,
        target: PacketStatus = PacketStatus.PACKET_ACK,
        timeout: Optional[float] = None,
    ) -> PacketDetails:
        """Wait for ``packet_hash`` to reach ``target``."""
        return await self.tracker.wait_for_status(
            packet_hash,
            target,
            timeout=timeout if timeout is not None else self.config.track_timeout,
            poll_interval=self.config.poll_interval,
        )
