"""
Bridge transaction builder.

Turns a logical transfer (source, destination, sender, receiver, denom,
amount) into something a wallet can submit:

- Cosmos origin: a wasm-hook memo for an ICS-20 transfer to the hub, whose
  ZKGM contract forwards a solver token order to the EVM chain.
- EVM origin: a ``UCS03Zkgm.send`` call carrying a batch of a token order
  to the sender's hub proxy and a call that makes the proxy IBC-transfer
  the funds on to the Cosmos recipient.

Nothing here signs or broadcasts. Salts and clocks are injected so the
output can be pinned in tests.
"""

import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from ..chains.registry import ChainEndpoint, ChainRegistry
from ..constants import (
    CHAIN_TAGS,
    COSMOS_ORIGINS,
    HUB_BECH32_PREFIX,
    HUB_CHAIN_ID,
    HUB_LINKS,
    ICS20_TRANSFER_PORT,
    MSG_TRANSFER_TIMEOUT_NS,
    MSG_TRANSFER_TYPE_URL,
    TIMEOUT_24H_NS,
    ZKGM_PATH_DIRECT,
    CosmosOrigin,
    HubLink,
)
from ..crypto.addresses import (
    ChainKind,
    CosmosDisplay,
    EvmDisplay,
    derive_intermediate_sender,
    to_canonical,
    with_prefix,
)
from ..errors import ConfigurationError, EncodeError, RouteNotFoundError
from ..logging import LogContext
from ..routes import Route, RouteTable
from ..zkgm.client import EvmZkgmClient, ZkgmClientRequest
from ..zkgm.encoding import EncodedInstruction, InstructionEncoder
from ..zkgm.instructions import Batch, Call, TokenOrder
from ..zkgm.packet import compute_packet_hash
from ..zkgm.proxy import predict_proxy

logger = logging.getLogger(__name__)

SALT_LENGTH = 32


def random_salt() -> bytes:
    return secrets.token_bytes(SALT_LENGTH)


def compact_json(value: Any) -> str:
    """JSON with no whitespace, the form contracts receive."""
    return json.dumps(value, separators=(",", ":"))


@dataclass(frozen=True)
class CosmosTransfer:
    """Memo payload for a Cosmos-origin transfer."""

    contract: str
    memo: Dict[str, Any]
    instruction: EncodedInstruction
    salt: str
    timeout_timestamp: int
    packet_hash: Optional[str]
    sender: str
    denom: str
    amount: int
    source_channel: str

    @property
    def message(self) -> Dict[str, Any]:
        """The contract execute message inside the memo."""
        return self.memo["wasm"]["msg"]

    def memo_json(self) -> str:
        return compact_json(self.memo)

    def to_msg_transfer(self, now_ns: Optional[int] = None) -> Dict[str, Any]:
        """
        Outer ICS-20 ``MsgTransfer`` that carries the memo to the hub.

        The transfer itself times out after ten minutes; the ZKGM packet it
        triggers has its own timeout.
        """
        now_ns = time.time_ns() if now_ns is None else now_ns
        return {
            "typeUrl": MSG_TRANSFER_TYPE_URL,
            "value": {
                "sourcePort": ICS20_TRANSFER_PORT,
                "sourceChannel": self.source_channel,
                "token": {"denom": self.denom, "amount": str(self.amount)},
                "sender": self.sender,
                "receiver": self.contract,
                "timeoutHeight": None,
                "timeoutTimestamp": str(now_ns + MSG_TRANSFER_TIMEOUT_NS),
                "memo": self.memo_json(),
            },
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract,
            "memo": self.memo,
            "packet_hash": self.packet_hash,
            "salt": self.salt,
            "timeout_timestamp": str(self.timeout_timestamp),
        }


@dataclass(frozen=True)
class ApprovalRequirement:
    """ERC-20 allowance the UCS03 contract needs before ``send``."""

    token: EvmDisplay
    spender: EvmDisplay
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token.address,
            "spender": self.spender.address,
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class EvmTransfer:
    """Unsigned EVM transaction for an EVM-origin transfer."""

    chain: ChainEndpoint
    sender: EvmDisplay
    to: str
    data: str
    value: int
    packet_hash: Optional[str]
    proxy: CosmosDisplay
    salt: str
    timeout_timestamp: int
    approval: Optional[ApprovalRequirement] = None

    @property
    def requires_approval(self) -> bool:
        return self.approval is not None

    def to_transaction(self) -> Dict[str, Any]:
        """``{to, data, value}`` for a wallet."""
        return {"to": self.to, "data": self.data, "value": self.value}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": self.chain.universal_chain_id,
            "transaction": self.to_transaction(),
            "packet_hash": self.packet_hash,
            "proxy": self.proxy.address,
            "salt": self.salt,
            "timeout_timestamp": str(self.timeout_timestamp),
            "approval": self.approval.to_dict() if self.approval else None,
        }


BuildResult = Union[CosmosTransfer, EvmTransfer]


class TransactionBuilder:
    """Builds both directions of a bridge transfer."""

    def __init__(
        self,
        registry: ChainRegistry,
        routes: RouteTable,
        salt_source: Callable[[], bytes] = random_salt,
        clock_ns: Callable[[], int] = time.time_ns,
        encoder: Optional[InstructionEncoder] = None,
        zkgm_client: Optional[EvmZkgmClient] = None,
        compute_packet_hash: bool = True,
    ):
        self.registry = registry
        self.routes = routes
        self.salt_source = salt_source
        self.clock_ns = clock_ns
        self.encoder = encoder or InstructionEncoder()
        self.zkgm_client = zkgm_client or EvmZkgmClient(self.encoder)
        self.compute_packet_hash = compute_packet_hash

    async def build(
        self, src: str, dest: str, sender: str, receiver: str, denom: str, amount: int
    ) -> BuildResult:
        """Build a transfer in whichever direction the source chain implies."""
        self.routes.get_route(src, dest, denom)
        source = await self.registry.by_universal_id(self._universal_id(src))
        if source.kind is ChainKind.COSMOS:
            return await self.build_from_cosmos(src, dest, sender, receiver, denom, amount)
        return await self.build_from_evm(src, dest, sender, receiver, denom, amount)

    async def build_from_cosmos(
        self, src: str, dest: str, sender: str, receiver: str, denom: str, amount: int
    ) -> CosmosTransfer:
        """
        Build the hub memo for a Cosmos -> EVM transfer.

        Args:
            src: Cosmos chain tag (e.g. ``atomone``)
            dest: EVM chain tag (e.g. ``ethereum``)
            sender: Bech32 sender on the source chain
            receiver: EVM recipient
            denom: Denom sent from the source chain
            amount: Amount in base units; both legs of the order are equal

        Raises:
            RouteNotFoundError: No route for (src, dest, denom)
            ChainNotFoundError: A chain is missing from the registry
            DecodeError: Sender or receiver is malformed
            EncodeError: The order cannot be encoded
        """
        route = self.routes.get_route(src, dest, denom)
        origin = self._cosmos_origin(route.src)
        link = self._hub_link(route.dest)

        hub = await self.registry.by_universal_id(HUB_CHAIN_ID)
        destination = await self.registry.by_universal_id(link.evm_chain_id)

        sender_display = CosmosDisplay(sender)
        to_canonical(sender_display, origin.bech32_prefix)
        receiver_display = EvmDisplay(receiver)
        to_canonical(receiver_display)

        # Refunds land on the sender's own account on the hub
        refund_receiver = with_prefix(sender_display, HUB_BECH32_PREFIX)

        order = TokenOrder(
            source=hub,
            destination=destination,
            sender=refund_receiver,
            receiver=receiver_display,
            base_token=route.base_token,
            base_amount=amount,
            quote_token=route.quote_token,
            quote_amount=amount,
            kind="solve",
            metadata=route.metadata,
        )

        salt = self._next_salt()
        timeout_timestamp = self.clock_ns() + TIMEOUT_24H_NS
        instruction = await self.encoder.encode(order)

        packet_hash = None
        if self.compute_packet_hash:
            # The hub contract sees the ibc-hooks intermediary as the caller
            intermediary = derive_intermediate_sender(
                origin.hub_channel, sender_display.address, HUB_BECH32_PREFIX
            )
            packet_hash = compute_packet_hash(
                sender=intermediary.address.encode("utf-8"),
                raw_salt=salt,
                path=ZKGM_PATH_DIRECT,
                instruction=instruction,
                source_channel_id=link.hub_channel_id,
                destination_channel_id=link.evm_channel_id,
                timeout_timestamp=timeout_timestamp,
            )

        memo = {
            "wasm": {
                "contract": link.hub_zkgm_address,
                "msg": {
                    "send": {
                        "channel_id": link.hub_channel_id,
                        "timeout_height": "0",
                        "timeout_timestamp": str(timeout_timestamp),
                        "salt": "0x" + salt.hex(),
                        "instruction": instruction.to_hex(),
                    }
                },
            }
        }

        logger.info(
            f"Built {route.src} -> {route.dest} transfer of {amount} {denom}"
            + (f" (packet {packet_hash})" if packet_hash else ""),
            extra=LogContext(
                component="builder",
                operation="build_from_cosmos",
                chain_id=hub.universal_chain_id,
                packet_hash=packet_hash,
            ).as_extra(),
        )
        return CosmosTransfer(
            contract=link.hub_zkgm_address,
            memo=memo,
            instruction=instruction,
            salt="0x" + salt.hex(),
            timeout_timestamp=timeout_timestamp,
            packet_hash=packet_hash,
            sender=sender_display.address,
            denom=denom,
            amount=amount,
            source_channel=origin.transfer_channel,
        )

    async def build_from_evm(
        self, src: str, dest: str, sender: str, receiver: str, denom: str, amount: int
    ) -> EvmTransfer:
        """
        Build the UCS03 ``send`` transaction for an EVM -> Cosmos transfer.

        Args:
            src: EVM chain tag
            dest: Cosmos chain tag
            sender: EVM account that will sign
            receiver: Bech32 recipient on the destination chain
            denom: Route denom
            amount: Amount in base units

        Raises:
            RouteNotFoundError: No route for (src, dest, denom)
            ChainNotFoundError: A chain is missing from the registry
            AddressDerivationError: The proxy address cannot be derived
            DecodeError: Sender or receiver is malformed
            EncodeError: The batch cannot be encoded
        """
        route = self.routes.get_route(src, dest, denom)
        link = self._hub_link(route.src)
        origin = self._cosmos_origin(route.dest)

        source = await self.registry.by_universal_id(link.evm_chain_id)
        hub = await self.registry.by_universal_id(HUB_CHAIN_ID)

        sender_display = EvmDisplay(sender)
        to_canonical(sender_display)
        receiver_display = CosmosDisplay(receiver)
        to_canonical(receiver_display, origin.bech32_prefix)

        proxy = predict_proxy(ZKGM_PATH_DIRECT, link.hub_channel_id, sender_display, link)
        timeout_timestamp = self.clock_ns() + TIMEOUT_24H_NS

        order = TokenOrder(
            source=source,
            destination=hub,
            sender=sender_display,
            receiver=proxy,
            base_token=route.base_token,
            base_amount=amount,
            quote_token=route.quote_token,
            quote_amount=amount,
            kind="solve",
            metadata=route.metadata,
        )
        forward = Call(
            sender=sender_display,
            contract_address=proxy,
            contract_calldata=self._ibc_transfer_calldata(
                origin, receiver_display, route, amount, timeout_timestamp
            ),
            eureka=False,
        )

        salt = self._next_salt()
        request = ZkgmClientRequest(
            source=source,
            destination=hub,
            channel_id=link.evm_channel_id,
            ucs03_address=link.ucs03_evm_address,
            instruction=Batch.make([order, forward]),
            salt=salt,
            timeout_timestamp=timeout_timestamp,
            destination_channel_id=link.hub_channel_id if self.compute_packet_hash else None,
        )
        prepared = await self.zkgm_client.prepare(request, sender=sender_display)

        approval = None
        if route.requires_approval:
            approval = ApprovalRequirement(
                token=EvmDisplay(route.base_token), spender=link.ucs03_evm, amount=amount
            )

        logger.info(
            f"Built {route.src} -> {route.dest} transfer of {amount} {denom} via proxy "
            f"{proxy.address}" + (", approval required" if approval else ""),
            extra=LogContext(
                component="builder",
                operation="build_from_evm",
                chain_id=source.universal_chain_id,
                packet_hash=prepared.packet_hash,
            ).as_extra(),
        )
        return EvmTransfer(
            chain=source,
            sender=sender_display,
            to=prepared.to,
            data=prepared.data,
            value=prepared.value,
            packet_hash=prepared.packet_hash,
            proxy=proxy,
            salt="0x" + salt.hex(),
            timeout_timestamp=timeout_timestamp,
            approval=approval,
        )

    @staticmethod
    def _ibc_transfer_calldata(
        origin: CosmosOrigin,
        receiver: CosmosDisplay,
        route: Route,
        amount: int,
        timeout_timestamp: int,
    ) -> str:
        # CosmWasm messages the proxy executes once funds arrive
        messages = [
            {
                "ibc": {
                    "transfer": {
                        "channel_id": origin.hub_channel,
                        "to_address": receiver.address,
                        "amount": {"denom": route.quote_token, "amount": str(amount)},
                        "timeout": {"timestamp": str(timeout_timestamp)},
                        "memo": "",
                    }
                }
            }
        ]
        return "0x" + compact_json(messages).encode("utf-8").hex()

    def _next_salt(self) -> bytes:
        salt = bytes(self.salt_source())
        if len(salt) != SALT_LENGTH:
            raise EncodeError(
                f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}", field="salt"
            )
        return salt

    @staticmethod
    def _universal_id(tag: str) -> str:
        universal_id = CHAIN_TAGS.get(tag.lower())
        if universal_id is None:
            raise RouteNotFoundError(f"Unknown chain: {tag}", src=tag)
        return universal_id

    @staticmethod
    def _hub_link(tag: str) -> HubLink:
        link = HUB_LINKS.get(tag.lower())
        if link is None:
            raise ConfigurationError(
                f"No ZKGM link configured for {tag}", config_key="hub_links", config_value=tag
            )
        return link

    @staticmethod
    def _cosmos_origin(tag: str) -> CosmosOrigin:
        origin = COSMOS_ORIGINS.get(tag.lower())
        if origin is None:
            raise ConfigurationError(
                f"No ICS-20 link configured for {tag}",
                config_key="cosmos_origins",
                config_value=tag,
            )
        return origin
