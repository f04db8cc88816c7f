"""
EVM query layer.

Read-only access to an EVM chain over JSON-RPC: raw ``eth_call``, native and
ERC-20 balances, ERC-20 allowances and transaction receipts. Transport
failures surface as :class:`UpstreamQueryError`.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3Exception

from ..crypto.addresses import ChainKind, EvmDisplay, to_canonical
from ..errors import ConfigurationError, UpstreamQueryError, ValidationError
from .registry import ChainEndpoint

logger = logging.getLogger(__name__)

ALLOWANCE_SELECTOR = function_signature_to_4byte_selector("allowance(address,address)")
APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")
BALANCE_OF_SELECTOR = function_signature_to_4byte_selector("balanceOf(address)")

_TRANSPORT_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError)


def encode_allowance_call(owner: EvmDisplay, spender: EvmDisplay) -> str:
    """Calldata for ``allowance(owner, spender)``."""
    args = abi_encode(
        ["address", "address"], [to_canonical(owner), to_canonical(spender)]
    )
    return "0x" + (ALLOWANCE_SELECTOR + args).hex()


def encode_approve_call(spender: EvmDisplay, amount: int) -> str:
    """Calldata for ``approve(spender, amount)``."""
    args = abi_encode(["address", "uint256"], [to_canonical(spender), amount])
    return "0x" + (APPROVE_SELECTOR + args).hex()


def encode_balance_of_call(owner: EvmDisplay) -> str:
    """Calldata for ``balanceOf(owner)``."""
    args = abi_encode(["address"], [to_canonical(owner)])
    return "0x" + (BALANCE_OF_SELECTOR + args).hex()


class EvmQueryClient:
    """JSON-RPC reader for one EVM chain."""

    def __init__(self, chain: ChainEndpoint, web3: Optional[AsyncWeb3] = None):
        if chain.kind is not ChainKind.EVM:
            raise ValidationError(
                f"{chain.universal_chain_id} is not an EVM chain", field="chain"
            )
        if web3 is None:
            if not chain.rpc_url:
                raise ConfigurationError(
                    f"No RPC URL configured for {chain.universal_chain_id}",
                    config_key="rpc_urls",
                )
            web3 = AsyncWeb3(AsyncHTTPProvider(chain.rpc_url))
        self.chain = chain
        self.web3 = web3

    async def call(self, to: EvmDisplay, data: str) -> bytes:
        """Run ``eth_call`` against the latest block."""
        try:
            result = await self.web3.eth.call({"to": to.address, "data": data})
        except _TRANSPORT_ERRORS as e:
            raise self._upstream_error("eth_call", e) from e
        return bytes(result)

    async def allowance(
        self, token: EvmDisplay, owner: EvmDisplay, spender: EvmDisplay
    ) -> int:
        """ERC-20 allowance granted by ``owner`` to ``spender``."""
        raw = await self.call(token, encode_allowance_call(owner, spender))
        return self._decode_uint256(raw, "allowance", token)

    async def balance_of(self, token: EvmDisplay, owner: EvmDisplay) -> int:
        """ERC-20 balance of ``owner``."""
        raw = await self.call(token, encode_balance_of_call(owner))
        return self._decode_uint256(raw, "balanceOf", token)

    async def get_balance(self, owner: EvmDisplay) -> int:
        """Native balance of ``owner`` in wei."""
        try:
            balance = await self.web3.eth.get_balance(owner.address)
        except _TRANSPORT_ERRORS as e:
            raise self._upstream_error("eth_getBalance", e) from e
        return int(balance)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """
        Receipt of a mined transaction.

        Returns:
            The receipt, or None while the transaction is pending
        """
        try:
            receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        except _TRANSPORT_ERRORS as e:
            raise self._upstream_error("eth_getTransactionReceipt", e) from e
        return dict(receipt) if receipt is not None else None

    def _decode_uint256(self, raw: bytes, method: str, token: EvmDisplay) -> int:
        try:
            (value,) = abi_decode(["uint256"], raw)
        except DecodingError as e:
            raise UpstreamQueryError(
                f"Malformed {method} response from {token.address}",
                endpoint=self.chain.rpc_url,
                cause=e,
            ) from e
        return value

    def _upstream_error(self, method: str, cause: Exception) -> UpstreamQueryError:
        logger.error(f"{method} on {self.chain.universal_chain_id} failed: {cause}")
        return UpstreamQueryError(
            f"{method} failed on {self.chain.universal_chain_id}: {cause}",
            endpoint=self.chain.rpc_url,
            cause=cause,
        )
