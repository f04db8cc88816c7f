"""
EVM wallet interface.

The bridge only needs three things from a wallet: its accounts, a way to
submit a transaction and a way to sign a message. :class:`LocalEvmWallet`
implements them with an in-process ``eth_account`` key for scripts and
tests; browser or hardware wallets plug in through :class:`EvmWallet`.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from ..crypto.addresses import EvmDisplay
from ..errors import ConfigurationError, UpstreamQueryError
from .registry import ChainEndpoint

logger = logging.getLogger(__name__)

DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"


class EvmWallet(ABC):
    """Abstract EVM wallet."""

    @abstractmethod
    async def get_addresses(self) -> List[EvmDisplay]:
        """Accounts controlled by the wallet, primary first."""

    @abstractmethod
    async def send_transaction(self, transaction: Dict[str, Any]) -> str:
        """Sign and broadcast ``{to, data, value}``; return the tx hash."""

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        """EIP-191 personal signature as ``0x`` hex."""


class LocalEvmWallet(EvmWallet):
    """Wallet backed by a local private key."""

    def __init__(self, account: LocalAccount, chain: ChainEndpoint, web3: Optional[AsyncWeb3] = None):
        if web3 is None:
            if not chain.rpc_url:
                raise ConfigurationError(
                    f"No RPC URL configured for {chain.universal_chain_id}",
                    config_key="rpc_urls",
                )
            web3 = AsyncWeb3(AsyncHTTPProvider(chain.rpc_url))
        self.account = account
        self.chain = chain
        self.web3 = web3
        # Serialises nonce assignment for concurrent sends from one key
        self._send_lock = asyncio.Lock()

    @classmethod
    def from_key(cls, private_key: str, chain: ChainEndpoint, **kwargs) -> "LocalEvmWallet":
        return cls(Account.from_key(private_key), chain, **kwargs)

    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: str,
        chain: ChainEndpoint,
        account_path: str = DEFAULT_DERIVATION_PATH,
        **kwargs,
    ) -> "LocalEvmWallet":
        Account.enable_unaudited_hdwallet_features()
        return cls(Account.from_mnemonic(mnemonic, account_path=account_path), chain, **kwargs)

    @property
    def address(self) -> EvmDisplay:
        return EvmDisplay(self.account.address)

    async def get_addresses(self) -> List[EvmDisplay]:
        return [self.address]

    async def send_transaction(self, transaction: Dict[str, Any]) -> str:
        """
        Fill nonce, gas and chain id, sign and broadcast.

        Raises:
            UpstreamQueryError: The node rejected or could not be reached
        """
        async with self._send_lock:
            try:
                tx = await self._fill_transaction(transaction)
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
            except (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Transaction to {transaction.get('to')} failed: {e}")
                raise UpstreamQueryError(
                    f"Failed to send transaction on {self.chain.universal_chain_id}: {e}",
                    endpoint=self.chain.rpc_url,
                    cause=e,
                ) from e

        tx_hash_hex = self.web3.to_hex(tx_hash)
        logger.info(f"Sent transaction {tx_hash_hex} from {self.account.address}")
        return tx_hash_hex

    async def sign_message(self, message: str) -> str:
        signed = self.account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()

    async def _fill_transaction(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        tx = {
            "from": self.account.address,
            "to": AsyncWeb3.to_checksum_address(transaction["to"]),
            "data": transaction.get("data", "0x"),
            "value": int(transaction.get("value", 0)),
        }
        tx["nonce"] = await self.web3.eth.get_transaction_count(
            self.account.address, "pending"
        )
        tx["chainId"] = self.chain.evm_chain_id or await self.web3.eth.chain_id
        tx["gasPrice"] = await self.web3.eth.gas_price
        tx["gas"] = await self.web3.eth.estimate_gas(tx)
        return tx
