"""
Chain registry and EVM adapters.
"""

from .evm import (
    EvmQueryClient,
    encode_allowance_call,
    encode_approve_call,
    encode_balance_of_call,
)
from .registry import DEFAULT_CHAINS, ChainEndpoint, ChainRegistry
from .wallet import EvmWallet, LocalEvmWallet

__all__ = [
    "ChainEndpoint",
    "ChainRegistry",
    "DEFAULT_CHAINS",
    "EvmQueryClient",
    "encode_allowance_call",
    "encode_approve_call",
    "encode_balance_of_call",
    "EvmWallet",
    "LocalEvmWallet",
]
