"""
Bridge transfer building, approval and orchestration.
"""

from .allowance import AllowanceManager
from .builder import (
    ApprovalRequirement,
    BuildResult,
    CosmosTransfer,
    EvmTransfer,
    TransactionBuilder,
    random_salt,
)
from .session import BridgeSession

__all__ = [
    "TransactionBuilder",
    "CosmosTransfer",
    "EvmTransfer",
    "ApprovalRequirement",
    "BuildResult",
    "random_salt",
    "AllowanceManager",
    "BridgeSession",
]
