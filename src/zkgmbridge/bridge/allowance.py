"""
ERC-20 allowance step for EVM-origin transfers.

The UCS03 contract pulls contract tokens with ``transferFrom``, so the
sender must have approved at least the transfer amount before ``send``.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from ..chains.evm import EvmQueryClient, encode_approve_call
from ..chains.wallet import EvmWallet
from ..crypto.addresses import EvmDisplay
from ..errors import AllowanceError, BackoffStrategy, BridgeError, UpstreamQueryError
from .builder import ApprovalRequirement

logger = logging.getLogger(__name__)

RECEIPT_STATUS_SUCCESS = 1


class AllowanceManager:
    """Checks and raises ERC-20 allowances."""

    def __init__(
        self,
        query: EvmQueryClient,
        wallet: EvmWallet,
        poll_interval: float = 2.0,
        timeout: float = 120.0,
        backoff: Optional[BackoffStrategy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.query = query
        self.wallet = wallet
        self.timeout = timeout
        self.backoff = backoff or BackoffStrategy.fixed(poll_interval)
        self.clock = clock
        self.sleep = sleep

    async def ensure_allowance(
        self, requirement: ApprovalRequirement, owner: EvmDisplay
    ) -> Optional[str]:
        """
        Make sure ``owner`` has approved ``requirement.amount``.

        Returns:
            Hash of the mined approval transaction, or None when the
            existing allowance already covers the amount

        Raises:
            AllowanceError: Approval could not be sent, reverted or was not
                mined before the timeout
            UpstreamQueryError: The allowance could not be read
        """
        token = requirement.token
        current = await self.query.allowance(token, owner, requirement.spender)
        if current >= requirement.amount:
            logger.debug(
                f"Allowance {current} of {token.address} covers {requirement.amount}"
            )
            return None

        logger.info(
            f"Approving {requirement.amount} of {token.address} "
            f"for {requirement.spender.address}"
        )
        try:
            tx_hash = await self.wallet.send_transaction(
                {
                    "to": token.address,
                    "data": encode_approve_call(requirement.spender, requirement.amount),
                    "value": 0,
                }
            )
        except Exception as e:
            reason = e.message if isinstance(e, BridgeError) else str(e)
            raise AllowanceError(
                f"Approval of {token.address} could not be sent: {reason}",
                token=token.address,
                cause=e,
            ) from e

        await self.wait_for_receipt(tx_hash, token)
        logger.info(f"Approval {tx_hash} confirmed")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str, token: EvmDisplay) -> dict:
        """Poll until ``tx_hash`` is mined successfully."""
        start = self.clock()
        attempt = 0
        while self.clock() - start < self.timeout:
            try:
                receipt = await self.query.get_transaction_receipt(tx_hash)
            except UpstreamQueryError as e:
                logger.warning(f"Receipt query for {tx_hash} failed: {e.message}")
                receipt = None

            if receipt is not None:
                if receipt.get("status") != RECEIPT_STATUS_SUCCESS:
                    raise AllowanceError(
                        f"Approval transaction {tx_hash} reverted",
                        token=token.address,
                        transaction_hash=tx_hash,
                    )
                return receipt

            attempt += 1
            remaining = self.timeout - (self.clock() - start)
            if remaining <= 0:
                break
            await self.sleep(min(self.backoff.get_delay(attempt), remaining))

        raise AllowanceError(
            f"Approval transaction {tx_hash} not mined within {self.timeout:g}s",
            token=token.address,
            transaction_hash=tx_hash,
        )
