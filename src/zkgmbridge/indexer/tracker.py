"""
Packet status tracker.

Polls the indexer until a packet reaches a target lifecycle status. Status
only ever moves forward, so the first observation at or past the target
ends the wait.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from ..errors import BackoffStrategy, IndexerQueryError, TimeoutError
from ..logging import LogContext
from .graphql import PacketDetails, PacketStatus, UnionIndexerClient, status_reached

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 15.0


def _short(packet_hash: str) -> str:
    return f"{packet_hash[:10]}..."


def _log_context(packet_hash: str) -> Dict[str, Any]:
    return LogContext(component="tracker", packet_hash=packet_hash).as_extra()


class PacketTracker:
    """Wait for packets to progress on the indexer.

    ``clock`` and ``sleep`` are injectable so tests can drive time; both
    work in seconds.
    """

    def __init__(
        self,
        indexer: UnionIndexerClient,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        backoff: Optional[BackoffStrategy] = None,
    ):
        self.indexer = indexer
        self.clock = clock
        self.sleep = sleep
        self.backoff = backoff

    async def wait_for_status(
        self,
        packet_hash: str,
        target: PacketStatus,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        cancel: Optional[asyncio.Event] = None,
    ) -> PacketDetails:
        """
        Poll until the packet reaches ``target`` or a later status.

        Indexer failures and not-yet-indexed packets are logged and polled
        again; only the deadline ends the wait unsuccessfully.

        Args:
            packet_hash: ``0x`` packet hash
            target: Status to wait for
            timeout: Seconds before giving up
            poll_interval: Seconds between polls (the first poll is immediate)
            cancel: Setting this event stops the wait

        Returns:
            The first packet observation at or past ``target``

        Raises:
            TimeoutError: Deadline passed; carries the last seen status
            asyncio.CancelledError: ``cancel`` was set
        """
        backoff = self.backoff or BackoffStrategy.fixed(poll_interval)
        log_extra = _log_context(packet_hash)
        start = self.clock()
        last_status = ""
        attempt = 0

        while self.clock() - start < timeout:
            self._check_cancelled(cancel, packet_hash)
            elapsed = round(self.clock() - start)
            try:
                packets = await self.indexer.query_packet_details(packet_hash)
            except IndexerQueryError as e:
                logger.warning(
                    f"Indexer query error for {_short(packet_hash)}: {e.message}",
                    extra=log_extra,
                )
            else:
                if packets:
                    packet = packets[0]
                    if packet.status != last_status:
                        last_status = packet.status
                        logger.info(
                            f"Packet {_short(packet_hash)} status: {packet.status} "
                            f"({len(packet.traces)} traces, {elapsed}s elapsed)",
                            extra=log_extra,
                        )
                    if status_reached(packet.status, target):
                        return packet
                else:
                    logger.info(
                        f"Packet {_short(packet_hash)} not indexed yet ({elapsed}s elapsed)",
                        extra=log_extra,
                    )

            attempt += 1
            remaining = timeout - (self.clock() - start)
            if remaining <= 0:
                break
            await self._pause(min(backoff.get_delay(attempt), remaining), cancel, packet_hash)

        raise TimeoutError(
            f"Packet {packet_hash} did not reach {target.name} within {timeout:g}s "
            f"(last status: {last_status or 'not found'})",
            timeout_seconds=timeout,
            last_status=last_status or None,
        )

    async def wait_for_completion(
        self,
        packet_hash: str,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        cancel: Optional[asyncio.Event] = None,
    ) -> PacketDetails:
        """Wait for the acknowledgement to land back on the source chain."""
        return await self.wait_for_status(
            packet_hash, PacketStatus.PACKET_ACK, timeout, poll_interval, cancel
        )

    async def _pause(
        self, delay: float, cancel: Optional[asyncio.Event], packet_hash: str
    ) -> None:
        if cancel is None:
            await self.sleep(delay)
            return

        sleeper = asyncio.ensure_future(self.sleep(delay))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        self._check_cancelled(cancel, packet_hash)
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()

    @staticmethod
    def _check_cancelled(cancel: Optional[asyncio.Event], packet_hash: str) -> None:
        if cancel is not None and cancel.is_set():
            logger.info(
                f"Tracking of {_short(packet_hash)} cancelled",
                extra=_log_context(packet_hash),
            )
            raise asyncio.CancelledError(f"Tracking of {packet_hash} cancelled")
