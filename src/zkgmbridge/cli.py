"""
Command-line interface for zkgmbridge.

    zkgmbridge memo --src atomone --dest ethereum --sender atone1... \\
        --receiver 0x... --denom uatone --amount 20000
    zkgmbridge evm-tx --src ethereum --dest atomone --sender 0x... \\
        --receiver atone1... --denom uatone --amount 20000
    zkgmbridge wait 0x<packet hash> --status PACKET_RECV
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .bridge.builder import TransactionBuilder
from .chains.registry import ChainRegistry
from .config import BridgeConfig
from .errors import BridgeError
from .indexer.graphql import PacketStatus, UnionIndexerClient
from .indexer.tracker import PacketTracker
from .logging import LogConfig, LogLevel, setup_logging
from .routes import load_routes

logger = logging.getLogger(__name__)


def _add_transfer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--src", required=True, help="Source chain tag")
    parser.add_argument("--dest", required=True, help="Destination chain tag")
    parser.add_argument("--sender", required=True, help="Sender address on the source chain")
    parser.add_argument("--receiver", required=True, help="Recipient on the destination chain")
    parser.add_argument("--denom", required=True, help="Denom as listed in the route table")
    parser.add_argument("--amount", required=True, type=int, help="Amount in base units")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zkgmbridge",
        description="Build and track AtomOne <-> EVM transfers over Union ZKGM",
    )
    parser.add_argument("--routes", help="Route table JSON file (overrides ZKGM_ROUTES_FILE)")
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Log level (overrides ZKGM_LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format", choices=["text", "json"], help="Log format (overrides ZKGM_LOG_FORMAT)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    memo = subparsers.add_parser("memo", help="Build the hub memo for a Cosmos-origin transfer")
    _add_transfer_arguments(memo)
    memo.add_argument(
        "--msg-transfer",
        action="store_true",
        help="Print the full ICS-20 MsgTransfer instead of the memo",
    )

    evm_tx = subparsers.add_parser("evm-tx", help="Build the transaction for an EVM-origin transfer")
    _add_transfer_arguments(evm_tx)

    wait = subparsers.add_parser("wait", help="Wait for a packet to reach a status")
    wait.add_argument("packet_hash", help="0x packet hash")
    wait.add_argument(
        "--status",
        default=PacketStatus.PACKET_ACK.name,
        choices=[status.name for status in PacketStatus],
        help="Target status (default: PACKET_ACK)",
    )
    wait.add_argument("--timeout", type=float, help="Seconds to wait (overrides ZKGM_TRACK_TIMEOUT)")
    wait.add_argument(
        "--poll-interval", type=float, help="Seconds between polls (overrides ZKGM_POLL_INTERVAL)"
    )

    return parser


def _builder(config: BridgeConfig) -> TransactionBuilder:
    if not config.routes_file:
        raise BridgeError("No route table given; pass --routes or set ZKGM_ROUTES_FILE")
    registry = ChainRegistry().with_rpc_overrides(config.rpc_overrides())
    return TransactionBuilder(
        registry, load_routes(config.routes_file), compute_packet_hash=config.compute_packet_hash
    )


async def _run_memo(args: argparse.Namespace, config: BridgeConfig) -> dict:
    transfer = await _builder(config).build_from_cosmos(
        args.src, args.dest, args.sender, args.receiver, args.denom, args.amount
    )
    if args.msg_transfer:
        return {"msg": transfer.to_msg_transfer(), "packet_hash": transfer.packet_hash}
    return {"memo": transfer.memo, "packet_hash": transfer.packet_hash}


async def _run_evm_tx(args: argparse.Namespace, config: BridgeConfig) -> dict:
    transfer = await _builder(config).build_from_evm(
        args.src, args.dest, args.sender, args.receiver, args.denom, args.amount
    )
    return transfer.to_dict()


async def _run_wait(args: argparse.Namespace, config: BridgeConfig) -> dict:
    async with UnionIndexerClient(config.indexer_url, timeout=config.indexer_timeout) as indexer:
        tracker = PacketTracker(indexer)
        details = await tracker.wait_for_status(
            args.packet_hash,
            PacketStatus[args.status],
            timeout=args.timeout if args.timeout is not None else config.track_timeout,
            poll_interval=(
                args.poll_interval if args.poll_interval is not None else config.poll_interval
            ),
        )
    return details.to_dict()


COMMANDS = {
    "memo": _run_memo,
    "evm-tx": _run_evm_tx,
    "wait": _run_wait,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = BridgeConfig.from_env()
        if args.routes:
            config.routes_file = args.routes
        if args.log_level:
            config.log_level = args.log_level
        if args.log_format:
            config.log_format = args.log_format
        setup_logging(
            LogConfig(level=LogLevel.parse(config.log_level), format_type=config.log_format)
        )
        result = asyncio.run(COMMANDS[args.command](args, config))
    except BridgeError as e:
        logger.error(str(e))
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
