"""Command-line interface for the shuttle position monitor."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .chains.evm import EvmClient
from .config import AppConfig, load_config
from .errors import PositionError, UpstreamReadFailure
from .formatting import to_jsonable
from .logging_setup import configure_logging
from .models import PositionQuery
from .protocols.shuttle import build_registry
from .services import Monitor, PositionAggregator

logger = logging.getLogger(__name__)

QUERY_COMMANDS = ("snapshot", "borrower", "lender", "borrower-all", "lender-all", "batch")


def _parse_query(value: str) -> PositionQuery:
    """Parse ``MARKET_ID:ACCOUNT`` into a PositionQuery."""
    market_id, sep, account = value.partition(":")
    if not sep or not account:
        raise argparse.ArgumentTypeError(f"expected MARKET_ID:ACCOUNT, got '{value}'")
    try:
        return PositionQuery(int(market_id), account)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid market id in '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="shuttle-positions",
        description="Multi-market lending position reader and monitor",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    snapshot = sub.add_parser("snapshot", help="Collateral and debt metrics of one market")
    snapshot.add_argument("market_id", type=int)

    for name, help_text in (
        ("borrower", "Borrower position of an account in one market"),
        ("lender", "Lender position of an account in one market"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("market_id", type=int)
        p.add_argument("account")

    for name, help_text in (
        ("borrower-all", "Borrower totals of an account across every market"),
        ("lender-all", "Lender totals of an account across every market"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("account")

    batch = sub.add_parser("batch", help="Compact positions for MARKET_ID:ACCOUNT pairs")
    batch.add_argument("queries", nargs="+", type=_parse_query, metavar="MARKET_ID:ACCOUNT")

    sub.add_parser("check", help="Single position check with alerts")
    sub.add_parser("report", help="Generate daily position report")

    monitor_parser = sub.add_parser("monitor", help="Continuous monitoring loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


async def _query(args: argparse.Namespace, config: AppConfig) -> dict[str, Any]:
    """Run one read-only query command; returns the JSON-ready answer."""
    client = EvmClient(config.chain)
    registry = build_registry(config.registry, client)
    aggregator = PositionAggregator(config.aggregator.max_concurrency)

    # Reads are not pinned to this block; it dates the answer, nothing more.
    try:
        block = await client.block_number()
    except RuntimeError as e:
        raise UpstreamReadFailure("rpc", "eth_blockNumber", str(e)) from e

    if args.command == "snapshot":
        call = aggregator.get_market_snapshot(registry, args.market_id)
    elif args.command == "borrower":
        call = aggregator.borrower_position(registry, args.market_id, args.account)
    elif args.command == "lender":
        call = aggregator.lender_position(registry, args.market_id, args.account)
    elif args.command == "borrower-all":
        call = aggregator.borrower_position_all_markets(registry, args.account)
    elif args.command == "lender-all":
        call = aggregator.lender_position_all_markets(registry, args.account)
    else:
        call = aggregator.batch_positions(registry, args.queries)

    result = await asyncio.wait_for(call, config.aggregator.call_timeout)
    return {"block": block, "result": to_jsonable(result)}


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the exit status."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command in QUERY_COMMANDS:
        try:
            result = await _query(args, config)
        except (PositionError, ValueError, asyncio.TimeoutError) as e:
            logger.error("%s failed: %s", args.command, e)
            return 1
        print(json.dumps(result, indent=2))
        return 0

    monitor = Monitor(config)
    if args.command == "check":
        await monitor.check_and_alert()
    elif args.command == "report":
        await monitor.generate_daily_report()
    elif args.command == "monitor":
        await monitor.run_continuous(args.interval)
    else:
        build_parser().print_help()
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
