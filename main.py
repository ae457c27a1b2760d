# main.py

"""Entry point for the pricewatch command-line application."""

import argparse
import asyncio
import logging
import os
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("pricewatch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    strategy_ids = ", ".join(s["id"] for s in Settings.DISCOVERY_STRATEGIES)

    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Product price tracking and cross-platform comparison.",
        epilog=f"Discovery strategies: {strategy_ids}",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format (default: table).",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=None,
        help="User id to act as (default: $PRICEWATCH_USER_ID).",
    )
    parser.add_argument(
        "--strategy",
        default=None,
        choices=[s["id"] for s in Settings.DISCOVERY_STRATEGIES],
        help="Candidate discovery strategy for search/compare.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show info-level log messages on stderr.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    preview = commands.add_parser(
        "preview", help="Extract and score a product page.",
    )
    preview.add_argument("url")

    track = commands.add_parser("track", help="Start tracking a product.")
    track.add_argument("url")

    compare = commands.add_parser(
        "compare", help="Find the same product on other platforms.",
    )
    compare.add_argument("url")

    search = commands.add_parser(
        "search", help="Find listings for a product name.",
    )
    search.add_argument("name", nargs="+")

    commands.add_parser("list", help="List tracked products.")

    history = commands.add_parser(
        "history", help="Show a tracked product's price history.",
    )
    history.add_argument("product_id", type=int)

    delete = commands.add_parser("delete", help="Stop tracking a product.")
    delete.add_argument("product_id", type=int)

    verdict = commands.add_parser(
        "verdict", help="AI buy/wait verdict for a tracked product.",
    )
    verdict.add_argument("product_id", type=int)

    sweep = commands.add_parser(
        "sweep", help="Re-check all tracked prices (scheduled job).",
    )
    sweep.add_argument(
        "--token",
        default=os.getenv("PRICEWATCH_SWEEP_TOKEN"),
        help="Shared secret (default: $PRICEWATCH_SWEEP_TOKEN).",
    )
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run one subcommand and return its exit code."""
    from src.cli import runner

    if args.command == "sweep":
        return runner.run_sweep(args.token)

    service = runner.build_service(args.user, args.strategy)
    fmt = args.output_format
    if args.command == "preview":
        return runner.run_preview(service, args.url, fmt)
    if args.command == "track":
        return runner.run_track(service, args.url, fmt)
    if args.command == "compare":
        return asyncio.run(runner.run_compare(service, args.url, fmt))
    if args.command == "search":
        return runner.run_search(service, " ".join(args.name), fmt)
    if args.command == "list":
        return runner.run_list(service, fmt)
    if args.command == "history":
        return runner.run_history(service, args.product_id, fmt)
    if args.command == "delete":
        return runner.run_delete(service, args.product_id)
    if args.command == "verdict":
        return runner.run_verdict(service, args.product_id)
    return 2


def main() -> None:
    """Parse arguments, set up logging and run the chosen command."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose, command=args.command)
    logger.info("pricewatch %s starting, log file: %s", args.command, log_file)

    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error during %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricewatch %s finished", args.command)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
