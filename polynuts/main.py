"""
Main entry point for the Polynuts gateway.

Usage:
    python -m polynuts.main serve [--host HOST] [--port PORT]
    python -m polynuts.main markets [--active] [--closed] [--limit N]
"""

import argparse
import asyncio
import sys
from typing import Optional

from .api.server import run_server
from .clients.polymarket_client import PolymarketClient
from .config import Settings, load_settings
from .exceptions import PolynutsError, UpstreamError
from .utils.logger import setup_logging, get_logger

logger = get_logger("main")


async def show_markets(settings: Settings, active: Optional[bool], closed: Optional[bool], limit: int) -> int:
    """Print the first few markets, like a smoke test of the credentials."""
    credentials = settings.require_credentials()
    print(f"Polymarket API client initialized (network: {credentials.network.value})")

    async with PolymarketClient(credentials) as client:
        markets = await client.get_markets(active=active, closed=closed, limit=limit)

    if not markets:
        print("No markets found")
        return 0

    print(f"\nFound {len(markets)} markets:")
    for index, market in enumerate(markets[:5], start=1):
        print(f"\n{index}. {market.question or market.id}")
        if market.volume:
            print(f"   Volume: ${market.volume}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="polynuts", description="Polymarket gateway")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    markets = sub.add_parser("markets", help="List markets from the exchange")
    markets.add_argument("--active", action="store_true", help="Only active markets")
    markets.add_argument("--closed", action="store_true", help="Only closed markets")
    markets.add_argument("--limit", type=int, default=10)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings.logging.log_level, settings.logging.json_logging)

    if args.command == "serve":
        logger.info("Starting Polynuts API", extra={"host": args.host or settings.server.host})
        run_server(settings, host=args.host, port=args.port)
        return 0

    try:
        return asyncio.run(
            show_markets(
                settings,
                active=True if args.active else None,
                closed=True if args.closed else None,
                limit=args.limit,
            )
        )
    except PolynutsError as e:
        print(f"Error: {e}", file=sys.stderr)
        if isinstance(e, UpstreamError):
            print(f"API Response: {e.body}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
