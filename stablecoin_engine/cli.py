"""Command-line interface for the stablecoin engine."""
from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation

from .config import AppConfig, load_config
from .constants import FEED_DECIMALS, PRECISION
from .health import calculate_health_factor, format_health_factor, is_solvent
from .logging_setup import configure_logging
from .oracles import AggregatorFeed, OracleAdapter, PythOracle


def _collateral_arg(value: str) -> tuple[str, Decimal]:
    symbol, sep, amount = value.partition("=")
    if not sep or not symbol:
        raise argparse.ArgumentTypeError(f"expected SYMBOL=AMOUNT, got '{value}'")
    try:
        return symbol.upper(), Decimal(amount)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount '{amount}'") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="stablecoin-engine",
        description="Collateralized stablecoin engine tools",
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

    sub.add_parser("prices", help="Fetch live prices for configured collateral")

    health_parser = sub.add_parser(
        "health", help="Health factor of a hypothetical position at live prices"
    )
    health_parser.add_argument(
        "--collateral",
        action="append",
        type=_collateral_arg,
        default=[],
        metavar="SYMBOL=AMOUNT",
        help="Deposited collateral in whole units (repeatable)",
    )
    health_parser.add_argument(
        "--debt",
        type=Decimal,
        default=Decimal(0),
        help="Minted DSC in whole units",
    )

    return parser


async def _prices(config: AppConfig) -> int:
    oracle = PythOracle(config.price_oracle.pyth, config.feed_ids)
    quotes = await oracle.fetch_quotes()
    if not quotes:
        print("No prices available")
        return 1
    for symbol, quote in sorted(quotes.items()):
        print(f"{symbol:>8}  ${quote.price / 10**FEED_DECIMALS:,.4f}")
    return 0


async def _health(config: AppConfig, args: argparse.Namespace) -> int:
    decimals = {c.symbol: c.decimals for c in config.collateral}
    unknown = [symbol for symbol, _ in args.collateral if symbol not in decimals]
    if unknown:
        print(f"Unknown collateral: {', '.join(unknown)}")
        return 1

    feeds = {symbol: AggregatorFeed(f"{symbol} / USD") for symbol, _ in args.collateral}
    oracle = PythOracle(config.price_oracle.pyth, config.feed_ids)
    if await oracle.refresh(feeds) < len(feeds):
        print("Could not fetch prices for every collateral asset")
        return 1

    adapter = OracleAdapter(feeds)
    collateral_value = 0
    for symbol, amount in args.collateral:
        quantity = int(amount * 10 ** decimals[symbol])
        value = adapter.value_of(symbol, quantity)
        collateral_value += value
        print(f"{symbol:>8}  {amount} = ${value / PRECISION:,.2f}")

    debt = int(args.debt * PRECISION)
    health_factor = calculate_health_factor(debt, collateral_value)
    print(f"Collateral value: ${collateral_value / PRECISION:,.2f}")
    print(f"Debt: ${debt / PRECISION:,.2f} DSC")
    print(f"Health factor: {format_health_factor(health_factor)}")
    print("Status: " + ("solvent" if is_solvent(health_factor) else "LIQUIDATABLE"))
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "prices":
        return await _prices(config)
    if args.command == "health":
        return await _health(config, args)
    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
