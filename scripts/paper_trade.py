#!/usr/bin/env python3
"""
Paper Trading CLI

Runs the portfolio engine against a portfolio stored under a data directory.
Prices come from CoinGecko by default; pass --price to trade at a fixed quote
(required for tickers CoinGecko does not list).
"""

import argparse
import asyncio
import json
import sys

from loguru import logger

from fiscalwiser.core.constants import CRYPTO_PORTFOLIO_KEY
from fiscalwiser.core.enums import AmountType
from fiscalwiser.core.exceptions.portfolio import FiscalWiserError
from fiscalwiser.core.models.order import Order
from fiscalwiser.core.models.portfolio_engine import PortfolioEngine
from fiscalwiser.core.models.projection import MetricsProjector
from fiscalwiser.settings import Settings, build_engine


def setup_logging(debug: bool = False):
    """Configure logging with loguru."""
    logger.remove()

    level = "DEBUG" if debug else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )


def print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run_order(engine: PortfolioEngine, args: argparse.Namespace) -> None:
    amount_type = AmountType.UNITS if args.units else AmountType.CASH
    if args.command == "buy":
        order = Order.buy(args.asset_id, args.amount, amount_type, args.price)
    else:
        order = Order.sell(args.asset_id, args.amount, amount_type, args.price)
    receipt = await engine.execute(order)
    engine.record_snapshot()
    print_json(receipt.to_dict())


async def run_engine_command(settings: Settings, args: argparse.Namespace) -> None:
    engine = build_engine(settings)
    try:
        if args.command in ("buy", "sell"):
            await run_order(engine, args)
        elif args.command == "reset":
            engine.reset(args.balance)
            print_json(engine.metrics().to_display_dict())
        elif args.command == "refresh":
            quotes = await engine.refresh_prices()
            engine.record_snapshot()
            print_json({asset_id: quote.price for asset_id, quote in quotes.items()})
        else:
            snapshot = engine.metrics().to_display_dict()
            snapshot["history"] = engine.history.values()
            snapshot["trend"] = engine.value_trend()
            print_json(snapshot)
    finally:
        await engine.close()


def run_projection(args: argparse.Namespace) -> None:
    series = MetricsProjector(periods_per_year=args.periods_per_year).project(
        args.initial, args.contribution, args.rate, args.periods
    )
    print(series.to_frame().to_string(index=False))


def main():
    parser = argparse.ArgumentParser(
        description="Paper trade against a stored portfolio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Buy $500 of bitcoin at the live price
  python paper_trade.py buy bitcoin 500

  # Buy 3 shares of AAPL at a fixed price
  python paper_trade.py --data-dir data/stocks buy AAPL 3 --units --price 190

  # Sell 0.01 bitcoin
  python paper_trade.py sell bitcoin 0.01

  # Project $200/month at 7% for 30 years
  python paper_trade.py project --contribution 200 --rate 0.07 --periods 360
        """,
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data/portfolio",
        help="Directory holding the stored portfolio (default: data/portfolio)",
    )

    parser.add_argument(
        "--key",
        type=str,
        default=CRYPTO_PORTFOLIO_KEY,
        help=f"Storage key of the portfolio record (default: {CRYPTO_PORTFOLIO_KEY})",
    )

    parser.add_argument(
        "--offline", action="store_true", help="Do not fetch live prices (use --price instead)"
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for side in ("buy", "sell"):
        order_parser = subparsers.add_parser(side, help=f"{side.capitalize()} an asset")
        order_parser.add_argument("asset_id", type=str, help="Coin id or ticker")
        order_parser.add_argument("amount", type=float, help="Cash amount, or units with --units")
        order_parser.add_argument(
            "--units",
            action="store_true",
            help="Treat amount as a unit count (default for sell)",
        )
        order_parser.add_argument(
            "--cash", dest="units", action="store_false", help="Treat amount as cash"
        )
        order_parser.set_defaults(units=side == "sell")
        order_parser.add_argument("--price", type=float, help="Trade at this unit price")

    reset_parser = subparsers.add_parser("reset", help="Restart with a new starting balance")
    reset_parser.add_argument("balance", type=float, help="New starting balance")

    subparsers.add_parser("refresh", help="Refresh prices of held positions")
    subparsers.add_parser("show", help="Show portfolio metrics")

    project_parser = subparsers.add_parser("project", help="Project a balance forward")
    project_parser.add_argument("--initial", type=float, default=0.0, help="Starting balance")
    project_parser.add_argument(
        "--contribution", type=float, default=0.0, help="Contribution per period"
    )
    project_parser.add_argument(
        "--rate", type=float, required=True, help="Annual rate as a fraction (0.07 = 7%%)"
    )
    project_parser.add_argument("--periods", type=int, required=True, help="Number of periods")
    project_parser.add_argument(
        "--periods-per-year", type=int, default=12, help="Periods per year (default: 12)"
    )

    args = parser.parse_args()

    setup_logging(args.debug)

    try:
        if args.command == "project":
            run_projection(args)
            return 0

        settings = Settings(
            data_dir=args.data_dir,
            portfolio_key=args.key,
            price_source="static" if args.offline else "coingecko",
        )
        asyncio.run(run_engine_command(settings, args))
        return 0

    except FiscalWiserError as e:
        logger.error(f"{e.code}: {e}")
        return 1

    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
