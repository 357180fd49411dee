"""
Application Entry Point - Composition Root

This module wires settings, the provider factory, the shared cache and the
currency service together, and offers a small command line for smoke-testing
the access layer against the live provider.

Files that USE this module:
- python -m xconvert (module entry point)
- xconvert console script

Files that this module USES:
- xconvert.shared.logging_conf (setup_logging for logging configuration)
- xconvert.config (settings for configuration management)
- xconvert.adapters.providers.factory (ProviderFactory.from_settings)
- xconvert.application.currency_service (CurrencyService, CurrencyPolicy)
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.application.currency_service import CurrencyPolicy, CurrencyService
from xconvert.config.settings import Settings
from xconvert.domain.errors import CurrencyError
from xconvert.domain.models import ConversionRequest, HistoricalQuery
from xconvert.shared.cache import CacheStore
from xconvert.shared.logging_conf import setup_logging

log = logging.getLogger(__name__)

# Process exit codes per error category
EXIT_CODES = {
    "client": 2,
    "configuration": 3,
    "server": 4,
    "cancelled": 5,
}


def build_currency_service(
    settings: Optional[Settings] = None,
    cache: Optional[CacheStore] = None,
    provider_factory: Optional[ProviderFactory] = None,
) -> CurrencyService:
    """
    Wire a CurrencyService from settings.

    Args:
        settings: Settings to use (defaults to the global settings instance)
        cache: Shared cache (a new one is created if omitted)
        provider_factory: Provider registry (built from settings if omitted)

    Returns:
        Ready-to-use CurrencyService
    """
    if settings is None:
        from xconvert.config import settings as global_settings
        settings = global_settings
    return CurrencyService(
        provider_factory=provider_factory or ProviderFactory.from_settings(settings),
        cache=cache or CacheStore(),
        policy=CurrencyPolicy.from_settings(settings),
        provider_name=settings.default_provider,
    )


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}")


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xconvert", description="Currency rates and conversion")
    sub = parser.add_subparsers(dest="command", required=True)

    latest = sub.add_parser("latest", help="latest rates for a base currency")
    latest.add_argument("base")

    convert = sub.add_parser("convert", help="convert an amount between currencies")
    convert.add_argument("amount", type=_decimal)
    convert.add_argument("from_currency")
    convert.add_argument("to_currency")

    history = sub.add_parser("history", help="historical rates, newest first")
    history.add_argument("base")
    history.add_argument("start", type=_date)
    history.add_argument("end", type=_date)
    history.add_argument("--page", type=int, default=1)
    history.add_argument("--page-size", type=int, default=10)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one access-layer operation from the command line and print the result.

    Returns:
        Process exit code (0 on success, category-specific code on failure)
    """
    args = _build_parser().parse_args(argv)

    from xconvert.config import settings
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        log_stdout=settings.log_stdout,
    )
    service = build_currency_service(settings)

    try:
        if args.command == "latest":
            snapshot = service.get_latest_rates(args.base)
            print(f"{snapshot.amount} {snapshot.base_currency} on {snapshot.as_of.isoformat()}")
            for code in sorted(snapshot.rates):
                print(f"  {code}: {snapshot.rates[code]}")
        elif args.command == "convert":
            result = service.convert_currency(
                ConversionRequest(amount=args.amount, from_currency=args.from_currency, to_currency=args.to_currency)
            )
            print(
                f"{result.amount} {result.from_currency} = {result.converted_amount} {result.to_currency} "
                f"(rate {result.rate}, {result.as_of.isoformat()})"
            )
        else:
            page = service.get_historical_rates(
                HistoricalQuery(
                    base_currency=args.base,
                    start_date=args.start,
                    end_date=args.end,
                    page=args.page,
                    page_size=args.page_size,
                )
            )
            print(f"page {page.page}/{page.total_pages} ({page.total_count} dates)")
            for entry in page.items:
                rates = ", ".join(f"{code}={rate}" for code, rate in sorted(entry.rates.items()))
                print(f"  {entry.date.isoformat()}: {rates}")
    except CurrencyError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_CODES.get(e.category, 1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
