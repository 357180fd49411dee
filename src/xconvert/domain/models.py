# src/xconvert/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Point-in-time rate snapshots returned by providers
- Conversion requests and results
- Historical queries, entries and paged results
- Circuit breaker state

Files that USE this module:
- xconvert.application.* (services build and return domain models)
- xconvert.adapters.providers.* (providers produce RateSnapshot objects)
- xconvert.adapters.resilience.circuit_breaker (CircuitState)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Generic, Iterable, Mapping, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class RateSnapshot:
    """
    Exchange rates for one base currency at a point in time.

    Attributes:
        amount: Amount of base currency the rates were quoted for
        base_currency: ISO code of the base currency
        as_of: Date the rates are valid for
        rates: Mapping of currency code to rate
    """
    amount: Decimal
    base_currency: str
    as_of: date
    rates: Mapping[str, Decimal] = field(default_factory=dict)

    def without_currencies(self, codes: Iterable[str]) -> RateSnapshot:
        """Return a copy whose rates exclude ``codes`` (case-insensitive)."""
        return replace(self, rates=strip_currencies(self.rates, codes))


@dataclass(frozen=True)
class ConversionRequest:
    """A request to convert ``amount`` of ``from_currency`` into ``to_currency``."""
    amount: Decimal
    from_currency: str
    to_currency: str


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of a currency conversion.

    Use ``ConversionResult.build`` so that ``converted_amount`` is always
    ``amount * rate`` at construction time.
    """
    amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    rate: Decimal
    as_of: date

    @classmethod
    def build(
        cls,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        rate: Decimal,
        as_of: date,
    ) -> ConversionResult:
        return cls(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            converted_amount=amount * rate,
            rate=rate,
            as_of=as_of,
        )


@dataclass(frozen=True)
class HistoricalQuery:
    """
    Historical range lookup.

    Page and page size below 1 are coerced to the defaults by the service
    rather than rejected.
    """
    base_currency: str
    start_date: date
    end_date: date
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class HistoricalEntry:
    """Rates for one calendar date within a historical range."""
    date: date
    base_currency: str
    rates: Mapping[str, Decimal]


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """One page of an ordered result set."""
    items: Tuple[T, ...]
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


class CircuitState(Enum):
    """Lifecycle states of a circuit breaker."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


def strip_currencies(rates: Mapping[str, Decimal], codes: Iterable[str]) -> Dict[str, Decimal]:
    """
    Copy ``rates`` without any key in ``codes``.

    Args:
        rates: Currency code to rate mapping
        codes: Currency codes to drop, compared case-insensitively

    Returns:
        New dictionary; the input mapping is left untouched
    """
    excluded = {code.upper() for code in codes}
    return {code: rate for code, rate in rates.items() if code.upper() not in excluded}
