"""
Cache Keys - Canonical Keys per Cached Operation

Keys are structured (operation, parameters) pairs rendered to a stable
string, e.g. ``latest:USD`` or ``historical:USD:2020-01-01:2020-01-03``.

Files that USE this module:
- xconvert.application.currency_service (builds keys for every lookup)
- tests.test_currency_service (asserts on key shapes)

Files that this module USES:
- xconvert.shared.validators (to_date)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple, Union

from xconvert.shared.validators import to_date

OP_LATEST = "latest"
OP_CONVERSION = "conversion"
OP_HISTORICAL = "historical"


@dataclass(frozen=True)
class CacheKey:
    operation: str
    params: Tuple[str, ...]

    def render(self) -> str:
        return ":".join((self.operation,) + self.params)

    def __str__(self) -> str:
        return self.render()


def latest_rates(base_currency: str) -> CacheKey:
    return CacheKey(OP_LATEST, (base_currency,))


def conversion_rate(from_currency: str, to_currency: str) -> CacheKey:
    return CacheKey(OP_CONVERSION, (from_currency, to_currency))


def historical_rates(base_currency: str, start_date: Union[date, datetime], end_date: Union[date, datetime]) -> CacheKey:
    # Date-only granularity; a datetime loses its time part
    return CacheKey(OP_HISTORICAL, (base_currency, to_date(start_date).isoformat(), to_date(end_date).isoformat()))
