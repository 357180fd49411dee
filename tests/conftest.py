"""
Shared Test Fixtures

Deterministic clocks, recording sleepers and a scriptable fake provider used
across the test modules.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from xconvert.adapters.providers.base import HistoricalRates, RateProvider
from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.domain.models import RateSnapshot
from xconvert.shared.cache import CacheStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleeper:
    """Sleeper for RetryPolicy that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds, context) -> None:
        self.delays.append(seconds)


class FakeProvider(RateProvider):
    """In-memory provider that counts calls per operation."""

    name = "Fake"

    def __init__(self):
        self.latest: Dict[str, RateSnapshot] = {}
        self.quotes: Dict[tuple, RateSnapshot] = {}
        self.history: HistoricalRates = {}
        self.calls: Dict[str, int] = {"latest": 0, "convert": 0, "historical": 0}
        self.error: Optional[Exception] = None

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def get_latest_rates(self, base_currency, context=None):
        self.calls["latest"] += 1
        if self.error:
            raise self.error
        return self.latest[base_currency]

    def convert(self, amount, from_currency, to_currency, context=None):
        self.calls["convert"] += 1
        if self.error:
            raise self.error
        return self.quotes[(from_currency, to_currency)]

    def get_historical_rates(self, base_currency, start_date, end_date, context=None):
        self.calls["historical"] += 1
        if self.error:
            raise self.error
        return {day: dict(rates) for day, rates in self.history.items() if start_date <= day <= end_date}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return RecordingSleeper()


@pytest.fixture
def fake_provider():
    provider = FakeProvider()
    provider.latest["USD"] = RateSnapshot(
        amount=Decimal("1"),
        base_currency="USD",
        as_of=date(2020, 1, 3),
        rates={
            "EUR": Decimal("0.85"),
            "GBP": Decimal("0.76"),
            "TRY": Decimal("5.95"),
            "PLN": Decimal("3.80"),
            "THB": Decimal("30.2"),
            "MXN": Decimal("18.9"),
        },
    )
    provider.quotes[("USD", "EUR")] = RateSnapshot(
        amount=Decimal("1"),
        base_currency="USD",
        as_of=date(2020, 1, 3),
        rates={"EUR": Decimal("0.85")},
    )
    provider.history = {
        date(2020, 1, 1): {"EUR": Decimal("0.891"), "TRY": Decimal("5.95")},
        date(2020, 1, 2): {"EUR": Decimal("0.893"), "PLN": Decimal("3.80")},
        date(2020, 1, 3): {"EUR": Decimal("0.897"), "MXN": Decimal("18.9")},
    }
    return provider


@pytest.fixture
def factory(fake_provider):
    factory = ProviderFactory(default_provider="Fake")
    factory.register("Fake", lambda: fake_provider)
    return factory


@pytest.fixture
def cache(clock):
    return CacheStore(clock=clock)
