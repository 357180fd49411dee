"""
Currency Service - Business Logic for Currency Access

This module contains the core business logic for the three read operations:
latest rates, point conversion and paged historical lookup. For each call it
validates input, enforces the restricted-currency policy, consults the cache,
falls back to the provider (which is shielded by its resilience policy) on a
miss, strips restricted currencies from the result and populates the cache.

Validation and restriction checks happen here and only here, before any
cache or provider access. Provider and resilience errors propagate unchanged.

Files that USE this module:
- xconvert.app (build_currency_service wires CurrencyService)
- tests.test_currency_service (unit tests)

Files that this module USES:
- xconvert.adapters.providers.factory (ProviderFactory to resolve the upstream)
- xconvert.application.cache_keys (canonical cache keys)
- xconvert.shared.cache (CacheStore)
- xconvert.shared.cancellation (CallContext)
- xconvert.shared.validators (normalization helpers)
- xconvert.domain.* (models and errors)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, FrozenSet, Mapping, Optional, Type, TypeVar

from xconvert.adapters.providers.base import HistoricalRates, RateProvider
from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.application import cache_keys
from xconvert.application.cache_keys import CacheKey
from xconvert.domain.errors import DeserializationError, InvalidArgumentError, RestrictedCurrencyError
from xconvert.domain.models import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    ConversionRequest,
    ConversionResult,
    HistoricalEntry,
    HistoricalQuery,
    PagedResult,
    RateSnapshot,
    strip_currencies,
)
from xconvert.shared.cache import CacheStore
from xconvert.shared.cancellation import CallContext
from xconvert.shared.validators import is_positive_amount, normalize_currency, parse_currency_list, to_date

if TYPE_CHECKING:
    from xconvert.config.settings import Settings

log = logging.getLogger(__name__)

P = TypeVar("P")

DEFAULT_RESTRICTED_CURRENCIES = frozenset({"TRY", "PLN", "THB", "MXN"})


@dataclass(frozen=True)
class CurrencyPolicy:
    """
    Restricted currencies, cache TTLs and paging defaults for the service.

    Passed explicitly to CurrencyService so tests can vary policy without
    touching process-wide settings.
    """
    restricted_currencies: FrozenSet[str] = DEFAULT_RESTRICTED_CURRENCIES
    latest_ttl_seconds: float = 60 * 60
    conversion_ttl_seconds: float = 60 * 60
    historical_ttl_seconds: float = 24 * 60 * 60
    default_page_size: int = DEFAULT_PAGE_SIZE
    request_timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "restricted_currencies", parse_currency_list(self.restricted_currencies))

    @classmethod
    def from_settings(cls, settings: Settings) -> CurrencyPolicy:
        return cls(
            restricted_currencies=settings.restricted_currencies,
            latest_ttl_seconds=settings.latest_rates_cache_minutes * 60,
            conversion_ttl_seconds=settings.conversion_cache_minutes * 60,
            historical_ttl_seconds=settings.historical_cache_minutes * 60,
            default_page_size=settings.default_page_size,
            request_timeout_seconds=settings.request_timeout_seconds,
        )

    def is_restricted(self, currency: str) -> bool:
        return normalize_currency(currency) in self.restricted_currencies


class CurrencyService:
    """Currency access layer: validation, restriction policy, caching and paging."""

    def __init__(
        self,
        provider_factory: ProviderFactory,
        cache: CacheStore,
        policy: Optional[CurrencyPolicy] = None,
        provider_name: Optional[str] = None,
    ):
        """
        Initialize the service.

        Args:
            provider_factory: Resolves the upstream rate provider
            cache: Shared TTL cache
            policy: Restriction, TTL and paging policy (defaults match the product defaults)
            provider_name: Provider to use; the factory default when None
        """
        if provider_factory is None:
            raise ValueError("provider_factory is required")
        if cache is None:
            raise ValueError("cache is required")
        self.provider_factory = provider_factory
        self.cache = cache
        self.policy = policy or CurrencyPolicy()
        self.provider_name = provider_name

    def is_restricted_currency(self, currency: str) -> bool:
        """Check whether ``currency`` is on the restricted list (case-insensitive)."""
        return self.policy.is_restricted(currency)

    def get_latest_rates(self, base_currency: str, context: Optional[CallContext] = None) -> RateSnapshot:
        """
        Get the latest rates for ``base_currency`` with restricted currencies removed.

        Args:
            base_currency: ISO code of the base currency
            context: Caller's cancellation context

        Returns:
            Filtered RateSnapshot (served from cache for up to the latest-rates TTL)

        Raises:
            InvalidArgumentError: If base_currency is empty
            RestrictedCurrencyError: If base_currency is restricted
            ProviderError: If the upstream fails (after retries) or the circuit is open
        """
        base = normalize_currency(base_currency)
        if not base:
            raise InvalidArgumentError("Base currency cannot be null or empty")
        self._ensure_allowed(base)

        key = cache_keys.latest_rates(base)
        cached = self._cache_get(key, RateSnapshot)
        if cached is not None:
            log.info("Cache hit for latest rates with base currency %s", base)
            return cached.without_currencies(self.policy.restricted_currencies)

        log.info("Cache miss for latest rates with base currency %s", base)
        snapshot = self._provider().get_latest_rates(base, self._context(context))
        filtered = snapshot.without_currencies(self.policy.restricted_currencies)
        self.cache.set(key.render(), filtered, self.policy.latest_ttl_seconds)
        return filtered

    def convert_currency(self, request: ConversionRequest, context: Optional[CallContext] = None) -> ConversionResult:
        """
        Convert an amount between two currencies.

        The provider is always asked for a 1-unit quote, cached per currency
        pair, so callers converting different amounts share one upstream call.

        Raises:
            InvalidArgumentError: If amount <= 0 or either currency is empty
            RestrictedCurrencyError: If either currency is restricted
            DeserializationError: If the quote lacks a rate for the target currency
            ProviderError: If the upstream fails (after retries) or the circuit is open
        """
        if request is None:
            raise InvalidArgumentError("Conversion request is required")
        from_currency = normalize_currency(request.from_currency)
        to_currency = normalize_currency(request.to_currency)
        if not from_currency or not to_currency:
            raise InvalidArgumentError("Source and target currencies must be specified")
        if not is_positive_amount(request.amount):
            raise InvalidArgumentError("Amount must be greater than zero")
        self._ensure_allowed(from_currency, to_currency)
        amount = _to_decimal(request.amount)

        key = cache_keys.conversion_rate(from_currency, to_currency)
        quote = self._cache_get(key, RateSnapshot)
        if quote is not None:
            log.info("Cache hit for conversion from %s to %s", from_currency, to_currency)
            rate = _unit_rate(quote, to_currency)
        else:
            log.info("Cache miss for conversion from %s to %s", from_currency, to_currency)
            quote = self._provider().convert(Decimal(1), from_currency, to_currency, self._context(context))
            # Only cache quotes that actually carry the target rate
            rate = _unit_rate(quote, to_currency)
            self.cache.set(key.render(), quote, self.policy.conversion_ttl_seconds)

        return ConversionResult.build(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            as_of=quote.as_of,
        )

    def get_historical_rates(
        self,
        query: HistoricalQuery,
        context: Optional[CallContext] = None,
    ) -> PagedResult[HistoricalEntry]:
        """
        Get one page of historical rates, newest date first.

        Page values below 1 fall back to page 1 and page sizes below 1 fall
        back to the default page size; neither is an error.

        Raises:
            InvalidArgumentError: If base currency is empty, a date is missing, or start > end
            RestrictedCurrencyError: If the base currency is restricted
            ProviderError: If the upstream fails (after retries) or the circuit is open
        """
        if query is None:
            raise InvalidArgumentError("Historical query is required")
        base = normalize_currency(query.base_currency)
        if not base:
            raise InvalidArgumentError("Base currency must be specified")
        start_date, end_date = to_date(query.start_date), to_date(query.end_date)
        if start_date is None or end_date is None:
            raise InvalidArgumentError("Start and end dates must be specified")
        if start_date > end_date:
            raise InvalidArgumentError("Start date must be before or equal to end date")
        self._ensure_allowed(base)

        page = query.page if query.page and query.page >= 1 else DEFAULT_PAGE
        page_size = query.page_size if query.page_size and query.page_size >= 1 else self.policy.default_page_size

        key = cache_keys.historical_rates(base, start_date, end_date)
        history = self._cache_get(key, dict)
        if history is not None:
            log.info(
                "Cache hit for historical rates with base currency %s from %s to %s",
                base, start_date.isoformat(), end_date.isoformat(),
            )
        else:
            log.info(
                "Cache miss for historical rates with base currency %s from %s to %s",
                base, start_date.isoformat(), end_date.isoformat(),
            )
            raw = self._provider().get_historical_rates(base, start_date, end_date, self._context(context))
            history = self._strip_history(raw)
            self.cache.set(key.render(), history, self.policy.historical_ttl_seconds)

        # Re-filter on every read, cached or not
        entries = sorted(
            (
                HistoricalEntry(date=day, base_currency=base, rates=rates)
                for day, rates in self._strip_history(history).items()
            ),
            key=lambda entry: entry.date,
            reverse=True,
        )

        start = (page - 1) * page_size
        return PagedResult(
            items=tuple(entries[start:start + page_size]),
            page=page,
            page_size=page_size,
            total_count=len(entries),
        )

    def _ensure_allowed(self, *currencies: str) -> None:
        for currency in currencies:
            if self.policy.is_restricted(currency):
                log.info("Rejected restricted currency %s", currency)
                raise RestrictedCurrencyError(currency)

    def _strip_history(self, history: HistoricalRates) -> HistoricalRates:
        restricted = self.policy.restricted_currencies
        return {day: strip_currencies(rates, restricted) for day, rates in history.items()}

    def _cache_get(self, key: CacheKey, payload_type: Type[P]) -> Optional[P]:
        """Typed cache lookup; an entry of the wrong type is dropped and treated as a miss."""
        value, found = self.cache.get(key.render())
        if not found:
            return None
        if not isinstance(value, payload_type):
            log.warning(
                "Discarding cache entry %s: expected %s, found %s",
                key, payload_type.__name__, type(value).__name__,
            )
            self.cache.invalidate(key.render())
            return None
        return value

    def _provider(self) -> RateProvider:
        return self.provider_factory.get_provider(self.provider_name)

    def _context(self, context: Optional[CallContext]) -> CallContext:
        if context is not None:
            return context
        return CallContext(timeout=self.policy.request_timeout_seconds)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from turning into binary expansions
    return Decimal(str(value))


def _unit_rate(quote: RateSnapshot, to_currency: str) -> Decimal:
    """
    Rate for 1 unit of the quote's base currency.

    Raises:
        DeserializationError: If the target rate is missing or the quote amount is zero
    """
    rates: Mapping[str, Decimal] = {code.upper(): value for code, value in quote.rates.items()}
    if to_currency not in rates:
        raise DeserializationError(f"Provider quote has no rate for {to_currency}")
    if not quote.amount:
        raise DeserializationError("Provider quote has a zero amount")
    if quote.amount == 1:
        return rates[to_currency]
    return rates[to_currency] / quote.amount
