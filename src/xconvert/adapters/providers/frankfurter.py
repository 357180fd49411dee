"""
Frankfurter API Provider for Exchange Rates

This module implements the Frankfurter API client (ECB reference rates) for
latest rates, point conversions and historical ranges. Every round trip is
executed through the provider's dedicated ResiliencePolicy, and low-level
``requests`` failures are translated into the provider error taxonomy:

- connection errors, timeouts, 5xx, 408, 429 -> TransientProviderError (retried)
- other 4xx -> ProviderRequestError (not retried)
- malformed JSON or unexpected schema -> DeserializationError (not retried)

Files that USE this module:
- xconvert.adapters.providers.factory (registered as "Frankfurter")
- tests.test_providers (unit tests)

Files that this module USES:
- xconvert.adapters.providers.base (RateProvider interface)
- xconvert.adapters.resilience (ResiliencePolicy, is_transient_status)
- xconvert.config (settings for API configuration)
"""
import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, ValidationError

from xconvert.adapters.providers.base import HistoricalRates, RateProvider
from xconvert.adapters.resilience import ResiliencePolicy, is_transient_status
from xconvert.config import settings
from xconvert.domain.errors import DeserializationError, ProviderRequestError, TransientProviderError
from xconvert.domain.models import RateSnapshot
from xconvert.shared.cancellation import CallContext

log = logging.getLogger(__name__)


class LatestRatesPayload(BaseModel):
    """Body of ``/latest``: {"amount", "base", "date", "rates": {CODE: rate}}."""
    amount: Decimal
    base: str
    date: dt.date
    rates: Dict[str, Decimal]


class RangeRatesPayload(BaseModel):
    """Body of ``/START..END``: rates keyed by ISO date."""
    amount: Decimal = Decimal(1)
    base: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    rates: Dict[dt.date, Dict[str, Decimal]]


class FrankfurterProvider(RateProvider):
    name = "Frankfurter"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        policy: Optional[ResiliencePolicy] = None,
    ):
        """
        Initialize Frankfurter API provider.

        Args:
            base_url: Optional custom API URL (defaults to settings.frankfurter_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            policy: Resilience policy owned by this provider (built from settings if omitted)
        """
        self.url = (base_url or settings.frankfurter_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.policy = policy or ResiliencePolicy.from_settings(settings, name=self.name)

    def get_latest_rates(self, base_currency: str, context: Optional[CallContext] = None) -> RateSnapshot:
        """
        Fetch the latest rates for ``base_currency``.

        Returns:
            RateSnapshot for 1 unit of the base currency

        Raises:
            ProviderError: On transport, status or payload failures
        """
        log.info("Fetching latest rates for base currency: %s", base_currency)
        body = self._get("/latest", {"from": base_currency}, context)
        payload = self._parse(LatestRatesPayload, body)
        return self._to_snapshot(payload)

    def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        context: Optional[CallContext] = None,
    ) -> RateSnapshot:
        """
        Quote ``amount`` of ``from_currency`` in ``to_currency``.

        Returns:
            RateSnapshot whose rates hold the converted amount for ``to_currency``
        """
        log.info("Converting %s from %s to %s", amount, from_currency, to_currency)
        params = {"amount": str(amount), "from": from_currency, "to": to_currency}
        body = self._get("/latest", params, context)
        payload = self._parse(LatestRatesPayload, body)
        return self._to_snapshot(payload)

    def get_historical_rates(
        self,
        base_currency: str,
        start_date: dt.date,
        end_date: dt.date,
        context: Optional[CallContext] = None,
    ) -> HistoricalRates:
        """
        Fetch rates for every published date between ``start_date`` and ``end_date``.

        Returns:
            Dictionary of date -> (currency -> rate), ascending by date
        """
        log.info(
            "Fetching historical rates for base currency: %s from %s to %s",
            base_currency, start_date.isoformat(), end_date.isoformat(),
        )
        path = f"/{start_date.isoformat()}..{end_date.isoformat()}"
        body = self._get(path, {"from": base_currency}, context)
        payload = self._parse(RangeRatesPayload, body)
        return {day: dict(payload.rates[day]) for day in sorted(payload.rates)}

    def _get(self, path: str, params: Dict[str, Any], context: Optional[CallContext]) -> str:
        """Run one GET through the resilience policy and return the body text."""
        context = context or CallContext.background()
        return self.policy.execute(lambda: self._request(path, params, context), context)

    def _request(self, path: str, params: Dict[str, Any], context: CallContext) -> str:
        """
        Perform a single HTTP attempt.

        Raises:
            TransientProviderError: Network fault or transient status
            ProviderRequestError: Non-transient HTTP status or unusable request
        """
        url = f"{self.url}{path}"
        timeout = context.bound_timeout(self.timeout)
        try:
            resp = requests.get(url, params=params, timeout=timeout)
        except requests.exceptions.Timeout as e:
            log.warning("Frankfurter API timeout after %s seconds: %s", timeout, url)
            raise TransientProviderError(f"Frankfurter API timeout after {timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            log.warning("Frankfurter API connection error: %s", e)
            raise TransientProviderError(f"Frankfurter API request failed: {e}") from e
        except requests.exceptions.RequestException as e:
            log.error("Frankfurter API request could not be sent: %s", e)
            raise ProviderRequestError(f"Frankfurter API request failed: {e}") from e

        # Caller may have given up while the request was in flight
        context.check()

        status = resp.status_code
        if is_transient_status(status):
            log.warning("Frankfurter API returned %d (transient) for %s", status, url)
            raise TransientProviderError(f"Frankfurter API returned {status}", status_code=status)
        if status >= 400:
            log.error("Frankfurter API returned %d for %s", status, url)
            raise ProviderRequestError(f"Frankfurter API returned {status}", status_code=status)
        return resp.text

    @staticmethod
    def _parse(model: Any, body: str) -> Any:
        """
        Validate a JSON body against ``model``.

        Raises:
            DeserializationError: If the body is not JSON or does not match the schema
        """
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            log.error("Frankfurter unexpected response schema: %s", e)
            raise DeserializationError(f"Frankfurter returned an unexpected payload: {e}") from e

    @staticmethod
    def _to_snapshot(payload: LatestRatesPayload) -> RateSnapshot:
        return RateSnapshot(
            amount=payload.amount,
            base_currency=payload.base,
            as_of=payload.date,
            rates=dict(payload.rates),
        )
