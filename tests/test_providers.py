"""
Provider Tests - Unit Tests for Provider Classes and the Provider Factory

Tests the Frankfurter client's request shapes, payload parsing, error
mapping and retry behavior with ``requests.get`` mocked out, plus provider
selection by name.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- xconvert.adapters.providers.frankfurter (FrankfurterProvider for testing)
- xconvert.adapters.providers.factory (ProviderFactory for testing)
- unittest.mock (Mock for API mocking)
"""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.adapters.providers.frankfurter import FrankfurterProvider
from xconvert.adapters.resilience import CircuitBreaker, ResiliencePolicy, RetryPolicy
from xconvert.config.settings import Settings
from xconvert.domain.errors import (
    CircuitOpenError,
    DeserializationError,
    OperationCancelledError,
    ProviderRequestError,
    TransientProviderError,
    UnsupportedProviderError,
)
from xconvert.domain.models import CircuitState
from xconvert.shared.cancellation import CallContext

LATEST_BODY = '{"amount": 1.0, "base": "USD", "date": "2020-01-03", "rates": {"EUR": 0.85, "GBP": 0.76}}'
CONVERT_BODY = '{"amount": 1.0, "base": "USD", "date": "2020-01-03", "rates": {"EUR": 0.85}}'
RANGE_BODY = (
    '{"amount": 1.0, "base": "USD", "start_date": "2020-01-01", "end_date": "2020-01-03",'
    ' "rates": {"2020-01-03": {"EUR": 0.897}, "2020-01-01": {"EUR": 0.891}, "2020-01-02": {"EUR": 0.893}}}'
)

GET = "xconvert.adapters.providers.frankfurter.requests.get"


def _response(status_code=200, text=""):
    resp = Mock()
    resp.status_code = status_code
    resp.text = text
    return resp


@pytest.fixture
def provider(clock, sleeper):
    policy = ResiliencePolicy(
        retry=RetryPolicy(retry_count=3, backoff_base=2, sleeper=sleeper),
        breaker=CircuitBreaker(failure_threshold=5, break_duration=60, clock=clock, name="Frankfurter"),
    )
    return FrankfurterProvider(base_url="https://api.frankfurter.test/", timeout=5, policy=policy)


class TestFrankfurterProvider:
    def test_init_with_defaults(self):
        provider = FrankfurterProvider()
        assert provider.url == "https://api.frankfurter.app"
        assert provider.timeout == 10
        assert provider.policy.retry.retry_count == 3
        assert provider.policy.breaker.failure_threshold == 5
        assert provider.policy.state is CircuitState.CLOSED

    def test_init_strips_trailing_slash(self, provider):
        assert provider.url == "https://api.frankfurter.test"

    @patch(GET)
    def test_get_latest_rates_success(self, mock_get, provider):
        mock_get.return_value = _response(text=LATEST_BODY)

        snapshot = provider.get_latest_rates("USD")

        assert snapshot.base_currency == "USD"
        assert snapshot.amount == Decimal("1")
        assert snapshot.as_of == date(2020, 1, 3)
        assert snapshot.rates == {"EUR": Decimal("0.85"), "GBP": Decimal("0.76")}
        mock_get.assert_called_once_with(
            "https://api.frankfurter.test/latest", params={"from": "USD"}, timeout=5
        )

    @patch(GET)
    def test_convert_requests_amount_and_pair(self, mock_get, provider):
        mock_get.return_value = _response(text=CONVERT_BODY)

        snapshot = provider.convert(Decimal(1), "USD", "EUR")

        assert snapshot.rates["EUR"] == Decimal("0.85")
        mock_get.assert_called_once_with(
            "https://api.frankfurter.test/latest",
            params={"amount": "1", "from": "USD", "to": "EUR"},
            timeout=5,
        )

    @patch(GET)
    def test_get_historical_rates_ordered_by_date(self, mock_get, provider):
        mock_get.return_value = _response(text=RANGE_BODY)

        history = provider.get_historical_rates("USD", date(2020, 1, 1), date(2020, 1, 3))

        assert list(history) == [date(2020, 1, 1), date(2020, 1, 2), date(2020, 1, 3)]
        assert history[date(2020, 1, 3)] == {"EUR": Decimal("0.897")}
        mock_get.assert_called_once_with(
            "https://api.frankfurter.test/2020-01-01..2020-01-03", params={"from": "USD"}, timeout=5
        )

    @patch(GET)
    def test_transient_status_is_retried_then_succeeds(self, mock_get, provider, sleeper):
        mock_get.side_effect = [_response(503), _response(502), _response(text=LATEST_BODY)]

        snapshot = provider.get_latest_rates("USD")

        assert snapshot.rates["EUR"] == Decimal("0.85")
        assert mock_get.call_count == 3
        assert sleeper.delays == [2, 4]
        assert provider.policy.state is CircuitState.CLOSED

    @patch(GET)
    def test_timeout_exhausts_retries(self, mock_get, provider, sleeper):
        mock_get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(TransientProviderError, match="Frankfurter API timeout"):
            provider.get_latest_rates("USD")

        assert mock_get.call_count == 4
        assert sleeper.delays == [2, 4, 8]

    @patch(GET)
    def test_connection_error_is_transient(self, mock_get, provider):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransientProviderError, match="Frankfurter API request failed"):
            provider.get_latest_rates("USD")

    @patch(GET)
    def test_rate_limited_status_is_transient(self, mock_get, provider):
        mock_get.return_value = _response(429)

        with pytest.raises(TransientProviderError) as exc:
            provider.get_latest_rates("USD")

        assert exc.value.status_code == 429
        assert mock_get.call_count == 4

    @patch(GET)
    def test_client_error_is_not_retried(self, mock_get, provider, sleeper):
        mock_get.return_value = _response(404, text='{"message": "not found"}')

        with pytest.raises(ProviderRequestError) as exc:
            provider.get_latest_rates("XXX")

        assert exc.value.status_code == 404
        assert mock_get.call_count == 1
        assert sleeper.delays == []

    @patch(GET)
    def test_invalid_json_raises_deserialization_error(self, mock_get, provider):
        mock_get.return_value = _response(text="<html>oops</html>")

        with pytest.raises(DeserializationError):
            provider.get_latest_rates("USD")

        assert mock_get.call_count == 1

    @patch(GET)
    def test_schema_mismatch_raises_deserialization_error(self, mock_get, provider):
        mock_get.return_value = _response(text='{"base": "USD", "rates": "nope"}')

        with pytest.raises(DeserializationError):
            provider.get_latest_rates("USD")

    @patch(GET)
    def test_circuit_opens_after_repeated_failures(self, mock_get, provider, clock):
        mock_get.return_value = _response(500)

        for _ in range(5):
            with pytest.raises(TransientProviderError):
                provider.get_latest_rates("USD")
        assert provider.policy.state is CircuitState.OPEN
        calls_before = mock_get.call_count

        with pytest.raises(CircuitOpenError):
            provider.get_latest_rates("USD")
        assert mock_get.call_count == calls_before

        clock.advance(60)
        mock_get.return_value = _response(text=LATEST_BODY)
        assert provider.get_latest_rates("USD").base_currency == "USD"
        assert provider.policy.state is CircuitState.CLOSED

    @patch(GET)
    def test_timeout_bounded_by_context_deadline(self, mock_get, provider):
        mock_get.return_value = _response(text=LATEST_BODY)

        provider.get_latest_rates("USD", CallContext(timeout=2))

        _, kwargs = mock_get.call_args
        assert 0 < kwargs["timeout"] <= 2

    @patch(GET)
    def test_cancelled_context_makes_no_request(self, mock_get, provider):
        context = CallContext()
        context.cancel()

        with pytest.raises(OperationCancelledError):
            provider.get_latest_rates("USD", context)

        mock_get.assert_not_called()


class TestProviderFactory:
    def test_default_provider_when_name_missing(self):
        factory = ProviderFactory.from_settings(Settings())
        assert isinstance(factory.get_provider(), FrankfurterProvider)
        assert isinstance(factory.get_provider(""), FrankfurterProvider)

    def test_lookup_is_case_insensitive_and_shared(self):
        factory = ProviderFactory.from_settings(Settings())
        assert factory.get_provider("frankfurter") is factory.get_provider("FRANKFURTER")

    def test_each_provider_has_dedicated_policy(self):
        factory = ProviderFactory(default_provider="A")
        factory.register("A", lambda: FrankfurterProvider(base_url="https://a.test"))
        factory.register("B", lambda: FrankfurterProvider(base_url="https://b.test"))

        a, b = factory.get_provider("A"), factory.get_provider("B")

        assert a.policy is not b.policy
        assert a.policy.breaker is not b.policy.breaker

    def test_unknown_provider_raises(self):
        factory = ProviderFactory.from_settings(Settings())
        with pytest.raises(UnsupportedProviderError, match="'Nope' is not supported"):
            factory.get_provider("Nope")

    def test_available_providers(self):
        factory = ProviderFactory.from_settings(Settings())
        assert factory.available_providers() == ["Frankfurter"]

    def test_from_settings_uses_configured_values(self):
        settings = Settings(frankfurter_url="https://rates.internal/", http_timeout_seconds=3, retry_count=1)
        provider = ProviderFactory.from_settings(settings).get_provider()
        assert provider.url == "https://rates.internal"
        assert provider.timeout == 3
        assert provider.policy.retry.retry_count == 1

    def test_register_rejects_empty_name(self):
        with pytest.raises(ValueError):
            ProviderFactory().register("  ", Mock())

    def test_constructor_called_once(self):
        constructor = Mock(return_value=Mock())
        factory = ProviderFactory(default_provider="Mocked")
        factory.register("Mocked", constructor)

        factory.get_provider()
        factory.get_provider("mocked")

        constructor.assert_called_once()
        assert list(factory.active_providers()) == ["Mocked"]
