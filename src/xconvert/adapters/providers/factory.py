"""
Provider Factory - Named Registry of Rate Providers

Resolves a provider name (case-insensitive) to a RateProvider instance.
Each registered name maps to a zero-argument constructor; the instance is
created on first use and then reused, so every provider keeps one dedicated
resilience policy (and one circuit) for the lifetime of the factory.

Files that USE this module:
- xconvert.application.currency_service (resolves the upstream per call)
- xconvert.application.health (inspects instantiated providers)
- xconvert.app (builds the factory from settings)

Files that this module USES:
- xconvert.adapters.providers.base (RateProvider)
- xconvert.adapters.providers.frankfurter (default provider)
- xconvert.adapters.resilience (ResiliencePolicy per provider)
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from xconvert.adapters.providers.base import RateProvider
from xconvert.adapters.providers.frankfurter import FrankfurterProvider
from xconvert.adapters.resilience import ResiliencePolicy
from xconvert.domain.errors import UnsupportedProviderError

if TYPE_CHECKING:
    from xconvert.config.settings import Settings

log = logging.getLogger(__name__)

ProviderConstructor = Callable[[], RateProvider]

DEFAULT_PROVIDER = "Frankfurter"


class ProviderFactory:
    """Registry of provider constructors keyed by name."""

    def __init__(self, default_provider: str = DEFAULT_PROVIDER):
        self.default_provider = default_provider
        self._constructors: Dict[str, ProviderConstructor] = {}
        self._names: Dict[str, str] = {}  # lower-case key -> registered spelling
        self._instances: Dict[str, RateProvider] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderFactory:
        """
        Build a factory with the built-in providers wired from settings.

        Args:
            settings: Application settings (URLs, timeouts, resilience parameters)

        Returns:
            ProviderFactory with "Frankfurter" registered
        """
        factory = cls(default_provider=settings.default_provider)
        factory.register(
            FrankfurterProvider.name,
            lambda: FrankfurterProvider(
                base_url=settings.frankfurter_url,
                timeout=settings.http_timeout_seconds,
                policy=ResiliencePolicy.from_settings(settings, name=FrankfurterProvider.name),
            ),
        )
        return factory

    def register(self, name: str, constructor: ProviderConstructor) -> None:
        """
        Register (or replace) a provider constructor.

        Raises:
            ValueError: If name is empty
        """
        if not name or not name.strip():
            raise ValueError("Provider name cannot be empty")
        key = name.strip().lower()
        with self._lock:
            self._constructors[key] = constructor
            self._names[key] = name.strip()
            self._instances.pop(key, None)
        log.debug("Registered rate provider %s", name)

    def get_provider(self, provider_name: Optional[str] = None) -> RateProvider:
        """
        Resolve ``provider_name`` to a provider instance.

        Args:
            provider_name: Registered name; the default provider is used when empty

        Returns:
            The (shared) provider instance for that name

        Raises:
            UnsupportedProviderError: If the name is not registered
        """
        name = provider_name if provider_name and provider_name.strip() else self.default_provider
        key = name.strip().lower()
        with self._lock:
            instance = self._instances.get(key)
            if instance is not None:
                return instance
            constructor = self._constructors.get(key)
            if constructor is None:
                raise UnsupportedProviderError(name)
            instance = constructor()
            self._instances[key] = instance
            log.info("Created rate provider %s", self._names[key])
            return instance

    def available_providers(self) -> List[str]:
        with self._lock:
            return list(self._names.values())

    def active_providers(self) -> Dict[str, RateProvider]:
        """Providers that have been instantiated so far, by registered name."""
        with self._lock:
            return {self._names[key]: provider for key, provider in self._instances.items()}
