"""
Health Checker - Provider and Cache Diagnostics

This module reports the health of the currency access layer without making
any network calls: the circuit state of every provider that has been used so
far and the size of the shared cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.domain.models import CircuitState
from xconvert.shared.cache import CacheStore

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Represents the health status of a component."""
    is_healthy: bool
    message: str
    last_check: datetime
    details: Optional[Dict[str, Any]] = None


class HealthChecker:
    """Centralized health checking for the currency access layer."""

    def __init__(self, provider_factory: ProviderFactory, cache: CacheStore):
        self.provider_factory = provider_factory
        self.cache = cache

    def check_providers(self) -> Dict[str, HealthStatus]:
        """
        Check every instantiated provider's circuit.

        A provider is unhealthy only while its circuit is open. Providers that
        were registered but never used are reported as healthy and idle.

        Returns:
            Mapping of provider name to HealthStatus
        """
        results: Dict[str, HealthStatus] = {}
        active = self.provider_factory.active_providers()
        for name in self.provider_factory.available_providers():
            now = datetime.now(timezone.utc)
            provider = active.get(name)
            if provider is None or provider.policy is None:
                results[name] = HealthStatus(
                    is_healthy=True,
                    message=f"{name} idle (not yet used)",
                    last_check=now,
                    details={"state": None},
                )
                continue

            breaker = provider.policy.breaker
            state = breaker.state
            healthy = state is not CircuitState.OPEN
            if not healthy:
                logger.warning("Provider %s circuit is open", name)
            results[name] = HealthStatus(
                is_healthy=healthy,
                message=f"{name} circuit {state.value}",
                last_check=now,
                details={
                    "state": state.value,
                    "failure_count": breaker.failure_count,
                    "failure_threshold": breaker.failure_threshold,
                },
            )
        return results

    def check_cache(self) -> HealthStatus:
        """Report the number of live entries after purging expired ones."""
        purged = self.cache.purge_expired()
        size = len(self.cache)
        return HealthStatus(
            is_healthy=True,
            message=f"Cache holds {size} entries",
            last_check=datetime.now(timezone.utc),
            details={"entries": size, "purged": purged},
        )

    def run_all(self) -> Dict[str, HealthStatus]:
        """Run every check; keys are ``provider:<name>`` and ``cache``."""
        statuses = {f"provider:{name}": status for name, status in self.check_providers().items()}
        statuses["cache"] = self.check_cache()
        return statuses

    def is_healthy(self) -> bool:
        return all(status.is_healthy for status in self.run_all().values())
