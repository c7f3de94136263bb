"""
AdapterRegistry - Holds registered TTS adapters and their live status

Provides a central registry for:
1. Registering adapter instances under a unique name
2. Tracking availability, initialization and the last health check per adapter
3. Listing the adapters that may currently serve requests

The registry is the only owner of registration status. Other components read
registrations and report lifecycle events through mark_initialized() and
apply_health_check().
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from tts_orchestrator.core.exceptions import (
    AdapterNotFoundError,
    DuplicateAdapterError,
    TTSConfigurationError,
)
from tts_orchestrator.models.tts_models import HealthCheckResult
from tts_orchestrator.services.base_tts_adapter import REQUIRED_ADAPTER_METHODS, BaseTTSAdapter


@dataclass
class AdapterRegistration:
    """
    Registry record for one adapter.

    Attributes:
        adapter: The adapter instance (shared read-only with callers)
        registered_at: When the adapter was registered
        is_available: False after an unhealthy health check
        is_initialized: True once initialize() succeeded
        last_health_check: Most recent health check result, if any
    """
    adapter: BaseTTSAdapter
    registered_at: datetime = field(default_factory=datetime.now)
    is_available: bool = True
    is_initialized: bool = False
    last_health_check: Optional[HealthCheckResult] = None


def validate_adapter_interface(name: str, adapter: object) -> None:
    """
    Check that an object satisfies the adapter contract.

    Raises:
        TTSConfigurationError: If a required method is missing or not callable
    """
    missing = [
        method for method in REQUIRED_ADAPTER_METHODS
        if not callable(getattr(adapter, method, None))
    ]
    if missing:
        raise TTSConfigurationError(
            "INVALID_ADAPTER",
            f"Adapter {name} is missing required methods: {', '.join(missing)}",
            adapter=name,
            missing=",".join(missing),
        )


class AdapterRegistry:
    """
    Central registry of TTS adapters.

    Usage:
        registry = AdapterRegistry()
        registry.register('piper', PiperAdapter())
        registry.mark_initialized('piper')
        names = registry.list_available()  # ['piper']

    Attributes:
        registrations: Dictionary of adapter_name -> AdapterRegistration,
            kept in registration order
    """

    def __init__(self, log=None):
        self.registrations: Dict[str, AdapterRegistration] = {}
        self._log = log or logger

    def register(self, name: str, adapter: BaseTTSAdapter) -> AdapterRegistration:
        """
        Register an adapter under a unique name.

        Args:
            name: Unique adapter identifier
            adapter: Object implementing the adapter contract

        Returns:
            The new registration (available, not yet initialized)

        Raises:
            DuplicateAdapterError: If name is already registered
            TTSConfigurationError: If adapter does not implement the contract
        """
        if name in self.registrations:
            raise DuplicateAdapterError(name)

        validate_adapter_interface(name, adapter)

        registration = AdapterRegistration(adapter=adapter)
        self.registrations[name] = registration
        self._log.info(f"[Registry] Registered adapter: {name}")
        return registration

    def unregister(self, name: str) -> bool:
        """
        Remove an adapter.

        Returns:
            True if the adapter was registered, False otherwise
        """
        if name not in self.registrations:
            return False

        del self.registrations[name]
        self._log.info(f"[Registry] Unregistered adapter: {name}")
        return True

    def get(self, name: str) -> AdapterRegistration:
        """
        Get the registration for an adapter.

        Raises:
            AdapterNotFoundError: If name is not registered
        """
        registration = self.registrations.get(name)
        if registration is None:
            raise AdapterNotFoundError(name)
        return registration

    def find(self, name: str) -> Optional[AdapterRegistration]:
        """Get the registration for an adapter, or None if not registered."""
        return self.registrations.get(name)

    def get_adapter(self, name: str) -> BaseTTSAdapter:
        return self.get(name).adapter

    def is_registered(self, name: str) -> bool:
        return name in self.registrations

    def list_registered(self) -> List[str]:
        """All adapter names in registration order."""
        return list(self.registrations.keys())

    def list_available(self) -> List[str]:
        """
        Names of adapters that can serve requests right now.

        Returns:
            Names where is_available and is_initialized, in registration order
        """
        return [
            name for name, registration in self.registrations.items()
            if registration.is_available and registration.is_initialized
        ]

    def mark_initialized(self, name: str, initialized: bool = True) -> None:
        """Record the outcome of an adapter's initialize()/cleanup()."""
        registration = self.get(name)
        registration.is_initialized = initialized
        self._log.debug(f"[Registry] {name} initialized={initialized}")

    def set_available(self, name: str, available: bool) -> None:
        """Explicit availability override (e.g. after a failed initialize())."""
        registration = self.get(name)
        if registration.is_available != available:
            self._log.info(f"[Registry] {name} availability changed: {registration.is_available} -> {available}")
        registration.is_available = available

    def apply_health_check(self, name: str, result: HealthCheckResult) -> None:
        """
        Store a health check result and update availability.

        "unhealthy" makes the adapter unavailable; "healthy" and "degraded"
        keep (or restore) availability.
        """
        registration = self.get(name)
        registration.last_health_check = result
        available = result.status != "unhealthy"

        if registration.is_available != available:
            self._log.info(
                f"[Registry] {name} health={result.status}, "
                f"availability changed: {registration.is_available} -> {available}"
            )
        registration.is_available = available
