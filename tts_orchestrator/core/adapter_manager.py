"""
TTSAdapterManager - Entry point for host applications

Wires the orchestration components together and owns adapter lifecycle:

    AdapterRegistry ─┬─ SuitabilityValidator ─┐
                     │                        ├─ FallbackOrchestrator
    AlertEngine ── PerformanceMonitor ────────┘

Hosts register adapters, then call synthesize(). Everything else
(statistics, alerts, snapshots, aggregated capabilities) is a read-only
query for operators and UIs.

Usage:
    manager = TTSAdapterManager(OrchestrationConfig(default_adapter='piper'))
    await manager.register_adapter('piper', HTTPEngineAdapter(...))
    await manager.register_adapter('dummy', DummyTTSAdapter())
    manager.start_monitoring()

    outcome = await manager.synthesize(request, EngineSelectionCriteria(language='de'))
"""
import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from tts_orchestrator.config import (
    ALERT_BUFFER_SIZE,
    ALERT_COOLDOWN_SECONDS,
    SNAPSHOT_RETENTION_HOURS,
    TTS_HEALTH_CHECK_TIMEOUT,
    OrchestrationConfig,
    load_orchestration_config,
)
from tts_orchestrator.core.adapter_metrics import AdapterMetrics
from tts_orchestrator.core.adapter_registry import AdapterRegistration, AdapterRegistry
from tts_orchestrator.core.alert_engine import AlertEngine, PerformanceAlert
from tts_orchestrator.core.capabilities_aggregator import aggregate_capabilities
from tts_orchestrator.core.fallback_orchestrator import FallbackOrchestrator, SynthesisOutcome
from tts_orchestrator.core.performance_monitor import PerformanceMonitor, PerformanceSnapshot, TargetReport
from tts_orchestrator.core.selection_strategy import SelectionResult, SelectionStrategyEngine
from tts_orchestrator.core.suitability_validator import SuitabilityValidator
from tts_orchestrator.models.tts_models import (
    EngineSelectionCriteria,
    HealthCheckResult,
    SynthesisRequest,
    SynthesisResponse,
    TTSCapabilities,
)
from tts_orchestrator.services.base_tts_adapter import BaseTTSAdapter


@dataclass
class AdapterStatus:
    """Registration status joined with request metrics, for operator views."""
    name: str
    version: str
    is_available: bool
    is_initialized: bool
    registered_at: datetime
    health: Optional[str] = None
    metrics: AdapterMetrics = field(default_factory=AdapterMetrics)


class TTSAdapterManager:
    """
    Facade over registry, validation, selection, fallback and monitoring.

    Attributes:
        config: Orchestration settings (default adapter, fallback order, strategy, timeout)
        registry: Adapter registrations
        monitor: Request metrics, snapshots and target checks
        alert_engine: Recent alerts
    """

    def __init__(
        self,
        config: Optional[OrchestrationConfig] = None,
        alert_engine: Optional[AlertEngine] = None,
        health_check_timeout: float = TTS_HEALTH_CHECK_TIMEOUT,
        log=None,
    ):
        self._log = log or logger
        self.config = replace(config) if config else load_orchestration_config()
        self.health_check_timeout = health_check_timeout

        self.registry = AdapterRegistry(log=self._log)
        self.validator = SuitabilityValidator(self.registry, log=self._log)
        self.alert_engine = alert_engine or AlertEngine(
            buffer_size=ALERT_BUFFER_SIZE,
            cooldown_seconds=ALERT_COOLDOWN_SECONDS,
            log=self._log,
        )
        self.monitor = PerformanceMonitor(
            alert_engine=self.alert_engine,
            snapshot_retention_hours=SNAPSHOT_RETENTION_HOURS,
            log=self._log,
        )
        self.orchestrator = FallbackOrchestrator(self.registry, self.validator, self.monitor, log=self._log)

        # Fail fast on an unknown strategy
        SelectionStrategyEngine(self.registry, self.config.selection_strategy)

    # ==================== Registration & Lifecycle ====================

    @property
    def default_adapter(self) -> Optional[str]:
        return self.config.default_adapter

    def set_default_adapter(self, name: Optional[str]) -> None:
        if name is not None:
            self.registry.get(name)
        self.config.default_adapter = name
        self._log.info(f"[Manager] Default adapter: {name}")

    async def register_adapter(
        self,
        name: str,
        adapter: BaseTTSAdapter,
        config: Optional[Dict[str, Any]] = None,
        initialize: bool = True,
    ) -> AdapterRegistration:
        """
        Register an adapter and (by default) initialize it.

        The first registered adapter becomes the default when none is configured.

        Raises:
            DuplicateAdapterError: If name is already registered
            TTSConfigurationError: If adapter does not implement the contract
            Exception: Whatever initialize() raised; the adapter stays
                registered but unavailable
        """
        registration = self.registry.register(name, adapter)

        if self.config.default_adapter is None:
            self.config.default_adapter = name
            self._log.info(f"[Manager] Default adapter: {name}")

        if initialize:
            await self.initialize_adapter(name, config)
        return registration

    async def unregister_adapter(self, name: str) -> bool:
        """Clean up and remove an adapter; returns False if it was not registered."""
        registration = self.registry.find(name)
        if registration is None:
            return False

        if registration.is_initialized:
            try:
                await registration.adapter.cleanup()
            except Exception as e:
                self._log.error(f"[Manager] Error cleaning up adapter {name}: {e}")

        self.registry.unregister(name)
        self.monitor.remove_adapter(name)

        if self.config.default_adapter == name:
            remaining = self.registry.list_registered()
            self.config.default_adapter = remaining[0] if remaining else None
            self._log.info(f"[Manager] Default adapter reassigned: {self.config.default_adapter}")
        return True

    async def initialize_adapter(self, name: str, config: Optional[Dict[str, Any]] = None) -> HealthCheckResult:
        """
        Initialize one adapter and run its post-initialization health check.

        Raises:
            AdapterNotFoundError: If name is not registered
            Exception: Whatever initialize() raised (adapter marked unavailable)
        """
        registration = self.registry.get(name)
        try:
            await registration.adapter.initialize(config)
        except Exception as e:
            self.registry.mark_initialized(name, False)
            self.registry.set_available(name, False)
            self._log.error(f"[Manager] Failed to initialize adapter {name}: {e}")
            raise

        self.registry.mark_initialized(name, True)
        result = await self.health_check(name)
        if result.status != "healthy":
            self._log.warning(f"[Manager] Adapter {name} initialized but health is {result.status}")
        return result

    async def initialize_all(self) -> Dict[str, bool]:
        """
        Initialize every registered adapter concurrently.

        Failures are logged per adapter and reported as False.
        """
        names = self.registry.list_registered()
        results = await asyncio.gather(
            *(self.initialize_adapter(name) for name in names),
            return_exceptions=True,
        )
        return {name: not isinstance(result, BaseException) for name, result in zip(names, results)}

    async def cleanup_all(self) -> None:
        """Clean up every initialized adapter; errors are logged, not raised."""
        async def cleanup(name: str, registration: AdapterRegistration) -> None:
            if not registration.is_initialized:
                return
            try:
                await registration.adapter.cleanup()
            except Exception as e:
                self._log.error(f"[Manager] Error cleaning up adapter {name}: {e}")
            self.registry.mark_initialized(name, False)
            self.registry.set_available(name, False)

        await asyncio.gather(*(
            cleanup(name, registration)
            for name, registration in list(self.registry.registrations.items())
        ))

    # ==================== Health ====================

    async def health_check(self, name: str) -> HealthCheckResult:
        """
        Probe one adapter and apply the result to its registration.

        A probe that raises or times out counts as unhealthy with
        response_time -1.
        """
        registration = self.registry.get(name)
        try:
            result = await asyncio.wait_for(
                registration.adapter.health_check(), timeout=self.health_check_timeout
            )
        except asyncio.TimeoutError:
            result = HealthCheckResult(
                status="unhealthy", response_time=-1,
                error=f"Health check timed out after {self.health_check_timeout}s",
            )
        except Exception as e:
            result = HealthCheckResult(status="unhealthy", response_time=-1, error=f"Health check failed: {e}")

        self.registry.apply_health_check(name, result)
        self.monitor.record_health_check(name, result)
        return result

    async def health_check_all(self) -> Dict[str, HealthCheckResult]:
        names = self.registry.list_registered()
        results = await asyncio.gather(*(self.health_check(name) for name in names))
        return dict(zip(names, results))

    async def refresh_availability(self) -> List[str]:
        """Health check every initialized adapter, then list the available ones."""
        initialized = [
            name for name, registration in self.registry.registrations.items()
            if registration.is_initialized
        ]
        await asyncio.gather(*(self.health_check(name) for name in initialized))
        return self.registry.list_available()

    # ==================== Synthesis ====================

    async def select_best_adapter(
        self,
        request: SynthesisRequest,
        criteria: Optional[EngineSelectionCriteria] = None,
    ) -> SelectionResult:
        """
        Pick an adapter without synthesizing.

        Raises:
            NoSuitableAdapterError: If no available adapter matches
        """
        criteria = criteria or EngineSelectionCriteria()
        suitable = await self.orchestrator.suitable_candidates(request, criteria, self.config)
        strategy = SelectionStrategyEngine(
            self.registry,
            strategy=self.config.selection_strategy,
            default_adapter=self.config.default_adapter,
            log=self._log,
        )
        return await strategy.select(suitable, self.monitor.get_all_statistics(), criteria)

    async def synthesize(
        self,
        request: SynthesisRequest,
        criteria: Optional[EngineSelectionCriteria] = None,
        config: Optional[OrchestrationConfig] = None,
    ) -> SynthesisOutcome:
        """
        Synthesize with validation, selection and fallback.

        Raises:
            NoSuitableAdapterError: If no adapter can serve the request
            SynthesisFailedError: If every suitable adapter failed
        """
        return await self.orchestrator.synthesize(request, criteria, config or self.config)

    def track_performance_targets(
        self,
        adapter_name: str,
        request: SynthesisRequest,
        response: SynthesisResponse,
    ) -> TargetReport:
        return self.monitor.track_performance_targets(adapter_name, request, response)

    # ==================== Capabilities ====================

    async def get_aggregated_capabilities(self) -> TTSCapabilities:
        """Combined capabilities of all available adapters."""
        capabilities = []
        for name in self.registry.list_available():
            try:
                capabilities.append(await self.registry.get_adapter(name).get_capabilities())
            except Exception as e:
                self._log.warning(f"[Manager] Skipping capabilities of {name}: {e}")
        return aggregate_capabilities(capabilities)

    # ==================== Observability ====================

    def start_monitoring(self) -> None:
        self.monitor.start_monitoring()

    def stop_monitoring(self) -> None:
        self.monitor.stop_monitoring()

    def get_statistics(self, name: str) -> Optional[AdapterMetrics]:
        return self.monitor.get_statistics(name)

    def get_all_statistics(self) -> Dict[str, AdapterMetrics]:
        return self.monitor.get_all_statistics()

    def get_recent_alerts(self, limit: int = 10) -> List[PerformanceAlert]:
        return self.alert_engine.get_recent_alerts(limit)

    def get_recent_snapshots(self, limit: int = 100) -> List[PerformanceSnapshot]:
        return self.monitor.get_recent_snapshots(limit)

    def evaluate_alerts(self) -> List[PerformanceAlert]:
        """On-demand threshold evaluation over the rolling statistics."""
        return self.monitor.evaluate_alerts(respect_cooldown=False)

    def get_performance_metrics(self) -> Dict[str, AdapterStatus]:
        """Registration status and metrics of every registered adapter."""
        statistics = self.monitor.get_all_statistics()
        return {
            name: AdapterStatus(
                name=name,
                version=registration.adapter.version,
                is_available=registration.is_available,
                is_initialized=registration.is_initialized,
                registered_at=registration.registered_at,
                health=registration.last_health_check.status if registration.last_health_check else None,
                metrics=statistics.get(name) or AdapterMetrics(),
            )
            for name, registration in self.registry.registrations.items()
        }
