"""
PerformanceMonitor - Per-request metrics and rolling per-adapter statistics

Owns the metrics map. Every synthesis attempt is folded into the adapter's
AdapterMetrics under a per-adapter lock, so counters stay consistent when
attempts are recorded from worker threads as well as the event loop.

While monitoring is active, each record is also handed to the AlertEngine
and health checks produce PerformanceSnapshots. Counters are updated
regardless of the monitoring state.
"""
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from loguru import logger

from tts_orchestrator.core.adapter_metrics import AdapterMetrics
from tts_orchestrator.core.alert_engine import AlertEngine, AlertMetrics, PerformanceAlert
from tts_orchestrator.core.performance_targets import (
    DEFAULT_QUALITY_SCORE,
    PerformanceSample,
    TargetAssessment,
    assess_performance,
    calculate_synthesis_rate,
    target_recommendations,
)
from tts_orchestrator.models.tts_models import HealthCheckResult, SynthesisRequest, SynthesisResponse


HEALTH_ERROR_RATES = {"healthy": 0.0, "degraded": 50.0, "unhealthy": 100.0}
HEALTH_ALERT_LEVELS = {"healthy": "normal", "degraded": "warning", "unhealthy": "critical"}


@dataclass
class PerformanceSnapshot:
    """Point-in-time view of one adapter, taken on health checks."""
    timestamp: datetime
    adapter: str
    status: str
    synthesis_rate: float
    response_time: float
    memory_usage: float
    error_rate: float
    alert_level: str


@dataclass
class TargetReport:
    """Result of track_performance_targets() for one response."""
    meets_targets: bool
    details: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    assessment: Optional[TargetAssessment] = None


class PerformanceMonitor:
    """
    Records synthesis attempts and serves read-only statistics.

    Usage:
        monitor = PerformanceMonitor(alert_engine=AlertEngine())
        start = time.monotonic()
        response = await adapter.synthesize(request)
        monitor.record_synthesis_metrics('piper', request, response, start)
        stats = monitor.get_statistics('piper')
    """

    def __init__(
        self,
        alert_engine: Optional[AlertEngine] = None,
        snapshot_retention_hours: float = 24.0,
        clock: Callable[[], float] = time.monotonic,
        log=None,
    ):
        self.alert_engine = alert_engine
        self.snapshot_retention = timedelta(hours=snapshot_retention_hours)
        self._metrics: Dict[str, AdapterMetrics] = {}
        self._adapter_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._snapshots: List[PerformanceSnapshot] = []
        self._snapshots_lock = threading.Lock()
        self._monitoring = False
        self._clock = clock
        self._log = log or logger

    def now(self) -> float:
        """Current value of the monitor clock, for use as start_time."""
        return self._clock()

    # ==================== Monitoring State ====================

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    def start_monitoring(self) -> None:
        if self._monitoring:
            self._log.debug("[Monitor] Already monitoring")
            return
        self._monitoring = True
        self._log.info("[Monitor] Performance monitoring started")

    def stop_monitoring(self) -> None:
        self._monitoring = False
        self._log.info("[Monitor] Performance monitoring stopped")

    # ==================== Recording ====================

    def _lock_for(self, adapter_name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._adapter_locks.get(adapter_name)
            if lock is None:
                lock = threading.Lock()
                self._adapter_locks[adapter_name] = lock
                self._metrics.setdefault(adapter_name, AdapterMetrics())
            return lock

    def record_synthesis_metrics(
        self,
        adapter_name: str,
        request: SynthesisRequest,
        response: SynthesisResponse,
        start_time: float,
    ) -> AdapterMetrics:
        """
        Fold one synthesis attempt into the adapter's statistics.

        Args:
            adapter_name: Adapter that served the attempt
            request: The synthesized request (word count drives synthesis rate)
            response: Adapter response; success decides successful_requests
            start_time: Value of the monitor clock (time.monotonic) when the attempt started

        Returns:
            Snapshot of the adapter's metrics after the update
        """
        elapsed_ms = max(0.0, (self._clock() - start_time) * 1000)
        memory_usage = response.metadata.memory_usage if response.metadata else None

        synthesis_rate = None
        if response.success and elapsed_ms > 0:
            synthesis_rate = calculate_synthesis_rate(request.word_count, elapsed_ms)

        with self._lock_for(adapter_name):
            metrics = self._metrics.setdefault(adapter_name, AdapterMetrics())
            metrics.record(
                elapsed_ms,
                response.success,
                synthesis_rate=synthesis_rate,
                memory_usage=memory_usage,
            )
            snapshot = metrics.snapshot()

        self._log.debug(
            f"[Monitor] {adapter_name}: {elapsed_ms:.0f}ms success={response.success} "
            f"({snapshot.successful_requests}/{snapshot.total_requests})"
        )

        if self._monitoring and self.alert_engine is not None:
            self.alert_engine.process(
                adapter_name,
                AlertMetrics(
                    synthesis_rate=synthesis_rate,
                    response_time=elapsed_ms,
                    memory_usage=memory_usage or 0.0,
                    error_rate=snapshot.error_rate,
                ),
            )
        return snapshot

    def record_health_check(self, adapter_name: str, result: HealthCheckResult) -> Optional[PerformanceSnapshot]:
        """
        Store a snapshot derived from a health check (only while monitoring).

        Snapshots older than the retention window are dropped.
        """
        if not self._monitoring:
            return None

        metrics = self.get_statistics(adapter_name) or AdapterMetrics()
        snapshot = PerformanceSnapshot(
            timestamp=result.timestamp,
            adapter=adapter_name,
            status=result.status,
            synthesis_rate=metrics.average_synthesis_rate,
            response_time=result.response_time,
            memory_usage=metrics.average_memory_usage,
            error_rate=HEALTH_ERROR_RATES[result.status],
            alert_level=HEALTH_ALERT_LEVELS[result.status],
        )

        cutoff = datetime.now() - self.snapshot_retention
        with self._snapshots_lock:
            self._snapshots.append(snapshot)
            self._snapshots = [s for s in self._snapshots if s.timestamp >= cutoff]
        return snapshot

    # ==================== Queries ====================

    def get_statistics(self, adapter_name: str) -> Optional[AdapterMetrics]:
        """Read-only copy of one adapter's metrics, or None if never recorded."""
        with self._locks_guard:
            lock = self._adapter_locks.get(adapter_name)
        if lock is None:
            return None
        with lock:
            metrics = self._metrics.get(adapter_name)
            return metrics.snapshot() if metrics else None

    def get_all_statistics(self) -> Dict[str, AdapterMetrics]:
        """Read-only copies of every adapter's metrics."""
        with self._locks_guard:
            names = list(self._metrics.keys())
        statistics = {}
        for name in names:
            metrics = self.get_statistics(name)
            if metrics is not None:
                statistics[name] = metrics
        return statistics

    def get_recent_snapshots(self, limit: int = 100) -> List[PerformanceSnapshot]:
        if limit <= 0:
            return []
        with self._snapshots_lock:
            return list(self._snapshots[-limit:])

    def get_summary(self) -> Dict[str, float]:
        """Aggregate statistics across all adapters."""
        stats = [m for m in self.get_all_statistics().values() if m.total_requests > 0]
        total = sum(m.total_requests for m in stats)
        successful = sum(m.successful_requests for m in stats)
        measured = [m for m in stats if m.measured_requests > 0]

        def mean(values):
            values = list(values)
            return sum(values) / len(values) if values else 0.0

        return {
            "total_requests": total,
            "success_rate": successful / total if total else 0.0,
            "error_rate": (total - successful) / total * 100 if total else 0.0,
            "average_response_time": mean(m.average_response_time for m in stats),
            "average_synthesis_rate": mean(m.average_synthesis_rate for m in measured),
            "average_memory_usage": mean(m.average_memory_usage for m in measured),
        }

    # ==================== Targets & Alerts ====================

    def check_performance_targets(self, adapter_name: str, sample: PerformanceSample) -> TargetAssessment:
        """Assess one sample against the targets of its text length band."""
        assessment = assess_performance(sample)
        if not assessment.meets_all:
            self._log.debug(
                f"[Monitor] {adapter_name} missed {assessment.text_category} text targets: "
                f"{'; '.join(assessment.details)}"
            )
        return assessment

    def track_performance_targets(
        self,
        adapter_name: str,
        request: SynthesisRequest,
        response: SynthesisResponse,
    ) -> TargetReport:
        """Assess a completed response and attach recommendations."""
        if not response.success or not response.metadata.synthesis_time:
            return TargetReport(
                meets_targets=False,
                details=["Synthesis failed - no performance metrics available"],
                recommendations=["Check error details and retry synthesis"],
            )

        sample = PerformanceSample(
            word_count=request.word_count,
            synthesis_time_ms=response.metadata.synthesis_time,
            memory_usage_mb=response.metadata.memory_usage or 0.0,
            quality_score=response.quality.overall if response.quality else DEFAULT_QUALITY_SCORE,
        )
        assessment = self.check_performance_targets(adapter_name, sample)
        return TargetReport(
            meets_targets=assessment.meets_all,
            details=assessment.details,
            recommendations=target_recommendations(assessment),
            assessment=assessment,
        )

    def evaluate_alerts(self, respect_cooldown: bool = True) -> List[PerformanceAlert]:
        """
        Evaluate the rolling statistics of every adapter against the thresholds.

        Used by the periodic alert scheduler and on demand by hosts.
        """
        if self.alert_engine is None:
            return []

        alerts = []
        for name, metrics in self.get_all_statistics().items():
            if metrics.total_requests == 0:
                continue
            alert = self.alert_engine.process(
                name,
                AlertMetrics(
                    synthesis_rate=metrics.average_synthesis_rate if metrics.measured_requests else None,
                    response_time=metrics.average_response_time,
                    memory_usage=metrics.average_memory_usage,
                    error_rate=metrics.error_rate,
                ),
                respect_cooldown=respect_cooldown,
            )
            if alert is not None:
                alerts.append(alert)
        return alerts

    # ==================== Maintenance ====================

    def remove_adapter(self, adapter_name: str) -> None:
        with self._locks_guard:
            self._metrics.pop(adapter_name, None)
            self._adapter_locks.pop(adapter_name, None)

    def reset(self) -> None:
        with self._locks_guard:
            self._metrics.clear()
            self._adapter_locks.clear()
        with self._snapshots_lock:
            self._snapshots.clear()
