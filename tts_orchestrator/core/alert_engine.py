"""
AlertEngine - Turns adapter metrics into attributed performance alerts

Each evaluation reports at most one cause per adapter. Dimensions are checked
in a fixed priority order and the first violation wins:

    synthesis_rate (below) > response_time (above) > memory_usage (above) > error_rate (above)

The critical tier is checked before the warning tier. Alerts are kept in a
bounded in-memory buffer; the oldest alert is evicted first.
"""
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional

from loguru import logger

from tts_orchestrator.core.performance_targets import (
    CRITICAL_THRESHOLDS,
    WARNING_THRESHOLDS,
    ThresholdTier,
)


METRIC_SYNTHESIS_RATE = "synthesis_rate"
METRIC_RESPONSE_TIME = "response_time"
METRIC_MEMORY_USAGE = "memory_usage"
METRIC_ERROR_RATE = "error_rate"

ALERT_RECOMMENDATIONS: Dict[str, List[str]] = {
    METRIC_SYNTHESIS_RATE: [
        "Check system resources (CPU, memory)",
        "Verify TTS engine health",
        "Consider reducing concurrent requests",
    ],
    METRIC_RESPONSE_TIME: [
        "Check network connectivity",
        "Verify TTS engine availability",
        "Monitor system load",
    ],
    METRIC_MEMORY_USAGE: [
        "Monitor for memory leaks",
        "Reduce concurrent request limit",
        "Check for large text processing",
    ],
    METRIC_ERROR_RATE: [
        "Check TTS engine status",
        "Verify input format and content",
        "Review adapter configuration",
    ],
}


@dataclass
class AlertMetrics:
    """
    Values compared against thresholds.

    Attributes:
        synthesis_rate: Words per second (None when not measurable, e.g. failed request)
        response_time: Milliseconds
        memory_usage: Megabytes
        error_rate: Percent of failed requests (0 - 100)
    """
    synthesis_rate: Optional[float] = None
    response_time: float = 0.0
    memory_usage: float = 0.0
    error_rate: float = 0.0


@dataclass
class AlertCause:
    metric: str
    value: float
    threshold: float
    message: str


@dataclass
class PerformanceAlert:
    id: str
    timestamp: datetime
    level: str
    metric: str
    value: float
    threshold: float
    message: str
    adapter: str
    recommendations: List[str] = field(default_factory=list)


def determine_alert_cause(metrics: AlertMetrics, threshold: ThresholdTier) -> Optional[AlertCause]:
    """
    Return the first violated dimension in priority order, or None.

    Simultaneous violations are not aggregated.
    """
    if metrics.synthesis_rate is not None and metrics.synthesis_rate < threshold.synthesis_rate:
        return AlertCause(
            metric=METRIC_SYNTHESIS_RATE,
            value=metrics.synthesis_rate,
            threshold=threshold.synthesis_rate,
            message=f"Synthesis rate {metrics.synthesis_rate:.2f} wps below threshold {threshold.synthesis_rate} wps",
        )
    if metrics.response_time > threshold.response_time:
        return AlertCause(
            metric=METRIC_RESPONSE_TIME,
            value=metrics.response_time,
            threshold=threshold.response_time,
            message=f"Response time {metrics.response_time:.0f}ms above threshold {threshold.response_time}ms",
        )
    if metrics.memory_usage > threshold.memory_usage:
        return AlertCause(
            metric=METRIC_MEMORY_USAGE,
            value=metrics.memory_usage,
            threshold=threshold.memory_usage,
            message=f"Memory usage {metrics.memory_usage:.2f}MB above threshold {threshold.memory_usage}MB",
        )
    if metrics.error_rate > threshold.error_rate:
        return AlertCause(
            metric=METRIC_ERROR_RATE,
            value=metrics.error_rate,
            threshold=threshold.error_rate,
            message=f"Error rate {metrics.error_rate:.2f}% above threshold {threshold.error_rate}%",
        )
    return None


def build_alert(adapter_name: str, level: str, cause: AlertCause, now: Optional[float] = None) -> PerformanceAlert:
    """Attach id, timestamp, recommendations and adapter attribution to a cause."""
    now = time.time() if now is None else now
    return PerformanceAlert(
        id=f"{adapter_name}-{cause.metric}-{int(now * 1000)}",
        timestamp=datetime.fromtimestamp(now),
        level=level,
        metric=cause.metric,
        value=cause.value,
        threshold=cause.threshold,
        message=f"{cause.message} for adapter {adapter_name}",
        adapter=adapter_name,
        recommendations=list(ALERT_RECOMMENDATIONS[cause.metric]),
    )


class AlertEngine:
    """
    Evaluates metrics against both threshold tiers and keeps recent alerts.

    Thread-safe: the alert scheduler evaluates from its own thread.

    Attributes:
        cooldown_seconds: Minimum spacing of record-driven alerts per adapter
    """

    def __init__(
        self,
        buffer_size: int = 100,
        cooldown_seconds: float = 60.0,
        warning: ThresholdTier = WARNING_THRESHOLDS,
        critical: ThresholdTier = CRITICAL_THRESHOLDS,
        clock: Callable[[], float] = time.time,
        log=None,
    ):
        self.warning = warning
        self.critical = critical
        self.cooldown_seconds = cooldown_seconds
        self._alerts: Deque[PerformanceAlert] = deque(maxlen=buffer_size)
        self._last_alert_at: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._log = log or logger

    def evaluate(self, adapter_name: str, metrics: AlertMetrics) -> Optional[PerformanceAlert]:
        """Build an alert for the most severe tier violated, without storing it."""
        for level, tier in (("critical", self.critical), ("warning", self.warning)):
            cause = determine_alert_cause(metrics, tier)
            if cause is not None:
                return build_alert(adapter_name, level, cause, now=self._clock())
        return None

    def process(
        self,
        adapter_name: str,
        metrics: AlertMetrics,
        respect_cooldown: bool = True,
    ) -> Optional[PerformanceAlert]:
        """
        Evaluate and store an alert.

        Returns:
            The stored alert, or None when nothing was violated or the
            adapter is still in its cooldown window
        """
        alert = self.evaluate(adapter_name, metrics)
        if alert is None:
            return None

        now = self._clock()
        with self._lock:
            last = self._last_alert_at.get(adapter_name)
            if respect_cooldown and last is not None and now - last < self.cooldown_seconds:
                return None
            self._last_alert_at[adapter_name] = now
            self._alerts.append(alert)

        self._log.warning(f"[Alerts] {alert.level.upper()}: {alert.message}")
        return alert

    def get_recent_alerts(self, limit: int = 10) -> List[PerformanceAlert]:
        """Most recent alerts, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._alerts)[-limit:]

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()
            self._last_alert_at.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)
