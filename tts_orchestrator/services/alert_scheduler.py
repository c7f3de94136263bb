"""
Alert Scheduler Service

Periodically evaluates the rolling statistics of every adapter against the
alert thresholds on a separate daemon thread, so alerts for degrading
adapters are raised even when no new synthesis requests arrive.
"""

import threading
from typing import Optional

from loguru import logger

from tts_orchestrator.config import ALERT_EVALUATION_INTERVAL, ALERT_SCHEDULER_STOP_TIMEOUT
from tts_orchestrator.core.performance_monitor import PerformanceMonitor


class AlertScheduler:
    """
    Background thread calling PerformanceMonitor.evaluate_alerts().

    Usage:
        scheduler = AlertScheduler(monitor, interval=30)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        monitor: PerformanceMonitor,
        interval: float = ALERT_EVALUATION_INTERVAL,
        stop_timeout: float = ALERT_SCHEDULER_STOP_TIMEOUT,
        log=None,
    ):
        self.monitor = monitor
        self.interval = interval
        self.stop_timeout = stop_timeout
        self.evaluations = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._log = log or logger

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the evaluation thread."""
        if self.is_running:
            self._log.warning("[AlertScheduler] Already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="AlertScheduler"
        )
        self._thread.start()
        self._log.debug(f"[AlertScheduler] Started (interval: {self.interval}s)")

    def stop(self) -> None:
        """Stop the evaluation thread."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self.stop_timeout)
            self._thread = None
        self._log.info("[AlertScheduler] Stopped")

    def run_once(self) -> int:
        """Evaluate all adapters once; returns the number of new alerts."""
        if not self.monitor.is_monitoring:
            return 0
        alerts = self.monitor.evaluate_alerts()
        self.evaluations += 1
        return len(alerts)

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.run_once()
            except Exception as e:
                self._log.error(f"[AlertScheduler] Error in evaluation loop: {e}")
