"""Tests for AlertScheduler."""
import time

from tts_orchestrator.core.alert_engine import AlertEngine
from tts_orchestrator.core.performance_monitor import PerformanceMonitor
from tts_orchestrator.models.tts_models import SynthesisResponse
from tts_orchestrator.services.alert_scheduler import AlertScheduler


def failing_monitor(synthesis_request):
    monitor = PerformanceMonitor(alert_engine=AlertEngine())
    monitor.record_synthesis_metrics(
        "broken", synthesis_request, SynthesisResponse(success=False, error="boom"), monitor.now()
    )
    return monitor


def test_run_once_skips_when_not_monitoring(synthesis_request):
    monitor = failing_monitor(synthesis_request)
    scheduler = AlertScheduler(monitor, interval=60)

    assert scheduler.run_once() == 0
    assert scheduler.evaluations == 0
    assert len(monitor.alert_engine) == 0


def test_run_once_evaluates_rolling_statistics(synthesis_request):
    monitor = failing_monitor(synthesis_request)
    monitor.start_monitoring()
    scheduler = AlertScheduler(monitor, interval=60)

    assert scheduler.run_once() == 1
    alert = monitor.alert_engine.get_recent_alerts()[0]
    assert alert.adapter == "broken"
    assert alert.level == "critical"

    # cooldown suppresses a repeat for the same adapter
    assert scheduler.run_once() == 0
    assert scheduler.evaluations == 2


def test_background_thread_start_stop(synthesis_request):
    monitor = failing_monitor(synthesis_request)
    monitor.start_monitoring()
    scheduler = AlertScheduler(monitor, interval=0.01, stop_timeout=1.0)

    scheduler.start()
    assert scheduler.is_running is True

    deadline = time.monotonic() + 2.0
    while scheduler.evaluations == 0 and time.monotonic() < deadline:
        time.sleep(0.01)

    scheduler.stop()
    assert scheduler.is_running is False
    assert scheduler.evaluations >= 1
    assert len(monitor.alert_engine) == 1
