"""Tests for AlertEngine, determine_alert_cause and build_alert."""

import pytest

from tts_orchestrator.core.alert_engine import (
    AlertCause,
    AlertEngine,
    AlertMetrics,
    build_alert,
    determine_alert_cause,
)
from tts_orchestrator.core.performance_targets import CRITICAL_THRESHOLDS, WARNING_THRESHOLDS


HEALTHY = dict(synthesis_rate=20.0, response_time=500.0, memory_usage=30.0, error_rate=0.0)


@pytest.fixture
def engine(clock):
    return AlertEngine(buffer_size=3, cooldown_seconds=60, clock=clock)


class TestDetermineAlertCause:

    def test_no_violation(self):
        assert determine_alert_cause(AlertMetrics(**HEALTHY), WARNING_THRESHOLDS) is None

    def test_synthesis_rate_has_priority(self):
        """Rate and response time both violated: rate wins."""
        metrics = AlertMetrics(**{**HEALTHY, "synthesis_rate": 2.0, "response_time": 9000.0})
        cause = determine_alert_cause(metrics, WARNING_THRESHOLDS)
        assert cause.metric == "synthesis_rate"
        assert cause.value == 2.0
        assert cause.threshold == WARNING_THRESHOLDS.synthesis_rate

    @pytest.mark.parametrize("override, metric", [
        ({"response_time": 3500.0, "memory_usage": 500.0, "error_rate": 50.0}, "response_time"),
        ({"memory_usage": 120.0, "error_rate": 50.0}, "memory_usage"),
        ({"error_rate": 0.8}, "error_rate"),
    ])
    def test_priority_order(self, override, metric):
        cause = determine_alert_cause(AlertMetrics(**{**HEALTHY, **override}), WARNING_THRESHOLDS)
        assert cause.metric == metric

    def test_unmeasured_rate_is_skipped(self):
        metrics = AlertMetrics(**{**HEALTHY, "synthesis_rate": None})
        assert determine_alert_cause(metrics, WARNING_THRESHOLDS) is None


class TestBuildAlert:

    def test_composite_id_and_recommendations(self):
        cause = AlertCause(metric="response_time", value=5000, threshold=3000, message="Response time 5000ms above threshold 3000ms")
        alert = build_alert("xtts", "warning", cause, now=1700000000.5)

        assert alert.id == "xtts-response_time-1700000000500"
        assert alert.adapter == "xtts"
        assert alert.level == "warning"
        assert alert.message == "Response time 5000ms above threshold 3000ms for adapter xtts"
        assert alert.recommendations == [
            "Check network connectivity",
            "Verify TTS engine availability",
            "Monitor system load",
        ]


class TestAlertEngine:

    def test_warning_tier(self, engine):
        alert = engine.evaluate("piper", AlertMetrics(**{**HEALTHY, "synthesis_rate": 7.0}))
        assert alert.level == "warning"

    def test_critical_tier_checked_first(self, engine):
        alert = engine.evaluate("piper", AlertMetrics(**{**HEALTHY, "synthesis_rate": 5.0}))
        assert alert.level == "critical"
        assert alert.threshold == CRITICAL_THRESHOLDS.synthesis_rate

    def test_process_stores_alert(self, engine):
        alert = engine.process("piper", AlertMetrics(**{**HEALTHY, "error_rate": 5.0}))
        assert engine.get_recent_alerts() == [alert]

    def test_nothing_stored_when_healthy(self, engine):
        assert engine.process("piper", AlertMetrics(**HEALTHY)) is None
        assert len(engine) == 0

    def test_cooldown_per_adapter(self, engine, clock):
        bad = AlertMetrics(**{**HEALTHY, "error_rate": 5.0})
        assert engine.process("piper", bad) is not None
        assert engine.process("piper", bad) is None
        assert engine.process("xtts", bad) is not None

        clock.advance(61)
        assert engine.process("piper", bad) is not None

    def test_cooldown_can_be_bypassed(self, engine):
        bad = AlertMetrics(**{**HEALTHY, "error_rate": 5.0})
        engine.process("piper", bad)
        assert engine.process("piper", bad, respect_cooldown=False) is not None

    def test_buffer_evicts_oldest(self, engine):
        bad = AlertMetrics(**{**HEALTHY, "error_rate": 5.0})
        for name in ("a", "b", "c", "d"):
            engine.process(name, bad)

        assert [alert.adapter for alert in engine.get_recent_alerts()] == ["b", "c", "d"]
        assert [alert.adapter for alert in engine.get_recent_alerts(limit=2)] == ["c", "d"]

    def test_clear(self, engine):
        engine.process("a", AlertMetrics(**{**HEALTHY, "error_rate": 5.0}))
        engine.clear()
        assert engine.get_recent_alerts() == []
