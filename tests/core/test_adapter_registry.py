"""Tests for AdapterRegistry."""

import pytest

from tts_orchestrator.core.exceptions import (
    AdapterNotFoundError,
    DuplicateAdapterError,
    TTSConfigurationError,
)
from tts_orchestrator.models.tts_models import HealthCheckResult
from tts_orchestrator.services.dummy_adapter import DummyTTSAdapter


@pytest.fixture
def adapter():
    return DummyTTSAdapter(name="piper")


def test_register_adapter(registry, adapter):
    """Test registering a new adapter."""
    registration = registry.register("piper", adapter)
    assert registry.is_registered("piper")
    assert registration.adapter is adapter
    assert registration.is_available is True
    assert registration.is_initialized is False
    assert registration.last_health_check is None


def test_register_duplicate_raises(registry, adapter):
    registry.register("piper", adapter)
    with pytest.raises(DuplicateAdapterError):
        registry.register("piper", DummyTTSAdapter(name="piper"))


def test_register_rejects_incomplete_adapter(registry):
    """Objects missing contract methods are rejected."""
    class HalfAdapter:
        async def synthesize(self, request):
            pass

    with pytest.raises(TTSConfigurationError) as exc_info:
        registry.register("half", HalfAdapter())
    assert "get_capabilities" in exc_info.value.params["missing"]
    assert not registry.is_registered("half")


def test_unregister(registry, adapter):
    registry.register("piper", adapter)
    assert registry.unregister("piper") is True
    assert registry.unregister("piper") is False
    assert registry.list_registered() == []


def test_get_unknown_raises(registry):
    with pytest.raises(AdapterNotFoundError):
        registry.get("ghost")
    assert registry.find("ghost") is None


def test_list_available_requires_initialized_and_available(registry):
    """Only initialized and available adapters are listed, in registration order."""
    for name in ("a", "b", "c", "d"):
        registry.register(name, DummyTTSAdapter(name=name))

    registry.mark_initialized("a")
    registry.mark_initialized("c")
    registry.mark_initialized("d")
    registry.set_available("d", False)

    assert registry.list_available() == ["a", "c"]


class TestHealthCheckTransitions:
    """Health results drive availability."""

    @pytest.fixture
    def ready_registry(self, registry, adapter):
        registry.register("piper", adapter)
        registry.mark_initialized("piper")
        return registry

    def test_unhealthy_marks_unavailable(self, ready_registry):
        result = HealthCheckResult(status="unhealthy")
        ready_registry.apply_health_check("piper", result)
        registration = ready_registry.get("piper")
        assert registration.is_available is False
        assert registration.last_health_check is result
        assert ready_registry.list_available() == []

    def test_degraded_keeps_available(self, ready_registry):
        ready_registry.apply_health_check("piper", HealthCheckResult(status="degraded"))
        assert ready_registry.get("piper").is_available is True

    def test_healthy_restores_availability(self, ready_registry):
        ready_registry.apply_health_check("piper", HealthCheckResult(status="unhealthy"))
        ready_registry.apply_health_check("piper", HealthCheckResult(status="healthy"))
        assert ready_registry.list_available() == ["piper"]
