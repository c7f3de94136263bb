"""Shared fixtures for orchestrator tests."""

import pytest

from tts_orchestrator.core.adapter_registry import AdapterRegistry
from tts_orchestrator.models.tts_models import SynthesisRequest, VoiceConfig
from tts_orchestrator.services.dummy_adapter import DummyTTSAdapter


class FakeClock:
    """Manually advanced clock (seconds) for deterministic timing."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def voice():
    return VoiceConfig(id="narrator", name="Narrator", language="en", gender="female")


@pytest.fixture
def synthesis_request(voice):
    """A short (10 word) request."""
    return SynthesisRequest(
        text="It was a bright cold day in April, the clocks",
        voice=voice,
        request_id="req-1",
    )


@pytest.fixture
def registry():
    """Create a fresh registry for each test."""
    return AdapterRegistry()


@pytest.fixture
def register_ready(registry):
    """Register a DummyTTSAdapter and mark it initialized."""
    def _register(name, **kwargs):
        adapter = DummyTTSAdapter(name=name, **kwargs)
        registry.register(name, adapter)
        registry.mark_initialized(name)
        return adapter
    return _register
