"""Tests for FallbackOrchestrator."""

import asyncio

import pytest

from tts_orchestrator.config import OrchestrationConfig
from tts_orchestrator.core.exceptions import (
    NoSuitableAdapterError,
    SynthesisFailedError,
    TTSSynthesisError,
)
from tts_orchestrator.core.fallback_orchestrator import FallbackOrchestrator, order_by_preference
from tts_orchestrator.core.performance_monitor import PerformanceMonitor
from tts_orchestrator.core.suitability_validator import SuitabilityValidator
from tts_orchestrator.services.dummy_adapter import DummyTTSAdapter
from tts_orchestrator.models.tts_models import (
    EngineSelectionCriteria,
    QualityProfile,
    QualityRequirements,
    TTSCapabilities,
)


@pytest.fixture
def monitor():
    return PerformanceMonitor()


@pytest.fixture
def orchestrator(registry, monitor):
    return FallbackOrchestrator(registry, SuitabilityValidator(registry), monitor)


def test_order_by_preference():
    assert order_by_preference(["a", "b", "c", "d"], ["c", "x", "a", "c"]) == ["c", "a", "b", "d"]
    assert order_by_preference(["a", "b"], []) == ["a", "b"]


class TestFallback:

    @pytest.mark.asyncio
    async def test_first_adapter_succeeds(self, orchestrator, register_ready, synthesis_request):
        register_ready("a")
        register_ready("b")

        outcome = await orchestrator.synthesize(synthesis_request)

        assert outcome.adapter_name == "a"
        assert outcome.fallback_chain == []
        assert outcome.response.success is True
        assert outcome.response.metadata.fallback_used is False

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, orchestrator, register_ready, monitor, synthesis_request):
        """A and B fail, C succeeds: chain is [A, B]."""
        a = register_ready("a", fail=True)
        b = register_ready("b", fail=True, raise_on_failure=True)
        c = register_ready("c")

        outcome = await orchestrator.synthesize(synthesis_request)

        assert outcome.adapter_name == "c"
        assert outcome.fallback_chain == ["a", "b"]
        assert (a.synthesize_calls, b.synthesize_calls, c.synthesize_calls) == (1, 1, 1)

        metadata = outcome.response.metadata
        assert metadata.fallback_used is True
        assert metadata.original_adapter == "a"
        assert metadata.fallback_adapter == "c"

        assert monitor.get_statistics("a").successful_requests == 0
        assert monitor.get_statistics("b").total_requests == 1
        assert monitor.get_statistics("c").successful_requests == 1

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_full_chain(self, orchestrator, register_ready, synthesis_request):
        register_ready("a", fail=True)
        register_ready("b", fail=True)

        with pytest.raises(SynthesisFailedError) as exc_info:
            await orchestrator.synthesize(synthesis_request)

        error = exc_info.value
        assert error.fallback_chain == ["a", "b"]
        assert error.adapter_name == "b"
        assert isinstance(error.cause, TTSSynthesisError)
        assert error.cause.adapter_name == "b"

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, orchestrator, register_ready, synthesis_request):
        register_ready("slow", delay=1.0)
        register_ready("fast")

        outcome = await orchestrator.synthesize(
            synthesis_request, config=OrchestrationConfig(synthesis_timeout=0.05)
        )

        assert outcome.adapter_name == "fast"
        assert outcome.fallback_chain == ["slow"]

    @pytest.mark.asyncio
    async def test_default_config_applies_synthesis_timeout(
        self, orchestrator, register_ready, synthesis_request, monkeypatch
    ):
        monkeypatch.setattr("tts_orchestrator.config.TTS_SYNTHESIS_TIMEOUT", 0.05)
        register_ready("hang", delay=5.0)
        register_ready("fast")

        config = OrchestrationConfig(default_adapter="hang")
        assert config.synthesis_timeout == 0.05

        outcome = await asyncio.wait_for(orchestrator.synthesize(synthesis_request, config=config), timeout=2.0)
        assert outcome.adapter_name == "fast"
        assert outcome.fallback_chain == ["hang"]

    @pytest.mark.asyncio
    async def test_zero_timeout_is_not_disabled(self, orchestrator, register_ready, synthesis_request):
        register_ready("slow", delay=0.05)

        with pytest.raises(SynthesisFailedError) as exc_info:
            await orchestrator.synthesize(synthesis_request, config=OrchestrationConfig(synthesis_timeout=0))
        assert "timed out" in exc_info.value.cause.reason

    @pytest.mark.asyncio
    async def test_no_timeout_when_disabled(self, orchestrator, register_ready, synthesis_request):
        register_ready("slow", delay=0.05)

        outcome = await orchestrator.synthesize(synthesis_request, config=OrchestrationConfig(synthesis_timeout=None))
        assert outcome.adapter_name == "slow"

    @pytest.mark.asyncio
    async def test_unregistered_during_attempt_is_not_recorded(
        self, orchestrator, registry, monitor, register_ready, synthesis_request
    ):
        register_ready("slow", delay=0.2)

        task = asyncio.create_task(orchestrator.synthesize(synthesis_request))
        await asyncio.sleep(0.05)
        registry.unregister("slow")
        outcome = await task

        assert outcome.adapter_name == "slow"
        assert monitor.get_all_statistics() == {}

    @pytest.mark.asyncio
    async def test_unexpected_exception_counts_as_failure(self, orchestrator, register_ready, synthesis_request):
        broken = register_ready("broken")

        async def explode(request):
            raise ValueError("corrupt model file")

        broken.synthesize = explode
        register_ready("backup")

        outcome = await orchestrator.synthesize(synthesis_request)
        assert outcome.fallback_chain == ["broken"]

    @pytest.mark.asyncio
    async def test_fallback_preference_orders_candidates(self, orchestrator, register_ready, synthesis_request):
        register_ready("a")
        register_ready("b")
        register_ready("c")

        outcome = await orchestrator.synthesize(
            synthesis_request, config=OrchestrationConfig(fallback_chain=["c", "a"])
        )
        assert outcome.adapter_name == "c"

    @pytest.mark.asyncio
    async def test_retries_reselect_with_strategy(self, orchestrator, register_ready, monitor, synthesis_request):
        """After a failure the strategy re-runs over the remaining set."""
        register_ready("a", fail=True)
        register_ready("b")
        register_ready("c")
        # b is busier than c, so round-robin moves on to c after a fails
        for _ in range(3):
            await orchestrator.synthesize(synthesis_request, EngineSelectionCriteria(preferred_engine="b"))

        outcome = await orchestrator.synthesize(synthesis_request)
        assert outcome.fallback_chain == ["a"]
        assert outcome.adapter_name == "c"


class TestNoSuitableAdapter:

    @pytest.mark.asyncio
    async def test_empty_registry(self, orchestrator, synthesis_request):
        with pytest.raises(NoSuitableAdapterError):
            await orchestrator.synthesize(synthesis_request)

    @pytest.mark.asyncio
    async def test_uninitialized_adapters_are_not_candidates(self, orchestrator, registry, synthesis_request):
        registry.register("a", DummyTTSAdapter(name="a"))

        with pytest.raises(NoSuitableAdapterError):
            await orchestrator.synthesize(synthesis_request)

    @pytest.mark.asyncio
    async def test_criteria_exclude_everything(self, orchestrator, register_ready, synthesis_request):
        register_ready("a")
        with pytest.raises(NoSuitableAdapterError):
            await orchestrator.synthesize(synthesis_request, EngineSelectionCriteria(language="ja"))

    @pytest.mark.asyncio
    async def test_quality_minimum_excludes_sole_adapter(self, orchestrator, register_ready, synthesis_request):
        adapter = register_ready(
            "a", capabilities=TTSCapabilities(supported_languages=["en"], quality=QualityProfile(average_score=0.5))
        )
        criteria = EngineSelectionCriteria(quality_requirements=QualityRequirements(min_overall_quality=0.8))

        with pytest.raises(NoSuitableAdapterError):
            await orchestrator.synthesize(
                synthesis_request, criteria, OrchestrationConfig(selection_strategy="best-quality")
            )
        assert adapter.synthesize_calls == 0

    @pytest.mark.asyncio
    async def test_quality_exhaustion_after_failure_reports_chain(self, orchestrator, register_ready, synthesis_request):
        """Strategy runs dry mid-fallback: surfaced as SynthesisFailedError with the chain."""
        register_ready(
            "good", fail=True,
            capabilities=TTSCapabilities(supported_languages=["en"], quality=QualityProfile(average_score=0.9)),
        )
        register_ready(
            "poor", capabilities=TTSCapabilities(supported_languages=["en"], quality=QualityProfile(average_score=0.4)),
        )
        criteria = EngineSelectionCriteria(quality_requirements=QualityRequirements(min_overall_quality=0.8))

        with pytest.raises(SynthesisFailedError) as exc_info:
            await orchestrator.synthesize(
                synthesis_request, criteria, OrchestrationConfig(selection_strategy="best-quality")
            )
        assert exc_info.value.fallback_chain == ["good"]
