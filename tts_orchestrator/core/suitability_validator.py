"""
SuitabilityValidator - Decides whether one adapter may serve a request

Runs an ordered pipeline of checks over a ValidationState:

    1. preferred engine     (no capability query)
    2. language support
    3. required features
    4. performance requirements

The first failing step ends the pipeline. Capabilities are fetched lazily on
the first step that needs them and cached on the state, so an adapter that is
not the preferred engine is never queried. Failures are collected as reason
strings and never raised.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from loguru import logger

from tts_orchestrator.core.adapter_registry import AdapterRegistry
from tts_orchestrator.models.tts_models import (
    EngineSelectionCriteria,
    SynthesisRequest,
    TTSCapabilities,
)
from tts_orchestrator.services.base_tts_adapter import BaseTTSAdapter


@dataclass
class ValidationState:
    """
    Accumulated result of the suitability pipeline for one adapter.

    Attributes:
        adapter_name: Adapter being validated
        is_suitable: False once any step failed
        validation_errors: Reasons collected from failed steps
        capabilities: Cached capability report (None until first needed)
    """
    adapter_name: str
    is_suitable: bool = True
    validation_errors: List[str] = field(default_factory=list)
    capabilities: Optional[TTSCapabilities] = None
    capability_queries: int = 0

    def fail(self, *reasons: str) -> "ValidationState":
        self.is_suitable = False
        self.validation_errors.extend(reasons)
        return self


ValidationStep = Callable[
    [ValidationState, BaseTTSAdapter, EngineSelectionCriteria],
    Awaitable[ValidationState],
]


async def continue_if_suitable(
    state: ValidationState,
    step: ValidationStep,
    adapter: BaseTTSAdapter,
    criteria: EngineSelectionCriteria,
) -> ValidationState:
    """Run step only while the state is still suitable."""
    if not state.is_suitable:
        return state
    return await step(state, adapter, criteria)


async def _load_capabilities(state: ValidationState, adapter: BaseTTSAdapter) -> Optional[TTSCapabilities]:
    """Fetch capabilities once per state; a failed query fails the state."""
    if state.capabilities is not None:
        return state.capabilities

    state.capability_queries += 1
    try:
        state.capabilities = await adapter.get_capabilities()
    except Exception as e:
        state.fail(f"Failed to get capabilities: {e}")
        return None
    return state.capabilities


async def check_preferred_engine(
    state: ValidationState,
    adapter: BaseTTSAdapter,
    criteria: EngineSelectionCriteria,
) -> ValidationState:
    if criteria.preferred_engine and state.adapter_name != criteria.preferred_engine:
        return state.fail(f"Not preferred engine: {criteria.preferred_engine}")
    return state


async def check_language_support(
    state: ValidationState,
    adapter: BaseTTSAdapter,
    criteria: EngineSelectionCriteria,
) -> ValidationState:
    if not criteria.language:
        return state

    capabilities = await _load_capabilities(state, adapter)
    if capabilities is None:
        return state
    if not capabilities.supports_language(criteria.language):
        return state.fail(f"Language not supported: {criteria.language}")
    return state


async def check_required_features(
    state: ValidationState,
    adapter: BaseTTSAdapter,
    criteria: EngineSelectionCriteria,
) -> ValidationState:
    if not criteria.required_features:
        return state

    capabilities = await _load_capabilities(state, adapter)
    if capabilities is None:
        return state

    missing = [
        feature for feature in criteria.required_features
        if not capabilities.features.is_enabled(feature)
    ]
    if missing:
        return state.fail(*(f"Missing required feature: {feature}" for feature in missing))
    return state


async def check_performance_requirements(
    state: ValidationState,
    adapter: BaseTTSAdapter,
    criteria: EngineSelectionCriteria,
) -> ValidationState:
    requirements = criteria.performance_requirements
    if requirements is None:
        return state

    capabilities = await _load_capabilities(state, adapter)
    if capabilities is None:
        return state

    performance = capabilities.performance
    errors = []
    if requirements.min_synthesis_rate is not None and performance.synthesis_rate < requirements.min_synthesis_rate:
        errors.append(
            f"Synthesis rate too low: {performance.synthesis_rate} < {requirements.min_synthesis_rate}"
        )
    if requirements.max_init_time is not None and performance.init_time > requirements.max_init_time:
        errors.append(
            f"Init time too high: {performance.init_time} > {requirements.max_init_time}"
        )
    if requirements.max_memory_usage is not None and performance.memory_per_request > requirements.max_memory_usage:
        errors.append(
            f"Memory usage too high: {performance.memory_per_request} > {requirements.max_memory_usage}"
        )

    if errors:
        return state.fail(*errors)
    return state


VALIDATION_PIPELINE: Sequence[ValidationStep] = (
    check_preferred_engine,
    check_language_support,
    check_required_features,
    check_performance_requirements,
)


class SuitabilityValidator:
    """
    Applies the validation pipeline to registered adapters.

    Usage:
        validator = SuitabilityValidator(registry)
        state = await validator.validate('piper', request, criteria)
        names = await validator.filter_suitable_adapters(['piper', 'xtts'], request, criteria)
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        pipeline: Sequence[ValidationStep] = VALIDATION_PIPELINE,
        log=None,
    ):
        self.registry = registry
        self.pipeline = tuple(pipeline)
        self._log = log or logger

    async def validate_adapter(
        self,
        adapter_name: str,
        adapter: BaseTTSAdapter,
        criteria: EngineSelectionCriteria,
    ) -> ValidationState:
        """Run the pipeline over one adapter instance."""
        state = ValidationState(adapter_name=adapter_name)
        for step in self.pipeline:
            state = await continue_if_suitable(state, step, adapter, criteria)
        return state

    async def validate(
        self,
        adapter_name: str,
        request: SynthesisRequest,
        criteria: EngineSelectionCriteria,
    ) -> ValidationState:
        """
        Validate a registered adapter by name.

        An unknown name yields an unsuitable state rather than an error.
        """
        registration = self.registry.find(adapter_name)
        if registration is None:
            return ValidationState(adapter_name=adapter_name).fail(f"Adapter not registered: {adapter_name}")
        return await self.validate_adapter(adapter_name, registration.adapter, criteria)

    async def filter_suitable_adapters(
        self,
        adapter_names: Sequence[str],
        request: SynthesisRequest,
        criteria: EngineSelectionCriteria,
    ) -> List[str]:
        """
        Return the suitable subset of adapter_names, preserving input order.

        Names absent from the registry are skipped silently. Adapters are
        validated concurrently; steps within one adapter stay sequential.
        """
        known = [name for name in adapter_names if self.registry.is_registered(name)]
        states = await asyncio.gather(*(
            self.validate(name, request, criteria) for name in known
        ))

        suitable = []
        for state in states:
            if state.is_suitable:
                suitable.append(state.adapter_name)
            else:
                self._log.debug(
                    f"[Validator] {state.adapter_name} unsuitable: {'; '.join(state.validation_errors)}"
                )
        return suitable
