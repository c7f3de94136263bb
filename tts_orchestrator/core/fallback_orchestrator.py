"""
FallbackOrchestrator - Validates, selects and retries across adapters

One synthesis call:

    1. Filter the available adapters (ordered by fallback preference) down
       to the suitable set.
    2. Let the selection strategy pick one adapter from that set.
    3. Synthesize under a per-attempt timeout and record the attempt.
    4. On failure drop the adapter, append it to the fallback chain and
       re-select from the shrunken set.

Retries re-run the strategy instead of walking a fixed list, so selection
criteria stay authoritative for every attempt.
"""
import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence

from loguru import logger

from tts_orchestrator.config import OrchestrationConfig
from tts_orchestrator.core.adapter_registry import AdapterRegistry
from tts_orchestrator.core.exceptions import (
    NoSuitableAdapterError,
    SynthesisFailedError,
    TTSSynthesisError,
)
from tts_orchestrator.core.performance_monitor import PerformanceMonitor
from tts_orchestrator.core.selection_strategy import SelectionResult, SelectionStrategyEngine
from tts_orchestrator.core.suitability_validator import SuitabilityValidator
from tts_orchestrator.models.tts_models import (
    EngineSelectionCriteria,
    SynthesisMetadata,
    SynthesisRequest,
    SynthesisResponse,
)


@dataclass
class SynthesisOutcome:
    """
    Successful result of an orchestrated synthesis.

    Attributes:
        response: The adapter response (metadata marks fallback use)
        selection: Selection of the adapter that succeeded; its
            fallback_chain lists every adapter that failed before it
    """
    response: SynthesisResponse
    selection: SelectionResult

    @property
    def adapter_name(self) -> str:
        return self.selection.adapter_name

    @property
    def fallback_chain(self) -> List[str]:
        return self.selection.fallback_chain


def order_by_preference(names: Sequence[str], preference: Sequence[str]) -> List[str]:
    """
    Put preferred names first (in preference order), then the rest in input order.

    Preferred names that are not in names are ignored.
    """
    available = set(names)
    preferred = [name for name in dict.fromkeys(preference) if name in available]
    return preferred + [name for name in names if name not in preferred]


class FallbackOrchestrator:
    """
    Drives validator and strategy across synthesis attempts.

    Usage:
        orchestrator = FallbackOrchestrator(registry, validator, monitor)
        outcome = await orchestrator.synthesize(request, criteria, config)
        outcome.adapter_name, outcome.fallback_chain
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        validator: SuitabilityValidator,
        monitor: PerformanceMonitor,
        log=None,
    ):
        self.registry = registry
        self.validator = validator
        self.monitor = monitor
        self._log = log or logger

    async def suitable_candidates(
        self,
        request: SynthesisRequest,
        criteria: EngineSelectionCriteria,
        config: OrchestrationConfig,
    ) -> List[str]:
        """
        Suitable adapters in fallback preference order.

        Raises:
            NoSuitableAdapterError: If no available adapter passes validation
        """
        available = self.registry.list_available()
        if not available:
            raise NoSuitableAdapterError("no adapters available")

        candidates = order_by_preference(available, config.fallback_chain)
        suitable = await self.validator.filter_suitable_adapters(candidates, request, criteria)
        if not suitable:
            raise NoSuitableAdapterError(f"none of {len(candidates)} available adapters matches the criteria")
        return suitable

    async def synthesize(
        self,
        request: SynthesisRequest,
        criteria: Optional[EngineSelectionCriteria] = None,
        config: Optional[OrchestrationConfig] = None,
    ) -> SynthesisOutcome:
        """
        Synthesize with fallback.

        Raises:
            NoSuitableAdapterError: If the suitable set is empty before any attempt
            SynthesisFailedError: If every suitable adapter failed; carries the
                full fallback chain and the last failure
        """
        criteria = criteria or EngineSelectionCriteria()
        config = config or OrchestrationConfig()
        strategy = SelectionStrategyEngine(
            self.registry,
            strategy=config.selection_strategy,
            default_adapter=config.default_adapter,
            log=self._log,
        )

        suitable = await self.suitable_candidates(request, criteria, config)
        fallback_chain: List[str] = []
        last_error: Optional[Exception] = None

        while suitable:
            try:
                selection = await strategy.select(
                    suitable, self.monitor.get_all_statistics(), criteria, fallback_chain
                )
            except NoSuitableAdapterError as e:
                if not fallback_chain:
                    raise
                raise SynthesisFailedError(fallback_chain[-1], fallback_chain, last_error or e) from e

            name = selection.adapter_name
            try:
                response = await self._attempt(name, request, config.synthesis_timeout)
            except TTSSynthesisError as e:
                last_error = e
                suitable = [candidate for candidate in suitable if candidate != name]
                fallback_chain.append(name)
                if suitable:
                    self._log.warning(f"[Fallback] {name} failed ({e.reason}), trying next adapter")
                continue

            if fallback_chain:
                response = self._mark_fallback(response, fallback_chain[0], name)
                self._log.info(f"[Fallback] {name} succeeded after {len(fallback_chain)} failed attempt(s): {fallback_chain}")
            return SynthesisOutcome(response=response, selection=selection)

        self._log.error(f"[Fallback] All adapters failed: {fallback_chain}")
        raise SynthesisFailedError(fallback_chain[-1], fallback_chain, last_error)

    async def _attempt(
        self,
        adapter_name: str,
        request: SynthesisRequest,
        timeout: Optional[float],
    ) -> SynthesisResponse:
        """
        Run one adapter attempt and record it.

        Raises:
            TTSSynthesisError: If the adapter raised, timed out or returned
                an unsuccessful response
        """
        adapter = self.registry.get_adapter(adapter_name)
        start_time = self.monitor.now()

        try:
            if timeout is not None:
                response = await asyncio.wait_for(adapter.synthesize(request), timeout=timeout)
            else:
                response = await adapter.synthesize(request)
        except asyncio.TimeoutError:
            response = self._failed_response(adapter_name, request, f"timed out after {timeout}s")
        except TTSSynthesisError as e:
            response = self._failed_response(adapter_name, request, e.reason)
        except Exception as e:
            self._log.opt(exception=e).debug(f"[Fallback] {adapter_name} raised during synthesis")
            response = self._failed_response(adapter_name, request, str(e) or type(e).__name__)

        # Adapter unregistered (or replaced) while the attempt was running
        registration = self.registry.find(adapter_name)
        if registration is None or registration.adapter is not adapter:
            self._log.debug(f"[Fallback] {adapter_name} was unregistered during synthesis, not recording metrics")
        else:
            self.monitor.record_synthesis_metrics(adapter_name, request, response, start_time)

        if not response.success:
            raise TTSSynthesisError(adapter_name, response.error or "unknown error")
        return response

    @staticmethod
    def _failed_response(adapter_name: str, request: SynthesisRequest, error: str) -> SynthesisResponse:
        return SynthesisResponse(
            success=False,
            error=error,
            metadata=SynthesisMetadata(engine=adapter_name, voice=request.voice.id, request_id=request.request_id),
        )

    @staticmethod
    def _mark_fallback(response: SynthesisResponse, original: str, fallback: str) -> SynthesisResponse:
        metadata = response.metadata.model_copy(update={
            "fallback_used": True,
            "original_adapter": original,
            "fallback_adapter": fallback,
        })
        return response.model_copy(update={"metadata": metadata})
