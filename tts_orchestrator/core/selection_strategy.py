"""
SelectionStrategyEngine - Chooses one adapter from a suitable set

Strategies:
- round-robin:  fewest total requests (default adapter wins ties when configured)
- least-load:   fewest failed requests, then lowest average response time
- best-quality: highest advertised quality score above the requested minimum

Every strategy breaks remaining ties by first-encountered order, so callers
control precedence through the order of the candidate list.
"""
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from loguru import logger

from tts_orchestrator.core.adapter_metrics import AdapterMetrics
from tts_orchestrator.core.adapter_registry import AdapterRegistry
from tts_orchestrator.core.exceptions import NoSuitableAdapterError, TTSConfigurationError
from tts_orchestrator.models.tts_models import EngineSelectionCriteria


ROUND_ROBIN = "round-robin"
BEST_QUALITY = "best-quality"
LEAST_LOAD = "least-load"

STRATEGIES = (ROUND_ROBIN, BEST_QUALITY, LEAST_LOAD)

# Score weights for SelectionResult.score
BASE_SCORE = 10
SUCCESS_RATE_WEIGHT = 20
DEFAULT_ADAPTER_BONUS = 10
DEFAULT_ADAPTER_QUALITY_BONUS = 15
POSITION_WEIGHT = 2


@dataclass
class SelectionResult:
    """
    Outcome of one selection.

    Attributes:
        adapter_name: Chosen adapter
        reason: Human readable explanation
        score: Relative ranking score (higher is better)
        fallback_chain: Adapters attempted and failed before this selection
    """
    adapter_name: str
    reason: str
    score: float
    fallback_chain: List[str] = field(default_factory=list)


_EMPTY_METRICS = AdapterMetrics()


def _metrics_for(name: str, metrics: Mapping[str, AdapterMetrics]) -> AdapterMetrics:
    return metrics.get(name) or _EMPTY_METRICS


def _require_candidates(candidates: Sequence[str], strategy: str) -> None:
    if not candidates:
        raise NoSuitableAdapterError(f"no candidates for {strategy} selection")


def select_round_robin(candidates: Sequence[str], metrics: Mapping[str, AdapterMetrics]) -> str:
    """Candidate with the fewest total requests; ties go to the first one."""
    _require_candidates(candidates, ROUND_ROBIN)
    return min(candidates, key=lambda name: _metrics_for(name, metrics).total_requests)


def select_round_robin_with_default(
    candidates: Sequence[str],
    metrics: Mapping[str, AdapterMetrics],
    default_adapter: Optional[str] = None,
) -> str:
    """
    Round-robin where the default adapter wins ties for the minimum.

    Example:
        metrics = {'fast': 10/10, 'slow': 2/1}, default='slow'
        select_round_robin_with_default(['fast', 'slow'], metrics, 'slow')  # 'slow'
    """
    _require_candidates(candidates, ROUND_ROBIN)
    fewest = min(_metrics_for(name, metrics).total_requests for name in candidates)
    tied = [name for name in candidates if _metrics_for(name, metrics).total_requests == fewest]

    if default_adapter and default_adapter in tied:
        return default_adapter
    return tied[0]


def select_by_load(candidates: Sequence[str], metrics: Mapping[str, AdapterMetrics]) -> str:
    """
    Candidate with the lowest load (total - successful requests).

    Ties go to the lowest average response time, then to the first one.
    """
    _require_candidates(candidates, LEAST_LOAD)

    def load_key(name: str):
        adapter_metrics = _metrics_for(name, metrics)
        return (adapter_metrics.failed_requests, adapter_metrics.average_response_time)

    return min(candidates, key=load_key)


async def select_by_quality(
    candidates: Sequence[str],
    registry: AdapterRegistry,
    criteria: Optional[EngineSelectionCriteria] = None,
    default_adapter: Optional[str] = None,
    log=None,
) -> str:
    """
    Candidate with the highest advertised quality score.

    Candidates below quality_requirements.min_overall_quality (or below
    min_naturalness where the adapter advertises naturalness) are dropped,
    even when that leaves nothing. An adapter whose capabilities cannot be
    read scores 0.0.

    Raises:
        NoSuitableAdapterError: If no candidate remains
    """
    _require_candidates(candidates, BEST_QUALITY)
    log = log or logger
    requirements = criteria.quality_requirements if criteria else None

    scored = []
    for name in candidates:
        score = 0.0
        naturalness = None
        try:
            capabilities = await registry.get_adapter(name).get_capabilities()
            score = capabilities.quality.average_score
            naturalness = capabilities.quality.naturalness
        except Exception as e:
            log.warning(f"[Selection] Could not read quality for {name}: {e}")

        if requirements and requirements.min_overall_quality is not None and score < requirements.min_overall_quality:
            log.debug(f"[Selection] {name} below min quality ({score} < {requirements.min_overall_quality})")
            continue
        if (
            requirements and requirements.min_naturalness is not None
            and naturalness is not None and naturalness < requirements.min_naturalness
        ):
            log.debug(f"[Selection] {name} below min naturalness ({naturalness} < {requirements.min_naturalness})")
            continue
        scored.append((name, score))

    if not scored:
        raise NoSuitableAdapterError("no adapter meets the quality requirements")

    best = max(score for _, score in scored)
    tied = [name for name, score in scored if score == best]
    if default_adapter and default_adapter in tied:
        return default_adapter
    return tied[0]


class SelectionStrategyEngine:
    """
    Applies the configured strategy and explains the choice.

    Usage:
        engine = SelectionStrategyEngine(registry, 'least-load', default_adapter='piper')
        result = await engine.select(['piper', 'xtts'], monitor.get_all_statistics(), criteria)
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        strategy: str = ROUND_ROBIN,
        default_adapter: Optional[str] = None,
        log=None,
    ):
        if strategy not in STRATEGIES:
            raise TTSConfigurationError(
                "UNKNOWN_SELECTION_STRATEGY", strategy=strategy, allowed=",".join(STRATEGIES)
            )
        self.registry = registry
        self.strategy = strategy
        self.default_adapter = default_adapter
        self._log = log or logger

    async def choose(
        self,
        candidates: Sequence[str],
        metrics: Mapping[str, AdapterMetrics],
        criteria: Optional[EngineSelectionCriteria] = None,
    ) -> str:
        """Return the name picked by the configured strategy."""
        if self.strategy == LEAST_LOAD:
            return select_by_load(candidates, metrics)
        if self.strategy == BEST_QUALITY:
            return await select_by_quality(
                candidates, self.registry, criteria, self.default_adapter, log=self._log
            )
        return select_round_robin_with_default(candidates, metrics, self.default_adapter)

    async def select(
        self,
        candidates: Sequence[str],
        metrics: Mapping[str, AdapterMetrics],
        criteria: Optional[EngineSelectionCriteria] = None,
        fallback_chain: Optional[Sequence[str]] = None,
    ) -> SelectionResult:
        """
        Choose one adapter and build a SelectionResult.

        Raises:
            NoSuitableAdapterError: If candidates is empty or the strategy
                disqualified every candidate
        """
        chosen = await self.choose(candidates, metrics, criteria)
        result = SelectionResult(
            adapter_name=chosen,
            reason=self.selection_reason(chosen, candidates, metrics, criteria),
            score=self.selection_score(chosen, candidates, metrics, criteria),
            fallback_chain=list(fallback_chain or []),
        )
        self._log.debug(f"[Selection] Selected {chosen} ({result.reason}, score {result.score:.1f})")
        return result

    def selection_reason(
        self,
        chosen: str,
        candidates: Sequence[str],
        metrics: Mapping[str, AdapterMetrics],
        criteria: Optional[EngineSelectionCriteria] = None,
    ) -> str:
        reasons = []
        if criteria and criteria.preferred_engine == chosen:
            reasons.append("preferred engine")
        if chosen == self.default_adapter:
            reasons.append("default adapter")

        adapter_metrics = metrics.get(chosen)
        if adapter_metrics and adapter_metrics.total_requests > 0:
            reasons.append(f"{adapter_metrics.success_rate * 100:.1f}% success rate")

        if len(candidates) > 1:
            reasons.append(f"{self.strategy} selection")

        return ", ".join(reasons) if reasons else "selected by availability"

    def selection_score(
        self,
        chosen: str,
        candidates: Sequence[str],
        metrics: Mapping[str, AdapterMetrics],
        criteria: Optional[EngineSelectionCriteria] = None,
    ) -> float:
        score = float(BASE_SCORE)
        score += _metrics_for(chosen, metrics).success_rate * SUCCESS_RATE_WEIGHT

        if chosen == self.default_adapter:
            has_quality_requirements = bool(criteria and criteria.quality_requirements)
            score += DEFAULT_ADAPTER_QUALITY_BONUS if has_quality_requirements else DEFAULT_ADAPTER_BONUS

        if chosen in candidates:
            score += (len(candidates) - list(candidates).index(chosen)) * POSITION_WEIGHT
        return score
