"""
Combine the capability reports of several adapters into one view of what
the whole adapter pool can do.

Rules:
- languages, formats, sample rates: union (first-seen order)
- features: enabled if any adapter enables it
- synthesis rate: best (max); other performance figures: best case (min)
- limitations: most restrictive known limit (min)
- quality: mean of average scores, rounded to 2 decimals
- cost per request: cheapest (min)
"""
from typing import Iterable, List, Optional, TypeVar

from tts_orchestrator.models.tts_models import (
    AdapterFeatures,
    Limitations,
    PerformanceProfile,
    PricingProfile,
    QualityProfile,
    TTSCapabilities,
)


T = TypeVar("T")


def _union(groups: Iterable[Iterable[T]]) -> List[T]:
    seen = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen.keys())


def _min_known(values: Iterable[Optional[float]]):
    known = [value for value in values if value is not None]
    return min(known) if known else None


def aggregate_capabilities(capabilities: List[TTSCapabilities]) -> TTSCapabilities:
    """Merge adapter capability reports; an empty list yields default capabilities."""
    if not capabilities:
        return TTSCapabilities()

    features = AdapterFeatures(**{
        name: any(getattr(c.features, name) for c in capabilities)
        for name in AdapterFeatures.model_fields
    })

    performance = PerformanceProfile(
        synthesis_rate=max(c.performance.synthesis_rate for c in capabilities),
        max_concurrent_requests=min(c.performance.max_concurrent_requests for c in capabilities),
        memory_per_request=min(c.performance.memory_per_request for c in capabilities),
        init_time=min(c.performance.init_time for c in capabilities),
        average_response_time=min(c.performance.average_response_time for c in capabilities),
    )

    scores = [c.quality.average_score for c in capabilities]
    quality = QualityProfile(average_score=round(sum(scores) / len(scores), 2))

    costs = [c.pricing.cost_per_request for c in capabilities if c.pricing is not None]
    pricing = PricingProfile(cost_per_request=min(costs)) if costs else None

    limitations = Limitations(
        max_duration=_min_known(c.limitations.max_duration for c in capabilities),
        max_file_size=_min_known(c.limitations.max_file_size for c in capabilities),
        rate_limit=_min_known(c.limitations.rate_limit for c in capabilities),
    )

    return TTSCapabilities(
        supported_languages=_union(c.supported_languages for c in capabilities),
        supported_formats=_union(c.supported_formats for c in capabilities),
        supported_sample_rates=_union(c.supported_sample_rates for c in capabilities),
        max_text_length=min(c.max_text_length for c in capabilities),
        features=features,
        performance=performance,
        quality=quality,
        pricing=pricing,
        limitations=limitations,
    )
