"""
Performance targets and alert thresholds for TTS adapters.

Targets depend on the text length band of the request:

    band     words      rate (w/s)  max response  max memory  min quality
    short    <= 50      15          1500 ms       50 MB       0.8
    medium   <= 200     10          3000 ms       100 MB      0.7
    long     > 200      8           10000 ms      150 MB      0.6

Alert thresholds come in two tiers. The warning tier trips first; the
critical tier is further from the targets.
"""
from dataclasses import dataclass, field
from typing import Dict, List


SHORT_TEXT_MAX_WORDS = 50
MEDIUM_TEXT_MAX_WORDS = 200

MS_PER_SECOND = 1000
REPORT_PRECISION = 2

# Used when a successful response carries no quality estimate
DEFAULT_QUALITY_SCORE = 0.8


@dataclass(frozen=True)
class BandTargets:
    synthesis_rate: float
    max_response_time: float
    max_memory_usage: float
    min_quality: float


PERFORMANCE_TARGETS: Dict[str, BandTargets] = {
    "short": BandTargets(synthesis_rate=15, max_response_time=1500, max_memory_usage=50, min_quality=0.8),
    "medium": BandTargets(synthesis_rate=10, max_response_time=3000, max_memory_usage=100, min_quality=0.7),
    "long": BandTargets(synthesis_rate=8, max_response_time=10000, max_memory_usage=150, min_quality=0.6),
}


@dataclass(frozen=True)
class ThresholdTier:
    """
    One tier of alert thresholds.

    Attributes:
        synthesis_rate: Alert when the rate falls below this (words/sec)
        response_time: Alert when the average response time exceeds this (ms)
        memory_usage: Alert when memory exceeds this (MB)
        error_rate: Alert when the error rate exceeds this (percent)
    """
    synthesis_rate: float
    response_time: float
    memory_usage: float
    error_rate: float


WARNING_THRESHOLDS = ThresholdTier(synthesis_rate=8, response_time=3000, memory_usage=100, error_rate=0.5)
CRITICAL_THRESHOLDS = ThresholdTier(synthesis_rate=6, response_time=4000, memory_usage=150, error_rate=1.0)


@dataclass
class PerformanceSample:
    """Measurements of one synthesis used for target checks."""
    word_count: int
    synthesis_time_ms: float
    memory_usage_mb: float = 0.0
    quality_score: float = DEFAULT_QUALITY_SCORE


@dataclass
class TargetAssessment:
    """
    Per-dimension result of check_performance_targets().

    Attributes:
        meets_all: True only if every dimension met its target
        text_category: short, medium or long
        details: Report lines with values rounded to 2 decimals
    """
    meets_all: bool
    synthesis: bool
    response_time: bool
    memory: bool
    quality: bool
    text_category: str
    synthesis_rate: float
    targets: BandTargets
    details: List[str] = field(default_factory=list)


def text_category(word_count: int) -> str:
    if word_count <= SHORT_TEXT_MAX_WORDS:
        return "short"
    if word_count <= MEDIUM_TEXT_MAX_WORDS:
        return "medium"
    return "long"


def calculate_synthesis_rate(word_count: int, synthesis_time_ms: float) -> float:
    """Words per second; 0.0 when no time was measured."""
    if synthesis_time_ms <= 0:
        return 0.0
    return word_count / synthesis_time_ms * MS_PER_SECOND


def assess_performance(sample: PerformanceSample) -> TargetAssessment:
    """Compare one sample against the targets of its text length band."""
    category = text_category(sample.word_count)
    targets = PERFORMANCE_TARGETS[category]
    rate = calculate_synthesis_rate(sample.word_count, sample.synthesis_time_ms)

    rate_ok = rate >= targets.synthesis_rate
    response_time_ok = sample.synthesis_time_ms <= targets.max_response_time
    memory_ok = sample.memory_usage_mb <= targets.max_memory_usage
    quality_ok = sample.quality_score >= targets.min_quality

    p = REPORT_PRECISION
    details = [
        f"Synthesis rate: {rate:.{p}f} words/sec (target: {targets.synthesis_rate:.{p}f})",
        f"Response time: {sample.synthesis_time_ms / MS_PER_SECOND:.{p}f}s (max: {targets.max_response_time:.0f}ms)",
        f"Memory usage: {sample.memory_usage_mb:.{p}f}MB (max: {targets.max_memory_usage:.0f}MB)",
        f"Quality score: {sample.quality_score:.{p}f} (min: {targets.min_quality:.{p}f})",
    ]

    return TargetAssessment(
        meets_all=rate_ok and response_time_ok and memory_ok and quality_ok,
        synthesis=rate_ok,
        response_time=response_time_ok,
        memory=memory_ok,
        quality=quality_ok,
        text_category=category,
        synthesis_rate=round(rate, p),
        targets=targets,
        details=details,
    )


TARGET_RECOMMENDATIONS = {
    "synthesis": [
        "Synthesis rate is below target - consider optimizing text preprocessing",
        "Check system resources and TTS engine performance",
    ],
    "response_time": [
        "Response time exceeds target - check network connectivity and system load",
        "Consider using shorter text segments for better performance",
    ],
    "memory": [
        "Memory usage is high - monitor for memory leaks",
        "Reduce concurrent request limits",
    ],
    "quality": [
        "Quality score is below target - review voice selection and engine capabilities",
        "Check text preprocessing and formatting",
    ],
}

TARGETS_MET_RECOMMENDATION = "Performance targets are being met - current configuration is optimal"


def target_recommendations(assessment: TargetAssessment) -> List[str]:
    """Recommendations for every failed dimension, or a single all-clear line."""
    recommendations: List[str] = []
    for dimension, lines in TARGET_RECOMMENDATIONS.items():
        if not getattr(assessment, dimension):
            recommendations.extend(lines)
    return recommendations or [TARGETS_MET_RECOMMENDATION]
