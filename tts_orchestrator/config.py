"""
Orchestrator configuration settings
Centralized environment-based settings for adapter selection, fallback and alerting
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional


# ===== Selection & Fallback =====

# Adapter preferred on ties and used as the bootstrap default
TTS_DEFAULT_ADAPTER = os.getenv("TTS_DEFAULT_ADAPTER", "") or None

# Ordered fallback preference (comma separated adapter names)
TTS_FALLBACK_CHAIN = os.getenv("TTS_FALLBACK_CHAIN", "")

# Selection strategy: round-robin | best-quality | least-load
TTS_SELECTION_STRATEGY = os.getenv("TTS_SELECTION_STRATEGY", "round-robin")

# Per-attempt synthesis timeout (seconds)
TTS_SYNTHESIS_TIMEOUT = float(os.getenv("TTS_SYNTHESIS_TIMEOUT", "120"))

# Adapter health check timeout (seconds)
TTS_HEALTH_CHECK_TIMEOUT = float(os.getenv("TTS_HEALTH_CHECK_TIMEOUT", "10"))


# ===== Engine Server Communication =====

# HTTP client timeout for engine communication (seconds)
ENGINE_HTTP_TIMEOUT = int(os.getenv("ENGINE_HTTP_TIMEOUT", "300"))

# Engine health check timeout (seconds)
ENGINE_HEALTH_CHECK_TIMEOUT = int(os.getenv("ENGINE_HEALTH_CHECK_TIMEOUT", "5"))


# ===== Performance Monitoring =====

# Maximum number of alerts kept in memory (oldest evicted first)
ALERT_BUFFER_SIZE = int(os.getenv("ALERT_BUFFER_SIZE", "100"))

# Minimum time between two record-driven alerts for the same adapter (seconds)
ALERT_COOLDOWN_SECONDS = float(os.getenv("ALERT_COOLDOWN_SECONDS", "60"))

# Health snapshot retention window (hours)
SNAPSHOT_RETENTION_HOURS = float(os.getenv("SNAPSHOT_RETENTION_HOURS", "24"))

# Periodic alert evaluation interval (seconds)
ALERT_EVALUATION_INTERVAL = float(os.getenv("ALERT_EVALUATION_INTERVAL", "30"))

# Alert scheduler thread join timeout (seconds)
ALERT_SCHEDULER_STOP_TIMEOUT = float(os.getenv("ALERT_SCHEDULER_STOP_TIMEOUT", "2.0"))


SELECTION_STRATEGIES = ("round-robin", "best-quality", "least-load")


@dataclass
class OrchestrationConfig:
    """Caller-supplied orchestration settings for one synthesis call."""
    default_adapter: Optional[str] = None
    fallback_chain: List[str] = field(default_factory=list)
    selection_strategy: str = "round-robin"
    # None disables the per-attempt timeout
    synthesis_timeout: Optional[float] = field(default_factory=lambda: TTS_SYNTHESIS_TIMEOUT)


def parse_fallback_chain(value: str) -> List[str]:
    """Split a comma separated adapter list, dropping blanks."""
    return [name.strip() for name in value.split(",") if name.strip()]


def load_orchestration_config() -> OrchestrationConfig:
    """
    Build an OrchestrationConfig from the environment settings above.

    Raises:
        TTSConfigurationError: If TTS_SELECTION_STRATEGY is not a known strategy
    """
    from tts_orchestrator.core.exceptions import TTSConfigurationError

    if TTS_SELECTION_STRATEGY not in SELECTION_STRATEGIES:
        raise TTSConfigurationError(
            "UNKNOWN_SELECTION_STRATEGY",
            strategy=TTS_SELECTION_STRATEGY,
            allowed=",".join(SELECTION_STRATEGIES),
        )

    return OrchestrationConfig(
        default_adapter=TTS_DEFAULT_ADAPTER,
        fallback_chain=parse_fallback_chain(TTS_FALLBACK_CHAIN),
        selection_strategy=TTS_SELECTION_STRATEGY,
        synthesis_timeout=TTS_SYNTHESIS_TIMEOUT,
    )
