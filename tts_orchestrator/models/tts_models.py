"""
TTS Orchestration Models with Automatic camelCase Conversion

Pydantic models shared by the orchestrator and its adapters. Field names are
snake_case in Python and serialize to camelCase so hosts can hand requests,
responses and capability reports straight to a frontend.

Data Flow:
    Host (SynthesisRequest + EngineSelectionCriteria)
        ↓
    FallbackOrchestrator (validate, select, retry)
        ↓
    Adapter.synthesize() → SynthesisResponse
        ↓
    PerformanceMonitor (metrics, alerts)
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """
    Convert snake_case string to camelCase.

    Examples:
        sample_rate → sampleRate
        voice_cloning → voiceCloning
    """
    components = string.split('_')
    return components[0] + ''.join(x.title() for x in components[1:])


def to_snake(string: str) -> str:
    """Convert camelCase string to snake_case (voiceCloning → voice_cloning)."""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', string).lower()


class CamelCaseModel(BaseModel):
    """
    Base model with automatic snake_case to camelCase conversion.

    Configuration:
        - alias_generator: Converts field names to camelCase in JSON
        - populate_by_name: Allows both snake_case and camelCase in input
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


AudioFormat = Literal["PCM16", "PCM32", "F32"]
HealthStatus = Literal["healthy", "degraded", "unhealthy"]


# ============================================================================
# Request Models
# ============================================================================

class VoiceConfig(CamelCaseModel):
    """Voice descriptor passed through to the adapter."""
    id: str = Field(description="Adapter specific voice identifier")
    name: str = Field(description="Display name")
    language: str = Field(description="Language code (e.g., 'en', 'de-DE')")
    gender: Literal["male", "female", "neutral"] = "neutral"
    age: Optional[str] = None
    accent: Optional[str] = None


class SynthesisOptions(CamelCaseModel):
    """Synthesis options; engine specific extras go into engine_options."""
    rate: float = Field(default=1.0, gt=0, description="Speaking rate multiplier")
    pitch: float = Field(default=1.0, gt=0, description="Pitch multiplier")
    volume: float = Field(default=1.0, ge=0, description="Volume multiplier")
    sample_rate: int = Field(default=22050, gt=0, description="Output sample rate (Hz)")
    format: AudioFormat = "PCM16"
    max_duration: Optional[float] = Field(default=None, description="Maximum audio duration (seconds)")
    engine_options: Dict[str, Any] = Field(default_factory=dict)


class SynthesisRequest(CamelCaseModel):
    """A single text segment to synthesize."""
    text: str
    voice: VoiceConfig
    options: SynthesisOptions = Field(default_factory=SynthesisOptions)
    request_id: Optional[str] = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())


# ============================================================================
# Response Models
# ============================================================================

class QualityScore(CamelCaseModel):
    """Quality estimate reported by the adapter (all values 0.0 - 1.0)."""
    overall: float = Field(ge=0.0, le=1.0)
    naturalness: float = Field(default=0.0, ge=0.0, le=1.0)
    clarity: float = Field(default=0.0, ge=0.0, le=1.0)
    pronunciation: float = Field(default=0.0, ge=0.0, le=1.0)
    prosody: float = Field(default=0.0, ge=0.0, le=1.0)


class AudioBuffer(CamelCaseModel):
    """Raw audio produced by an adapter. Encoding is the host's concern."""
    data: bytes
    sample_rate: int
    channels: int = 1
    format: AudioFormat = "PCM16"
    duration: float = Field(default=0.0, description="Duration in seconds")


class SynthesisMetadata(CamelCaseModel):
    """Bookkeeping attached to every synthesis response."""
    synthesis_time: float = Field(default=0.0, description="Adapter reported synthesis time (ms)")
    engine: str = ""
    voice: Optional[str] = None
    request_id: Optional[str] = None
    memory_usage: Optional[float] = Field(default=None, description="Peak memory for this request (MB)")

    # Set by the orchestrator when the result came from a fallback adapter
    fallback_used: bool = False
    original_adapter: Optional[str] = None
    fallback_adapter: Optional[str] = None


class SynthesisResponse(CamelCaseModel):
    """Success or failure result of one adapter synthesis call."""
    success: bool
    audio: Optional[AudioBuffer] = None
    quality: Optional[QualityScore] = None
    metadata: SynthesisMetadata = Field(default_factory=SynthesisMetadata)
    error: Optional[str] = None


# ============================================================================
# Capability Models
# ============================================================================

class AdapterFeatures(CamelCaseModel):
    """Boolean feature flags advertised by an adapter."""
    ssml: bool = False
    voice_cloning: bool = False
    realtime: bool = False
    batch: bool = False
    prosody_control: bool = False
    custom_pronunciation: bool = False

    def is_enabled(self, feature: str) -> bool:
        """
        Check a feature flag by snake_case or camelCase name.

        Unknown feature names are reported as not supported.
        """
        field_name = to_snake(feature)
        if field_name not in type(self).model_fields:
            return False
        return bool(getattr(self, field_name))


class PerformanceProfile(CamelCaseModel):
    """Advertised performance characteristics."""
    synthesis_rate: float = Field(default=0.0, description="Words per second")
    max_concurrent_requests: int = 1
    memory_per_request: float = Field(default=0.0, description="MB")
    init_time: float = Field(default=0.0, description="ms")
    average_response_time: float = Field(default=0.0, description="ms")


class QualityProfile(CamelCaseModel):
    """Advertised quality (0.0 - 1.0)."""
    average_score: float = Field(default=0.0, ge=0.0, le=1.0)
    naturalness: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class PricingProfile(CamelCaseModel):
    cost_per_request: float = 0.0
    currency: str = "USD"


class Limitations(CamelCaseModel):
    """Hard limits of an adapter (None means unlimited)."""
    max_duration: Optional[float] = Field(default=None, description="Seconds")
    max_file_size: Optional[int] = Field(default=None, description="Bytes")
    rate_limit: Optional[int] = Field(default=None, description="Requests per minute")


class TTSCapabilities(CamelCaseModel):
    """Everything an adapter advertises about itself."""
    supported_languages: List[str] = Field(default_factory=list)
    supported_formats: List[AudioFormat] = Field(default_factory=lambda: ["PCM16"])
    supported_sample_rates: List[int] = Field(default_factory=lambda: [22050])
    max_text_length: int = 5000
    features: AdapterFeatures = Field(default_factory=AdapterFeatures)
    performance: PerformanceProfile = Field(default_factory=PerformanceProfile)
    quality: QualityProfile = Field(default_factory=QualityProfile)
    pricing: Optional[PricingProfile] = None
    limitations: Limitations = Field(default_factory=Limitations)

    def supports_language(self, language: str) -> bool:
        wanted = language.lower()
        return any(lang.lower() == wanted for lang in self.supported_languages)


class HealthCheckResult(CamelCaseModel):
    """Result of one adapter health probe."""
    status: HealthStatus
    timestamp: datetime = Field(default_factory=datetime.now)
    response_time: float = Field(default=0.0, description="ms; -1 when the probe itself failed")
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


# ============================================================================
# Selection Criteria
# ============================================================================

class PerformanceRequirements(CamelCaseModel):
    min_synthesis_rate: Optional[float] = None
    max_init_time: Optional[float] = None
    max_memory_usage: Optional[float] = None


class QualityRequirements(CamelCaseModel):
    min_overall_quality: Optional[float] = None
    min_naturalness: Optional[float] = None


class EngineSelectionCriteria(CamelCaseModel):
    """Constraints a caller puts on which adapter may serve a request."""
    preferred_engine: Optional[str] = None
    language: Optional[str] = None
    required_features: List[str] = Field(default_factory=list)
    performance_requirements: Optional[PerformanceRequirements] = None
    quality_requirements: Optional[QualityRequirements] = None
