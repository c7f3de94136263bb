"""
Dummy TTS Adapter Implementation

A test adapter that doesn't require GPU, models or an engine server.
Instead of synthesizing speech, it returns silent PCM audio sized to the
text length.

Perfect for:
- Host/frontend development without GPU
- Exercising fallback paths (configurable failures, delays, health)
- CI testing
"""
import asyncio
import time
from typing import Any, Dict, Optional

from loguru import logger

from tts_orchestrator.core.exceptions import TTSSynthesisError
from tts_orchestrator.models.tts_models import (
    AudioBuffer,
    HealthCheckResult,
    HealthStatus,
    QualityScore,
    SynthesisMetadata,
    SynthesisRequest,
    SynthesisResponse,
    TTSCapabilities,
)
from tts_orchestrator.services.base_tts_adapter import BaseTTSAdapter


DUMMY_LANGUAGES = [
    "en", "fr", "de", "it", "hi"
]

# Average speaking pace used to size the silent output
WORDS_PER_SECOND = 2.5

BYTES_PER_SAMPLE = {"PCM16": 2, "PCM32": 4, "F32": 4}


class DummyTTSAdapter(BaseTTSAdapter):
    """
    Dummy TTS adapter

    Features:
    - Instant "synthesis" (silent audio)
    - Configurable failure mode, delay and health status
    - Counts synthesize/capability calls for test assertions
    """

    def __init__(
        self,
        name: str = "dummy",
        capabilities: Optional[TTSCapabilities] = None,
        fail: bool = False,
        raise_on_failure: bool = False,
        delay: float = 0.0,
        health_status: HealthStatus = "healthy",
        quality_score: float = 0.85,
        fail_initialize: bool = False,
        version: str = "1.0.0",
    ):
        """
        Initialize Dummy Adapter

        Args:
            name: Registration name
            capabilities: Capabilities to advertise (defaults to DUMMY_LANGUAGES, no features)
            fail: If True, every synthesis fails
            raise_on_failure: If True, failures raise TTSSynthesisError instead
                of returning success=False
            delay: Seconds to sleep inside synthesize()
            health_status: Status reported by health_check()
            quality_score: Overall quality reported per response
            fail_initialize: If True, initialize() raises RuntimeError
        """
        super().__init__(name=name, version=version)
        self.capabilities = capabilities or TTSCapabilities(supported_languages=list(DUMMY_LANGUAGES))
        self.fail = fail
        self.raise_on_failure = raise_on_failure
        self.delay = delay
        self.health_status = health_status
        self.quality_score = quality_score
        self.fail_initialize = fail_initialize

        self.synthesize_calls = 0
        self.capability_queries = 0
        self.cleaned_up = False
        self.config: Dict[str, Any] = {}

    async def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        if self.fail_initialize:
            raise RuntimeError(f"Dummy adapter {self.name} configured to fail initialization")
        self.config = dict(config or {})
        self.is_initialized = True
        self.cleaned_up = False
        logger.debug(f"[Dummy Adapter] {self.name} initialized")

    async def cleanup(self) -> None:
        self.is_initialized = False
        self.cleaned_up = True
        logger.debug(f"[Dummy Adapter] {self.name} cleaned up")

    async def get_capabilities(self) -> TTSCapabilities:
        self.capability_queries += 1
        return self.capabilities

    async def health_check(self) -> HealthCheckResult:
        return HealthCheckResult(
            status=self.health_status,
            response_time=0.0,
            details={"adapter": self.name, "initialized": self.is_initialized},
        )

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        self.synthesize_calls += 1
        start = time.monotonic()

        if self.delay:
            await asyncio.sleep(self.delay)

        metadata = SynthesisMetadata(
            engine=self.name,
            voice=request.voice.id,
            request_id=request.request_id,
        )

        if self.fail:
            if self.raise_on_failure:
                raise TTSSynthesisError(self.name, "configured to fail")
            return SynthesisResponse(success=False, error=f"Dummy adapter {self.name} configured to fail", metadata=metadata)

        audio = self._silence(request)
        metadata.synthesis_time = (time.monotonic() - start) * 1000
        metadata.memory_usage = len(audio.data) / (1024 * 1024)

        return SynthesisResponse(
            success=True,
            audio=audio,
            quality=QualityScore(
                overall=self.quality_score,
                naturalness=self.quality_score,
                clarity=self.quality_score,
                pronunciation=self.quality_score,
                prosody=self.quality_score,
            ),
            metadata=metadata,
        )

    @staticmethod
    def _silence(request: SynthesisRequest) -> AudioBuffer:
        options = request.options
        duration = request.word_count / WORDS_PER_SECOND / options.rate
        if options.max_duration is not None:
            duration = min(duration, options.max_duration)

        sample_count = int(duration * options.sample_rate)
        return AudioBuffer(
            data=bytes(sample_count * BYTES_PER_SAMPLE[options.format]),
            sample_rate=options.sample_rate,
            channels=1,
            format=options.format,
            duration=duration,
        )

