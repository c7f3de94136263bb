"""
HTTP Engine Adapter

Talks to a TTS engine server (one model per process, local subprocess,
Docker container or remote GPU host) over its HTTP API:

    POST /load      {"ttsModelName": ...}
    POST /generate  {"text", "language", "ttsSpeakerWav", "parameters"} -> audio bytes
    GET  /health    {"status": ready|loading|processing|error, "ttsModelLoaded", ...}

The adapter does not start or stop engine processes; it only needs the
base URL of a running server.
"""
import time
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from tts_orchestrator.config import ENGINE_HEALTH_CHECK_TIMEOUT, ENGINE_HTTP_TIMEOUT
from tts_orchestrator.core.exceptions import TTSConfigurationError, TTSSynthesisError
from tts_orchestrator.models.tts_models import (
    AudioBuffer,
    HealthCheckResult,
    SynthesisMetadata,
    SynthesisRequest,
    SynthesisResponse,
    TTSCapabilities,
)
from tts_orchestrator.services.base_tts_adapter import BaseTTSAdapter


# Engine server status -> adapter health
ENGINE_STATUS_HEALTH = {
    "ready": "healthy",
    "processing": "degraded",
    "loading": "degraded",
    "error": "unhealthy",
}


class HTTPEngineAdapter(BaseTTSAdapter):
    """
    Adapter for an engine server reachable over HTTP.

    Usage:
        adapter = HTTPEngineAdapter(
            'xtts', 'http://127.0.0.1:8766',
            capabilities=TTSCapabilities(supported_languages=['en', 'de']),
            model_name='v2.0.3',
        )
        await adapter.initialize()
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        capabilities: TTSCapabilities,
        model_name: Optional[str] = None,
        speaker_wavs: Optional[Dict[str, Any]] = None,
        client: Optional[httpx.AsyncClient] = None,
        version: str = "1.0.0",
    ):
        """
        Args:
            name: Registration name
            base_url: Engine server URL (e.g., "http://127.0.0.1:8766")
            capabilities: Capabilities advertised for this engine
            model_name: Model to load on initialize() (None keeps the server's current model)
            speaker_wavs: voice id -> speaker sample path(s); unmapped ids are sent as-is
            client: Pre-configured client (owned by the caller)
        """
        super().__init__(name=name, version=version)
        self.base_url = base_url.rstrip("/")
        self.capabilities = capabilities
        self.model_name = model_name
        self.speaker_wavs = dict(speaker_wavs or {})
        self.http_client = client
        self._owns_client = client is None

    async def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Open the HTTP client and load the configured model.

        Raises:
            TTSConfigurationError: If the engine rejects or fails the model load
        """
        config = config or {}
        self.model_name = config.get("model_name", self.model_name)

        if self.http_client is None:
            self.http_client = httpx.AsyncClient(timeout=float(config.get("timeout", ENGINE_HTTP_TIMEOUT)))
            self._owns_client = True

        if self.model_name:
            await self._load_model(self.model_name)

        self.is_initialized = True
        logger.info(f"[HTTP Adapter] {self.name} ready at {self.base_url} (model: {self.model_name or 'default'})")

    async def _load_model(self, model_name: str) -> None:
        url = f"{self.base_url}/load"
        try:
            response = await self.http_client.post(url, json={"ttsModelName": model_name})
            response.raise_for_status()
        except httpx.RequestError as e:
            raise TTSConfigurationError("ENGINE_LOAD_FAILED", adapter=self.name, reason=f"HTTP request failed: {e}")
        except httpx.HTTPStatusError as e:
            raise TTSConfigurationError(
                "ENGINE_LOAD_FAILED", adapter=self.name,
                reason=f"engine returned error {e.response.status_code}: {e.response.text[:200]}",
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TTSConfigurationError(
                "ENGINE_LOAD_FAILED", adapter=self.name, reason=f"invalid /load response: {e}"
            )
        if not isinstance(body, dict) or body.get("status") != "loaded":
            error = body.get("error") if isinstance(body, dict) else None
            raise TTSConfigurationError(
                "ENGINE_LOAD_FAILED", adapter=self.name, reason=error or "model not loaded"
            )

    async def cleanup(self) -> None:
        if self.http_client is not None and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None
        self.is_initialized = False
        logger.debug(f"[HTTP Adapter] {self.name} cleaned up")

    async def get_capabilities(self) -> TTSCapabilities:
        return self.capabilities

    async def health_check(self) -> HealthCheckResult:
        """
        Call the engine's /health endpoint.

        Network or protocol errors report "unhealthy" with response_time -1
        instead of raising.
        """
        if self.http_client is None:
            return HealthCheckResult(status="unhealthy", response_time=-1, error="adapter not initialized")

        url = f"{self.base_url}/health"
        start = time.monotonic()
        try:
            response = await self.http_client.get(url, timeout=float(ENGINE_HEALTH_CHECK_TIMEOUT))
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[HTTP Adapter] Health check for {self.name} failed: {e}")
            return HealthCheckResult(status="unhealthy", response_time=-1, error=str(e))

        elapsed_ms = (time.monotonic() - start) * 1000
        engine_status = body.get("status", "error")
        status = ENGINE_STATUS_HEALTH.get(engine_status, "unhealthy")
        if status == "healthy" and not body.get("ttsModelLoaded", False):
            status = "degraded"

        return HealthCheckResult(
            status=status,
            response_time=elapsed_ms,
            details=body,
            error=body.get("error"),
        )

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        """
        Call the engine's /generate endpoint.

        Raises:
            TTSSynthesisError: If the adapter is not initialized or the request fails
        """
        if self.http_client is None:
            raise TTSSynthesisError(self.name, "adapter not initialized")

        url = f"{self.base_url}/generate"
        options = request.options
        payload = {
            "text": request.text,
            "language": request.voice.language,
            "ttsSpeakerWav": self.speaker_wavs.get(request.voice.id, request.voice.id),
            "parameters": {
                "speed": options.rate,
                "pitch": options.pitch,
                "volume": options.volume,
                **options.engine_options,
            },
        }

        logger.debug(f"[HTTP Adapter] Generating audio with {self.name}: {request.text[:50]}...")

        start = time.monotonic()
        try:
            response = await self.http_client.post(url, json=payload)
            response.raise_for_status()
        except httpx.RequestError as e:
            raise TTSSynthesisError(self.name, f"HTTP request failed: {e}")
        except httpx.HTTPStatusError as e:
            raise TTSSynthesisError(
                self.name, f"engine returned error {e.response.status_code}: {e.response.text[:200]}"
            )

        audio_bytes = response.content
        logger.debug(f"[HTTP Adapter] Generated {len(audio_bytes)} bytes")

        return SynthesisResponse(
            success=True,
            audio=AudioBuffer(
                data=audio_bytes,
                sample_rate=options.sample_rate,
                format=options.format,
            ),
            metadata=SynthesisMetadata(
                synthesis_time=(time.monotonic() - start) * 1000,
                engine=self.name,
                voice=request.voice.id,
                request_id=request.request_id,
            ),
        )
