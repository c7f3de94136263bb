"""
Abstract Base Class for TTS Adapters

This module defines the capability contract every synthesis backend must
implement so the orchestrator can validate, select and fall back across
them without knowing their internals.

Architecture:
    BaseTTSAdapter (ABC)
    ├── DummyTTSAdapter     (mock engine, tests and frontend development)
    ├── HTTPEngineAdapter   (engine server reached over HTTP, local or remote)
    └── Future adapters...

Usage:
    from tts_orchestrator.services.base_tts_adapter import BaseTTSAdapter

    class MyAdapter(BaseTTSAdapter):
        async def synthesize(self, request): ...
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from tts_orchestrator.models.tts_models import (
    HealthCheckResult,
    SynthesisRequest,
    SynthesisResponse,
    TTSCapabilities,
)


# Methods the registry checks for before accepting an adapter
REQUIRED_ADAPTER_METHODS = (
    "synthesize",
    "get_capabilities",
    "health_check",
    "initialize",
    "cleanup",
)


class BaseTTSAdapter(ABC):
    """
    Abstract base class for TTS adapters

    Attributes:
        name (str): Unique adapter identifier used for registration and selection
        version (str): Adapter version string
        is_initialized (bool): Whether initialize() completed successfully
    """

    def __init__(self, name: str, version: str = "1.0.0"):
        self.name = name
        self.version = version
        self.is_initialized = False

    @abstractmethod
    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        """
        Synthesize one request.

        Implementations may either return a response with success=False or
        raise; the orchestrator treats both as a failed attempt.
        """
        pass

    @abstractmethod
    async def get_capabilities(self) -> TTSCapabilities:
        """Return advertised languages, features, performance and quality."""
        pass

    @abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """Probe the backend and report healthy, degraded or unhealthy."""
        pass

    @abstractmethod
    async def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Prepare the adapter (load models, open clients)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources acquired in initialize()."""
        pass

    async def supports_feature(self, feature: str) -> bool:
        """Check a single feature flag from get_capabilities()."""
        capabilities = await self.get_capabilities()
        return capabilities.features.is_enabled(feature)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version!r})"
