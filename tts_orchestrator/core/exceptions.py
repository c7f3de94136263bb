"""
Orchestrator Exception Classes

Structured exceptions with error codes so hosts can translate or match
failures without parsing free text.

Format: [ERROR_CODE]param1:value1;param2:value2

Usage:
    raise SynthesisFailedError("piper", ["xtts", "piper"], cause)

    # Produces: [SYNTHESIS_FAILED]adapter:piper;fallbackChain:xtts,piper;reason:...

Only NoSuitableAdapterError and SynthesisFailedError escape the orchestrator
to callers. Per-adapter suitability failures are collected as strings and
never raised.
"""
from typing import List, Optional


class TTSError(Exception):
    """
    Base exception for all orchestrator errors with structured error codes.

    Attributes:
        code: Stable error code (e.g., "NO_SUITABLE_ADAPTER")
        params: Key-value parameters describing the failure
    """

    def __init__(self, code: str, message: Optional[str] = None, **params):
        self.code = code
        self.params = params
        self._message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.params:
            params_str = ";".join(f"{k}:{v}" for k, v in self.params.items())
            return f"[{self.code}]{params_str}"
        return f"[{self.code}]"

    @property
    def message(self) -> str:
        """Human readable message, falling back to the structured form."""
        return self._message or str(self)


class TTSConfigurationError(TTSError):
    """Invalid orchestrator or adapter configuration (not retryable)."""


class DuplicateAdapterError(TTSConfigurationError):
    """An adapter with the same name is already registered."""

    def __init__(self, name: str):
        self.adapter_name = name
        super().__init__("DUPLICATE_ADAPTER", f"Adapter {name} is already registered", adapter=name)


class AdapterNotFoundError(TTSError):
    """Lookup of an adapter name that is not registered."""

    def __init__(self, name: str):
        self.adapter_name = name
        super().__init__("ADAPTER_NOT_FOUND", f"Adapter {name} not found", adapter=name)


class NoSuitableAdapterError(TTSError):
    """
    The candidate set is empty after filtering or selection.

    Attributes:
        fallback_chain: Adapters already attempted before the set ran dry
    """

    def __init__(self, reason: str, fallback_chain: Optional[List[str]] = None):
        self.reason = reason
        self.fallback_chain = list(fallback_chain or [])
        params = {"reason": reason}
        if self.fallback_chain:
            params["fallbackChain"] = ",".join(self.fallback_chain)
        super().__init__("NO_SUITABLE_ADAPTER", f"No suitable TTS adapter: {reason}", **params)


class TTSSynthesisError(TTSError):
    """
    A single adapter attempt failed.

    Raised by adapters (or built by the orchestrator from a failed response)
    and retried by falling back to another adapter.
    """

    def __init__(self, adapter: str, reason: str):
        self.adapter_name = adapter
        self.reason = reason
        super().__init__("SYNTHESIS_ERROR", f"Adapter {adapter} failed: {reason}", adapter=adapter, reason=reason)


class SynthesisFailedError(TTSError):
    """
    Every suitable adapter failed; the fallback chain is exhausted.

    Attributes:
        adapter_name: Last adapter attempted
        fallback_chain: Ordered names of every failed adapter
        cause: Last observed failure
    """

    def __init__(self, adapter: str, fallback_chain: List[str], cause: Optional[BaseException] = None):
        self.adapter_name = adapter
        self.fallback_chain = list(fallback_chain)
        self.cause = cause
        reason = getattr(cause, "reason", None) or (str(cause) if cause else "unknown")
        super().__init__(
            "SYNTHESIS_FAILED",
            f"All adapters failed (last: {adapter}): {reason}",
            adapter=adapter,
            fallbackChain=",".join(self.fallback_chain),
            reason=reason,
        )
