"""
Audiobook TTS Orchestrator

Routes synthesis requests across interchangeable TTS adapters with
suitability checks, pluggable selection strategies, fallback retries
and per-adapter performance alerting.
"""

__version__ = "0.1.0"
