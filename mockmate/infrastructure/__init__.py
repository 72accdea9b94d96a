"""Infrastructure components for MockMate.

This module contains low-level technical components that provide
foundational capabilities for the interview coach.
"""

# Media infrastructure
from .media import (
    MediaProvider, MediaHandle, TranscriptDelta, DeltaKind,
    CapabilityUnavailableError
)

# LLM infrastructure
from .llm import GeminiRestClient

__all__ = [
    # Media I/O
    "MediaProvider", "MediaHandle", "TranscriptDelta", "DeltaKind",
    "CapabilityUnavailableError",

    # LLM client
    "GeminiRestClient"
]
