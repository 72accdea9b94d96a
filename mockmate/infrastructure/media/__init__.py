"""
Media I/O for the interview coach.

- provider: the MediaProvider interface and transcript delta types
- console: terminal implementation with an optional OpenCV camera
- speech: Google Cloud text-to-speech playback
- stt: Google Cloud speech-to-text recognition
- voice: microphone capture (PyAudio) feeding the recognizer
"""

from .provider import (
    MediaProvider, MediaHandle, TranscriptDelta, DeltaKind,
    CapabilityUnavailableError
)

__all__ = [
    "MediaProvider", "MediaHandle", "TranscriptDelta", "DeltaKind",
    "CapabilityUnavailableError"
]
