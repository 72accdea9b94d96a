"""
Media I/O provider interface.

The live session only ever talks to a MediaProvider: capture devices,
speech recognition and speech playback stay behind it so the core never
touches platform APIs directly.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger("media")


class CapabilityUnavailableError(RuntimeError):
    """A capture or speech capability is missing or permission was denied."""

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability


class DeltaKind(str, Enum):
    """Kinds of recognized-speech deltas."""
    INTERIM = "interim"
    FINAL = "final"


@dataclass(frozen=True)
class TranscriptDelta:
    """An incremental piece of recognized speech."""
    kind: DeltaKind
    text: str

    @property
    def is_final(self) -> bool:
        return self.kind == DeltaKind.FINAL


DeltaHandler = Callable[[TranscriptDelta], None]
ErrorHandler = Callable[[str], None]


class MediaTrack(Protocol):
    """Anything that can be stopped, e.g. a camera or microphone stream."""

    def stop(self) -> None:
        ...


class MediaHandle:
    """Live audio/video capture handle; release() stops every track."""

    def __init__(self, tracks: Optional[List[MediaTrack]] = None):
        self.tracks: List[MediaTrack] = list(tracks or [])
        self.released = False

    def release(self) -> None:
        """Stop all underlying tracks. Safe to call more than once."""
        if self.released:
            return
        self.released = True
        for track in self.tracks:
            try:
                track.stop()
            except Exception as e:
                logger.warning("Failed to stop media track %r: %s", track, e)
        logger.info("Released %d media track(s)", len(self.tracks))


class MediaProvider(ABC):
    """Capture, transcription, snapshot and playback primitives."""

    @property
    def supports_transcription(self) -> bool:
        """Whether speech-to-text is available on this platform."""
        return True

    @abstractmethod
    async def acquire(self) -> MediaHandle:
        """
        Acquire camera and microphone.

        Raises:
            CapabilityUnavailableError: if a device is missing or denied
        """

    @abstractmethod
    def start_transcription(self, on_delta: DeltaHandler,
                            on_error: Optional[ErrorHandler] = None) -> None:
        """Begin streaming recognized speech to on_delta."""

    @abstractmethod
    def stop_transcription(self) -> None:
        """Stop streaming recognized speech."""

    @abstractmethod
    async def capture_still_frame(self) -> Optional[str]:
        """Return a base64 JPEG frame (no data-URI prefix) or None."""

    @abstractmethod
    def speak(self, text: str) -> None:
        """Play text as speech without blocking the caller."""
