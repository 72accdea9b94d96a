"""
Console media provider: typed lines stand in for speech recognition,
an optional OpenCV camera supplies snapshots, and questions are spoken
through Google Cloud TTS or printed.
"""
import asyncio
import base64
import logging
from typing import Callable, Optional

import cv2

from .provider import (
    CapabilityUnavailableError, DeltaHandler, DeltaKind, ErrorHandler,
    MediaHandle, MediaProvider, TranscriptDelta
)
from .speech import SpeechPlayer
from ...config import SNAPSHOT_JPEG_QUALITY

logger = logging.getLogger("media")


class CameraTrack:
    """OpenCV capture device exposed as a stoppable track."""

    def __init__(self, capture: "cv2.VideoCapture", index: int):
        self.capture = capture
        self.index = index

    def stop(self) -> None:
        self.capture.release()
        logger.info("Camera %d released", self.index)

    def __repr__(self) -> str:
        return f"CameraTrack(index={self.index})"


class ConsoleMediaProvider(MediaProvider):
    """Media provider for terminal sessions."""

    def __init__(self,
                 camera_index: Optional[int] = None,
                 speech_player: Optional[SpeechPlayer] = None,
                 output: Callable[[str], None] = print):
        self.camera_index = camera_index
        self.speech_player = speech_player
        self.output = output
        self.listening = False
        self._camera: Optional[CameraTrack] = None
        self._on_delta: Optional[DeltaHandler] = None
        self._on_error: Optional[ErrorHandler] = None

    async def acquire(self) -> MediaHandle:
        if self.camera_index is None:
            return MediaHandle()

        capture = await asyncio.to_thread(cv2.VideoCapture, self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise CapabilityUnavailableError(
                "camera", f"Camera {self.camera_index} is unavailable or permission was denied."
            )

        self._camera = CameraTrack(capture, self.camera_index)
        logger.info("Camera %d acquired", self.camera_index)
        return MediaHandle([self._camera])

    def start_transcription(self, on_delta: DeltaHandler,
                            on_error: Optional[ErrorHandler] = None) -> None:
        self._on_delta = on_delta
        self._on_error = on_error
        self.listening = True

    def stop_transcription(self) -> None:
        self.listening = False

    def feed_line(self, text: str, final: bool = True) -> bool:
        """
        Deliver a typed line as recognized speech.

        Returns:
            False when transcription is not running and the line was dropped
        """
        if not self.listening or self._on_delta is None:
            return False
        kind = DeltaKind.FINAL if final else DeltaKind.INTERIM
        self._on_delta(TranscriptDelta(kind, text))
        return True

    def report_error(self, error: str) -> None:
        """Deliver a recognition error and stop listening."""
        self.listening = False
        if self._on_error is not None:
            self._on_error(error)

    def _read_jpeg(self) -> Optional[str]:
        camera = self._camera
        if camera is None or not camera.capture.isOpened():
            return None
        ok, frame = camera.capture.read()
        if not ok or frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), SNAPSHOT_JPEG_QUALITY])
        if not ok:
            return None
        return base64.b64encode(buf.tobytes()).decode("ascii")

    async def capture_still_frame(self) -> Optional[str]:
        return await asyncio.to_thread(self._read_jpeg)

    def speak(self, text: str) -> None:
        self.output(f"🤖 {text}")
        if self.speech_player is not None:
            self.speech_player.speak_async(text)

    async def flush(self) -> str:
        """Typed lines are delivered as they arrive; nothing is pending."""
        return ""
