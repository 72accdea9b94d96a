"""
Voice media provider: answers are recorded from the microphone and
recognized with Google Cloud Speech when the candidate submits.

PyAudio is imported lazily so typed sessions never need PortAudio.
"""
import asyncio
import functools
import logging
import threading
from typing import Callable, Optional

from .console import ConsoleMediaProvider
from .provider import CapabilityUnavailableError, DeltaHandler, ErrorHandler, MediaHandle
from .stt import recognize_google_sync
from ...config import LANGUAGE_CODE, MAX_RECORD_SECONDS, MIC_FRAMES_PER_BUFFER, MIC_SAMPLE_RATE

logger = logging.getLogger("media")

Recognizer = Callable[[bytes, int], str]


def open_microphone(device_index: Optional[int] = None,
                    sample_rate: int = MIC_SAMPLE_RATE,
                    frames_per_buffer: int = MIC_FRAMES_PER_BUFFER) -> "MicrophoneTrack":
    """
    Open a 16-bit mono input stream.

    Raises:
        CapabilityUnavailableError: if PyAudio is missing or the device cannot be opened
    """
    try:
        import pyaudio
    except ImportError as e:
        raise CapabilityUnavailableError(
            "microphone", "PyAudio is not installed (pip install 'mockmate[voice]')."
        ) from e

    pa = pyaudio.PyAudio()
    try:
        stream = pa.open(
            format=pyaudio.paInt16,
            channels=1,
            rate=sample_rate,
            input=True,
            input_device_index=device_index,
            frames_per_buffer=frames_per_buffer,
        )
    except (OSError, ValueError) as e:
        pa.terminate()
        raise CapabilityUnavailableError(
            "microphone", f"Microphone is unavailable or permission was denied. ({e})"
        ) from e

    logger.info("Microphone opened (device=%s, %d Hz)", device_index, sample_rate)
    return MicrophoneTrack(pa, stream, sample_rate, frames_per_buffer)


class MicrophoneTrack:
    """PyAudio input stream that records PCM on a background thread."""

    def __init__(self, pa, stream, sample_rate: int = MIC_SAMPLE_RATE,
                 frames_per_buffer: int = MIC_FRAMES_PER_BUFFER,
                 max_seconds: float = MAX_RECORD_SECONDS):
        self.pa = pa
        self.stream = stream
        self.sample_rate = sample_rate
        self.frames_per_buffer = frames_per_buffer
        self.max_bytes = int(max_seconds * sample_rate) * 2
        self.stopped = False
        self.read_error: Optional[str] = None
        self._pcm = bytearray()
        self._lock = threading.Lock()
        self._halt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def recording(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._halt.is_set()

    def start_recording(self) -> None:
        if self.stopped or self.recording:
            return
        self.join_recorder()
        self._halt.clear()
        self._thread = threading.Thread(target=self._record, name="mic-recorder", daemon=True)
        self._thread.start()

    def halt_recording(self) -> None:
        """Ask the recorder to stop after its current read."""
        self._halt.set()

    def join_recorder(self) -> None:
        self._halt.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None

    def _record(self) -> None:
        while not self._halt.is_set():
            try:
                chunk = self.stream.read(self.frames_per_buffer, exception_on_overflow=False)
            except OSError as e:
                logger.error("Microphone read failed: %s", e)
                self.read_error = str(e)
                return
            with self._lock:
                room = self.max_bytes - len(self._pcm)
                if room > 0:
                    self._pcm.extend(chunk[:room])

    def take_pcm(self) -> bytes:
        """Return and clear everything recorded so far."""
        with self._lock:
            pcm = bytes(self._pcm)
            self._pcm.clear()
        return pcm

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        self.join_recorder()
        try:
            self.stream.stop_stream()
            self.stream.close()
        finally:
            self.pa.terminate()
        logger.info("Microphone released")

    def __repr__(self) -> str:
        return f"MicrophoneTrack(rate={self.sample_rate})"


class VoiceMediaProvider(ConsoleMediaProvider):
    """
    Console provider with a real microphone.

    Speech recorded while listening is kept until flush(), which runs it
    through the recognizer and delivers the text as one final delta.
    Typed lines still work through feed_line().
    """

    def __init__(self,
                 camera_index: Optional[int] = None,
                 speech_player=None,
                 output=print,
                 device_index: Optional[int] = None,
                 sample_rate: int = MIC_SAMPLE_RATE,
                 language_code: str = LANGUAGE_CODE,
                 recognizer: Optional[Recognizer] = None):
        super().__init__(camera_index=camera_index, speech_player=speech_player, output=output)
        self.device_index = device_index
        self.sample_rate = sample_rate
        self.recognizer = recognizer or functools.partial(recognize_google_sync, language=language_code)
        self.microphone: Optional[MicrophoneTrack] = None

    async def acquire(self) -> MediaHandle:
        handle = await super().acquire()
        try:
            self.microphone = await asyncio.to_thread(open_microphone, self.device_index, self.sample_rate)
        except CapabilityUnavailableError:
            handle.release()
            raise
        return MediaHandle(handle.tracks + [self.microphone])

    def start_transcription(self, on_delta: DeltaHandler,
                            on_error: Optional[ErrorHandler] = None) -> None:
        super().start_transcription(on_delta, on_error)
        if self.microphone is not None:
            self.microphone.start_recording()

    def stop_transcription(self) -> None:
        super().stop_transcription()
        if self.microphone is not None:
            self.microphone.halt_recording()

    async def flush(self) -> str:
        """
        Recognize everything recorded so far and deliver it as speech.

        Returns:
            The recognized text ("" when nothing was heard or recognition failed)
        """
        mic = self.microphone
        if mic is None or mic.stopped:
            return ""

        resume = mic.recording
        await asyncio.to_thread(mic.join_recorder)
        pcm = mic.take_pcm()

        if mic.read_error is not None:
            error, mic.read_error = mic.read_error, None
            self.report_error(f"audio-capture: {error}")
            return ""

        text = ""
        if pcm:
            try:
                text = await asyncio.to_thread(self.recognizer, pcm, mic.sample_rate)
            except Exception as e:
                logger.warning("Recognition failed: %s", e)
                self.report_error(f"network: {e}")
                return ""

        if text:
            self.feed_line(text)
        if resume and self.listening:
            mic.start_recording()
        return text
