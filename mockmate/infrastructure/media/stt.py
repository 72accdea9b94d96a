"""
Speech-to-text functionality using Google Cloud Speech.
"""
import logging

from google.api_core.exceptions import GoogleAPICallError
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import speech

from ...config import LANGUAGE_CODE, MIC_SAMPLE_RATE

logger = logging.getLogger("speech_stt")


class SpeechRecognitionError(RuntimeError):
    """Google Cloud Speech could not be reached or rejected the audio."""


def recognize_google_sync(pcm16_bytes: bytes,
                          sr_hz: int = MIC_SAMPLE_RATE,
                          language: str = LANGUAGE_CODE) -> str:
    """
    Synchronous Google Cloud Speech-to-Text recognition.
    Returns transcribed text or empty string if no speech detected.

    Raises:
        SpeechRecognitionError: on credential or API failures
    """
    if not pcm16_bytes:
        return ""

    audio = speech.RecognitionAudio(content=pcm16_bytes)
    config = speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
        sample_rate_hertz=sr_hz,
        language_code=language,
        enable_automatic_punctuation=True,
    )

    try:
        client = speech.SpeechClient()
        resp = client.recognize(config=config, audio=audio)
    except (GoogleAPICallError, DefaultCredentialsError) as e:
        logger.error("Speech recognition failed: %s", e)
        raise SpeechRecognitionError(str(e)) from e

    texts = [r.alternatives[0].transcript for r in resp.results if r.alternatives]
    return " ".join(texts).strip()
