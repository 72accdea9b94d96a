"""
Text-to-speech playback using Google Cloud TTS.
"""
import os
import subprocess
import tempfile
import threading
import logging

from ...config import TTS_VOICE, LANGUAGE_CODE

logger = logging.getLogger("speech_tts")


def _play_wav(wav_path: str) -> bool:
    """Play a WAV file with the first available system player."""
    for player in (["afplay"], ["aplay", "-q"]):
        try:
            subprocess.run(player + [wav_path], check=True, capture_output=True)
            return True
        except FileNotFoundError:
            continue
        except subprocess.CalledProcessError as e:
            logger.warning("%s failed: %s", player[0], e)
            return False
    logger.warning("No audio player found (tried afplay, aplay)")
    return False


def tts_say(text: str,
            voice: str = TTS_VOICE,
            language_code: str = LANGUAGE_CODE) -> bool:
    """
    Synthesize text with Google Cloud Text-to-Speech and play it.

    Returns:
        True if audio was played, False if the caller should fall back to text
    """
    if not text.strip():
        return True

    try:
        from google.cloud import texttospeech

        client = texttospeech.TextToSpeechClient()
        synthesis_input = texttospeech.SynthesisInput(text=text)
        voice_params = texttospeech.VoiceSelectionParams(
            language_code=language_code,
            name=voice
        )
        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.LINEAR16,
            sample_rate_hertz=16000
        )
        response = client.synthesize_speech(
            input=synthesis_input, voice=voice_params, audio_config=audio_config
        )
    except Exception as e:
        logger.error("Google TTS failed: %s", e)
        return False

    with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as tmp_file:
        wav_path = tmp_file.name
        tmp_file.write(response.audio_content)

    try:
        return _play_wav(wav_path)
    finally:
        try:
            os.unlink(wav_path)
        except OSError:
            pass


class SpeechPlayer:
    """Fire-and-forget speech playback on a background thread."""

    def __init__(self,
                 voice: str = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE):
        self.voice = voice
        self.language_code = language_code
        self._lock = threading.Lock()

    def _speak(self, text: str):
        # One utterance at a time
        with self._lock:
            if not tts_say(text, voice=self.voice, language_code=self.language_code):
                logger.warning("Speech playback unavailable for: %s", text)

    def speak_async(self, text: str) -> threading.Thread:
        thread = threading.Thread(target=self._speak, args=(text,), daemon=True)
        thread.start()
        return thread
