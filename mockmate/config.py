"""
MockMate Configuration System
=============================

This file contains ALL configuration for the MockMate interview coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview
# =============================================================================

# Credentials: an API key selects the public Gemini API, a project selects Vertex AI
GEMINI_API_KEY = None
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Default interview setup
JOB_ROLE = "Software Engineer"
EXPERIENCE_LEVEL = "Mid-Level"
FOCUS_AREA = "Technical Skills"

# Speech settings
ENABLE_TTS = False
TTS_VOICE = "en-US-Neural2-F"
LANGUAGE_CODE = "en-US"

# Voice answers: microphone + Google Cloud Speech (typed answers otherwise)
ENABLE_VOICE = False
MIC_DEVICE = None  # None uses the system default input

# Camera (None disables snapshots)
CAMERA_INDEX = 0

# Logging
LOG_FILE = "./_mockmate/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Interview flow
MAX_TURNS = 3
MIN_ANSWER_CHARS = 5
FALLBACK_OPENING_QUESTION = "Tell me about yourself."

# Report
STRONG_CANDIDATE_THRESHOLD = 75
POSITIVE_BAND_MIN = 80
NEUTRAL_BAND_MIN = 60
SUMMARY_PLACEHOLDER = "Generating comprehensive report..."

# Snapshot
SNAPSHOT_JPEG_QUALITY = 80

# Microphone capture (16-bit mono PCM)
MIC_SAMPLE_RATE = 16000
MIC_FRAMES_PER_BUFFER = 1600
MAX_RECORD_SECONDS = 55  # synchronous recognition accepts about a minute of audio

# LLM
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 1024


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    model_name: str = MODEL_NAME
    vertex_location: str = VERTEX_LOCATION
    job_role: str = JOB_ROLE
    experience_level: str = EXPERIENCE_LEVEL
    focus_area: str = FOCUS_AREA
    max_turns: int = MAX_TURNS
    enable_tts: bool = ENABLE_TTS
    tts_voice: str = TTS_VOICE
    language_code: str = LANGUAGE_CODE
    camera_index: Optional[int] = CAMERA_INDEX
    enable_voice: bool = ENABLE_VOICE
    mic_device: Optional[int] = MIC_DEVICE
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def has_credentials(self) -> bool:
        """True when either the Gemini API or Vertex AI can be reached."""
        return bool(self.api_key or self.google_cloud_project)


def get_config() -> Config:
    """
    Load configuration from the environment.

    Missing credentials are not an error here: the analysis service reports
    them through user-visible placeholders instead.
    """
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or GEMINI_API_KEY
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    return Config(
        api_key=api_key or None,
        google_cloud_project=project or None,
        google_application_credentials=credentials,
        model_name=os.getenv("MOCKMATE_MODEL") or MODEL_NAME,
        log_file=os.getenv("MOCKMATE_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("MOCKMATE_LOG_LEVEL") or LOG_LEVEL,
    )
