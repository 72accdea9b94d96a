"""
MockMate: AI-powered mock interview coach.

Asks role-specific questions, scores spoken answers (with an optional
webcam snapshot) using a Gemini model, and produces a performance report.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.session import LiveSession
from .interview.models import InterviewConfig, Turn, InterviewSession

__all__ = ["InterviewOrchestrator", "LiveSession", "InterviewConfig", "Turn", "InterviewSession"]
