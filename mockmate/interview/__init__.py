"""Interview flow components.

This module contains the business logic for running mock interviews:
the live session state machine, the analysis service contract, report
aggregation and the application flow around them.
"""

# Application flow
from .orchestrator import InterviewOrchestrator

# Live session state machine
from .session import LiveSession, SessionStateError, TranscriptBuffer

# Data models
from .models import InterviewConfig, AnalysisPoint, Turn, InterviewSession, Category, CATEGORIES

# Structured schemas and phases
from .schemas import AppView, SessionPhase, Notice, NoticeKind, TurnAnalysis, parse_turn_analysis

# Analysis service
from .services import AnalysisService, AnalysisServiceError, MissingCredentialsError

# Report aggregation
from .report import (
    InterviewReport, ReportAggregator, CategoryResult, ScoreBand, HireabilityLabel,
    build_report, category_averages, overall_score, hireability_label, score_band,
    format_report
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics, EventType, SessionEvent
)

__all__ = [
    # Flow
    "InterviewOrchestrator", "LiveSession", "SessionStateError", "TranscriptBuffer",

    # Data models
    "InterviewConfig", "AnalysisPoint", "Turn", "InterviewSession", "Category", "CATEGORIES",

    # Schemas
    "AppView", "SessionPhase", "Notice", "NoticeKind", "TurnAnalysis", "parse_turn_analysis",

    # Services
    "AnalysisService", "AnalysisServiceError", "MissingCredentialsError",

    # Report
    "InterviewReport", "ReportAggregator", "CategoryResult", "ScoreBand", "HireabilityLabel",
    "build_report", "category_averages", "overall_score", "hireability_label", "score_band",
    "format_report",

    # Events
    "InterviewEventBus", "EventLogger", "SessionMetrics", "EventType", "SessionEvent",
]
