"""
Structured data models and schemas for the interview flow.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import AnalysisPoint, Category

logger = logging.getLogger("schemas")


class AppView(str, Enum):
    """Top-level phases of the application."""
    LANDING = "landing"
    SETUP = "setup"
    INTERVIEW = "interview"
    REPORT = "report"


class SessionPhase(str, Enum):
    """States of the live interview session."""
    INITIALIZING = "initializing"
    AWAITING_QUESTION = "awaiting_question"
    LISTENING = "listening"
    SUBMITTING = "submitting"
    COMPLETE = "complete"


class NoticeKind(str, Enum):
    """What a user-facing notice is about."""
    CAPABILITY = "capability"
    VALIDATION = "validation"
    ANALYSIS = "analysis"
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class Notice:
    """A message the front end must show to the candidate."""
    kind: NoticeKind
    message: str
    blocking: bool = False


@dataclass
class TurnAnalysis:
    """Result of analyzing one submitted answer."""
    analysis: List[AnalysisPoint]
    suggestion: str
    next_question: str
    complete: bool


# Gemini structured-output schema for turn analysis
TURN_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "category": {"type": "STRING", "enum": [c.value for c in Category]},
                    "score": {"type": "NUMBER", "description": "Score out of 100"},
                    "feedback": {"type": "STRING"},
                },
            },
        },
        "suggestion": {"type": "STRING", "description": "A tip to improve the answer"},
        "nextQuestion": {"type": "STRING", "description": "The next interview question to ask"},
        "interviewComplete": {"type": "BOOLEAN", "description": "True if 3 questions have been asked"},
    },
    "required": ["analysis", "suggestion", "nextQuestion", "interviewComplete"],
}


class AnalysisPointPayload(BaseModel):
    category: str
    score: Optional[float] = None
    feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _lenient_score(cls, value):
        if isinstance(value, bool):
            return None
        try:
            score = float(value)
        except (TypeError, ValueError):
            return None
        return score if math.isfinite(score) else None

    @field_validator("feedback", mode="before")
    @classmethod
    def _none_feedback(cls, value):
        return "" if value is None else str(value)


class TurnAnalysisPayload(BaseModel):
    """Wire shape of a turn-analysis response."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    analysis: List[AnalysisPointPayload] = Field(default_factory=list)
    suggestion: str = ""
    next_question: str = Field("", alias="nextQuestion")
    interview_complete: bool = Field(False, alias="interviewComplete")

    @field_validator("analysis", mode="before")
    @classmethod
    def _drop_malformed_points(cls, value):
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("analysis must be a list")
        return [item for item in value if isinstance(item, dict) and "category" in item]

    @field_validator("suggestion", "next_question", mode="before")
    @classmethod
    def _none_text(cls, value):
        return "" if value is None else value


def parse_turn_analysis(data: Dict[str, Any]) -> TurnAnalysis:
    """
    Convert a raw turn-analysis object into a TurnAnalysis.

    The point list is advisory: unknown categories, points without a score
    and repeated categories are dropped (first one wins); fewer than four
    points is fine. Scores are not clamped here.

    Raises:
        ValueError: if the object does not have the expected shape
    """
    try:
        payload = TurnAnalysisPayload.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid turn analysis structure: {e}") from e

    points: List[AnalysisPoint] = []
    seen = set()
    for item in payload.analysis:
        try:
            category = Category(item.category)
        except ValueError:
            logger.warning("Dropping analysis point with unknown category %r", item.category)
            continue
        if category in seen:
            logger.warning("Dropping repeated analysis point for %s", category.value)
            continue
        if item.score is None:
            logger.warning("Dropping analysis point for %s without a score", category.value)
            continue
        seen.add(category)
        points.append(AnalysisPoint(category=category, score=int(round(item.score)), feedback=item.feedback))

    if len(points) < len(Category):
        logger.info("Turn analysis carried %d of %d categories", len(points), len(Category))

    return TurnAnalysis(
        analysis=points,
        suggestion=payload.suggestion,
        next_question=payload.next_question.strip(),
        complete=payload.interview_complete,
    )
