"""
Data models for the interview coach.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Category(str, Enum):
    """Fixed scoring categories, in report order."""
    CONFIDENCE = "Confidence"
    CLARITY = "Clarity"
    TECHNICAL = "Technical"
    RELEVANCE = "Relevance"


CATEGORIES = tuple(Category)


@dataclass(frozen=True)
class InterviewConfig:
    """Role, seniority and focus chosen during setup."""
    job_role: str
    experience_level: str
    focus_area: str

    def to_dict(self) -> dict:
        return {
            "jobRole": self.job_role,
            "experienceLevel": self.experience_level,
            "focusArea": self.focus_area,
        }


@dataclass(frozen=True)
class AnalysisPoint:
    """Score and feedback for one category of one answer."""
    category: Category
    score: int
    feedback: str = ""

    def to_dict(self) -> dict:
        return {"category": self.category.value, "score": self.score, "feedback": self.feedback}


@dataclass(frozen=True)
class Turn:
    """One question/answer exchange and its analysis."""
    question: str
    user_answer: str
    analysis: Tuple[AnalysisPoint, ...] = ()
    suggestion: str = ""

    def point_for(self, category: Category) -> Optional[AnalysisPoint]:
        """First analysis point for a category, if the service sent one."""
        for point in self.analysis:
            if point.category == category:
                return point
        return None

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "userAnswer": self.user_answer,
            "analysis": [point.to_dict() for point in self.analysis],
            "suggestion": self.suggestion,
        }


@dataclass
class InterviewSession:
    """Finished interview handed from the live session to the report."""
    config: InterviewConfig
    rounds: List[Turn] = field(default_factory=list)
    overall_score: int = 0
    summary: str = ""
