"""
Report aggregation for finished interviews.

Scores are averaged per category first (turns missing a category are left
out of that category), then the four category averages are averaged into
the hireability score.
"""
import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .events import InterviewEventBus, SummaryReadyEvent
from .models import CATEGORIES, Category, InterviewSession, Turn
from .prompts import InterviewPrompts
from .services import AnalysisService, AnalysisServiceError, MissingCredentialsError
from ..config import (
    STRONG_CANDIDATE_THRESHOLD, POSITIVE_BAND_MIN, NEUTRAL_BAND_MIN, SUMMARY_PLACEHOLDER
)

logger = logging.getLogger("report")


class ScoreBand(str, Enum):
    """Color band for a score."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class HireabilityLabel(str, Enum):
    STRONG_CANDIDATE = "Strong Candidate"
    NEEDS_IMPROVEMENT = "Needs Improvement"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up (75.5 -> 76)."""
    return int(math.floor(value + 0.5))


def _usable_score(score) -> Optional[float]:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return None
    if not math.isfinite(score):
        return None
    return float(min(100, max(0, score)))


def category_averages(turns: Iterable[Turn]) -> Dict[Category, float]:
    """
    Mean score per category over the turns that scored it.

    A category no turn scored averages to 0. Out-of-range scores are
    clamped to 0..100 and non-numeric ones ignored.
    """
    totals = {category: [] for category in CATEGORIES}
    for turn in turns:
        for category in CATEGORIES:
            point = turn.point_for(category)
            if point is None:
                continue
            score = _usable_score(point.score)
            if score is not None:
                totals[category].append(score)

    return {
        category: (sum(scores) / len(scores) if scores else 0.0)
        for category, scores in totals.items()
    }


def overall_score(averages: Dict[Category, float]) -> int:
    """Unweighted mean of the four category averages, rounded."""
    values = [averages.get(category, 0.0) for category in CATEGORIES]
    return round_half_up(sum(values) / len(values))


def hireability_label(score: int) -> HireabilityLabel:
    if score > STRONG_CANDIDATE_THRESHOLD:
        return HireabilityLabel.STRONG_CANDIDATE
    return HireabilityLabel.NEEDS_IMPROVEMENT


def score_band(score: float) -> ScoreBand:
    if score >= POSITIVE_BAND_MIN:
        return ScoreBand.POSITIVE
    if score >= NEUTRAL_BAND_MIN:
        return ScoreBand.NEUTRAL
    return ScoreBand.NEGATIVE


@dataclass
class CategoryResult:
    category: Category
    average: float

    @property
    def score(self) -> int:
        return round_half_up(self.average)

    @property
    def band(self) -> ScoreBand:
        return score_band(self.score)


@dataclass
class InterviewReport:
    """Everything the report view shows for a finished session."""
    session: InterviewSession
    categories: List[CategoryResult] = field(default_factory=list)
    summary: str = SUMMARY_PLACEHOLDER
    summary_ready: bool = False
    summary_requested: bool = False

    @property
    def overall_score(self) -> int:
        return self.session.overall_score

    @property
    def label(self) -> HireabilityLabel:
        return hireability_label(self.overall_score)

    @property
    def band(self) -> ScoreBand:
        return score_band(self.overall_score)

    @property
    def turns(self) -> List[Turn]:
        return self.session.rounds


def build_report(session: InterviewSession) -> InterviewReport:
    """Derive category results and the overall score for a session."""
    averages = category_averages(session.rounds)
    session.overall_score = overall_score(averages)
    return InterviewReport(
        session=session,
        categories=[CategoryResult(category, averages[category]) for category in CATEGORIES],
    )


class ReportAggregator:
    """Builds reports and fetches the narrative summary once per report."""

    def __init__(self, analysis_service: AnalysisService,
                 event_bus: Optional[InterviewEventBus] = None,
                 session_id: str = "report"):
        self.analysis_service = analysis_service
        self.event_bus = event_bus or InterviewEventBus()
        self.session_id = session_id

    def build(self, session: InterviewSession) -> InterviewReport:
        report = build_report(session)
        logger.info("Report built: overall %d (%s) over %d turn(s)",
                    report.overall_score, report.label.value, len(session.rounds))
        return report

    async def request_summary(self, report: InterviewReport) -> str:
        """
        Fetch the closing summary for a report.

        Issued at most once per report; never raises. Until it resolves
        the report shows a placeholder.
        """
        if report.summary_requested:
            return report.summary
        report.summary_requested = True

        fallbacks = InterviewPrompts.fallback_messages()
        is_fallback = False
        try:
            summary = await self.analysis_service.request_closing_summary(
                report.turns, report.session.config
            )
        except MissingCredentialsError:
            summary = fallbacks["summary_unconfigured"]
            is_fallback = True
        except AnalysisServiceError as e:
            logger.warning("Closing summary failed: %s", e)
            summary = fallbacks["summary_unavailable"]
            is_fallback = True

        if not summary:
            summary = fallbacks["summary_unavailable"]
            is_fallback = True

        report.summary = summary
        report.summary_ready = True
        report.session.summary = summary
        self.event_bus.emit(SummaryReadyEvent(self.session_id, time.time(), report.overall_score, is_fallback))
        return summary


def format_report(report: InterviewReport) -> str:
    """Plain-text rendering of a report."""
    config = report.session.config
    lines = [
        "Interview Analysis",
        f"Target Role: {config.job_role} ({config.experience_level})",
        "",
        f"Hireability Score: {report.overall_score}% [{report.label.value.upper()}]",
        "",
        "Performance Metrics",
    ]
    for result in report.categories:
        lines.append(f"  {result.category.value:<11} {result.score:>3}  ({result.band.value})")

    lines += ["", "Executive Summary", f"  {report.summary}", "", "Question Breakdown"]
    for idx, turn in enumerate(report.turns, start=1):
        lines += [
            f"  Question {idx} - {config.focus_area}",
            f"    \"{turn.question}\"",
            f"    Answer: \"{turn.user_answer}\"",
            f"    Suggestion: {turn.suggestion or '-'}",
        ]
    return "\n".join(lines)
