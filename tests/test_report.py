import asyncio

import pytest

from mockmate.config import SUMMARY_PLACEHOLDER
from mockmate.interview.events import EventType, InterviewEventBus
from mockmate.interview.models import AnalysisPoint, Category, InterviewSession, Turn
from mockmate.interview.report import (
    HireabilityLabel, ReportAggregator, ScoreBand, build_report, category_averages,
    format_report, hireability_label, overall_score, round_half_up, score_band
)
from mockmate.interview.testing import MockAnalysisService, SAMPLE_CONFIG, service_error, unconfigured_error


def turn(scores, question="Q?", answer="An answer.", suggestion="Be specific."):
    return Turn(
        question=question,
        user_answer=answer,
        analysis=tuple(AnalysisPoint(category, score, "ok") for category, score in scores.items()),
        suggestion=suggestion,
    )


def all_categories(score):
    return {category: score for category in Category}


def session_with(*turns):
    return InterviewSession(config=SAMPLE_CONFIG, rounds=list(turns))


# ----------------------------------------------------------------------
# Aggregation
# ----------------------------------------------------------------------

def test_identical_turns_score_75_and_need_improvement():
    scores = {Category.CONFIDENCE: 80, Category.CLARITY: 60,
              Category.TECHNICAL: 70, Category.RELEVANCE: 90}
    report = build_report(session_with(turn(scores), turn(scores), turn(scores)))

    assert report.overall_score == 75
    assert report.label == HireabilityLabel.NEEDS_IMPROVEMENT
    assert [r.score for r in report.categories] == [80, 60, 70, 90]
    assert report.session.overall_score == 75


def test_averages_over_multiple_turns():
    averages = category_averages([turn(all_categories(60)), turn(all_categories(90))])
    assert averages[Category.CLARITY] == 75.0
    assert overall_score(averages) == 75


def test_missing_category_is_left_out_of_its_average():
    first = turn(all_categories(80))
    second = turn({Category.CONFIDENCE: 40, Category.CLARITY: 40, Category.TECHNICAL: 40})

    averages = category_averages([first, second])

    assert averages[Category.CONFIDENCE] == 60.0
    assert averages[Category.RELEVANCE] == 80.0


def test_category_nobody_scored_counts_as_zero():
    scores = {Category.CONFIDENCE: 100, Category.CLARITY: 100, Category.TECHNICAL: 100}
    averages = category_averages([turn(scores)])

    assert averages[Category.RELEVANCE] == 0.0
    assert overall_score(averages) == 75


def test_empty_session_scores_zero():
    report = build_report(session_with())
    assert report.overall_score == 0
    assert report.band == ScoreBand.NEGATIVE


def test_out_of_range_scores_are_clamped():
    averages = category_averages([turn({Category.CONFIDENCE: 140, Category.CLARITY: -20})])
    assert averages[Category.CONFIDENCE] == 100.0
    assert averages[Category.CLARITY] == 0.0


def test_non_numeric_scores_are_ignored():
    bad = Turn(question="Q?", user_answer="A.",
               analysis=(AnalysisPoint(Category.CLARITY, "high"), AnalysisPoint(Category.CONFIDENCE, 50)))
    averages = category_averages([bad, turn({Category.CLARITY: 90})])
    assert averages[Category.CLARITY] == 90.0
    assert averages[Category.CONFIDENCE] == 50.0


def test_duplicate_category_uses_first_point():
    dup = Turn(question="Q?", user_answer="A.",
               analysis=(AnalysisPoint(Category.CLARITY, 90), AnalysisPoint(Category.CLARITY, 10)))
    assert category_averages([dup])[Category.CLARITY] == 90.0


@pytest.mark.parametrize("value, expected", [
    (75.5, 76), (75.4999, 75), (62.5, 63), (0.5, 1), (0.0, 0), (100.0, 100),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_overall_rounds_halves_up():
    averages = {Category.CONFIDENCE: 76, Category.CLARITY: 75,
                Category.TECHNICAL: 76, Category.RELEVANCE: 75}
    assert overall_score(averages) == 76


# ----------------------------------------------------------------------
# Labels and bands
# ----------------------------------------------------------------------

@pytest.mark.parametrize("score, label", [
    (75, HireabilityLabel.NEEDS_IMPROVEMENT),
    (76, HireabilityLabel.STRONG_CANDIDATE),
    (0, HireabilityLabel.NEEDS_IMPROVEMENT),
    (100, HireabilityLabel.STRONG_CANDIDATE),
])
def test_strong_candidate_is_strictly_above_75(score, label):
    assert hireability_label(score) == label


@pytest.mark.parametrize("score, band", [
    (80, ScoreBand.POSITIVE),
    (79, ScoreBand.NEUTRAL),
    (60, ScoreBand.NEUTRAL),
    (59, ScoreBand.NEGATIVE),
])
def test_score_bands(score, band):
    assert score_band(score) == band


def test_category_band_uses_rounded_score():
    report = build_report(session_with(turn({Category.CLARITY: 80}), turn({Category.CLARITY: 79})))
    clarity = next(r for r in report.categories if r.category == Category.CLARITY)
    assert clarity.average == 79.5
    assert clarity.score == 80
    assert clarity.band == ScoreBand.POSITIVE


# ----------------------------------------------------------------------
# Summary
# ----------------------------------------------------------------------

def test_summary_is_requested_once():
    service = MockAnalysisService(summary="Clear communicator, go deeper on testing.")
    aggregator = ReportAggregator(service)
    report = aggregator.build(session_with(turn(all_categories(70))))
    assert report.summary == SUMMARY_PLACEHOLDER

    async def scenario():
        first = await aggregator.request_summary(report)
        second = await aggregator.request_summary(report)
        return first, second

    first, second = asyncio.run(scenario())

    assert first == second == "Clear communicator, go deeper on testing."
    assert service.summary_calls == 1
    assert report.summary_ready
    assert report.session.summary == first


@pytest.mark.parametrize("failure, expected", [
    (service_error(), "Analysis unavailable."),
    (unconfigured_error(), "API key missing"),
    ("", "Analysis unavailable."),
])
def test_summary_failures_use_placeholder_text(failure, expected):
    bus = InterviewEventBus()
    ready = []
    bus.subscribe(EventType.SUMMARY_READY, ready.append)
    aggregator = ReportAggregator(MockAnalysisService(summary=failure), bus)
    report = aggregator.build(session_with(turn(all_categories(70))))

    assert asyncio.run(aggregator.request_summary(report)) == expected
    assert report.summary == expected
    assert ready[0].data["is_fallback"] is True


def test_format_report_lists_scores_and_turns():
    scores = {Category.CONFIDENCE: 90, Category.CLARITY: 85,
              Category.TECHNICAL: 80, Category.RELEVANCE: 75}
    report = build_report(session_with(
        turn(scores, question="Why React?", answer="Component model.", suggestion="Mention hooks.")
    ))
    report.summary = "Strong fundamentals."

    text = format_report(report)

    assert "Target Role: Frontend Engineer (Mid-Level)" in text
    assert "Hireability Score: 83% [STRONG CANDIDATE]" in text
    assert "Strong fundamentals." in text
    assert "\"Why React?\"" in text
    assert "Suggestion: Mention hooks." in text
