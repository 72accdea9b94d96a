import asyncio

import pytest

from mockmate.interview.models import Category, Turn
from mockmate.interview.schemas import TURN_ANALYSIS_SCHEMA, parse_turn_analysis
from mockmate.interview.services import (
    AnalysisService, AnalysisServiceError, MissingCredentialsError, strip_data_uri
)
from mockmate.interview.testing import MockLLMClient, SAMPLE_CONFIG, make_analysis


def full_payload(**overrides):
    payload = {
        "analysis": [
            {"category": "Confidence", "score": 82, "feedback": "Steady delivery."},
            {"category": "Clarity", "score": 74, "feedback": "A bit long."},
            {"category": "Technical", "score": 68.6, "feedback": "Missed memoization."},
            {"category": "Relevance", "score": 90, "feedback": "On topic."},
        ],
        "suggestion": "Lead with the outcome.",
        "nextQuestion": "How do you debug a slow render?",
        "interviewComplete": False,
    }
    payload.update(overrides)
    return payload


# ----------------------------------------------------------------------
# Opening question
# ----------------------------------------------------------------------

def test_opening_question_uses_setup_and_strips_quotes():
    client = MockLLMClient(text_responses=['  "Describe a tricky CSS bug you fixed."  '])
    service = AnalysisService(client)

    question = asyncio.run(service.request_opening_question(SAMPLE_CONFIG))

    assert question == "Describe a tricky CSS bug you fixed."
    prompt = client.request_history[0]["prompt"]
    assert "Mid-Level Frontend Engineer" in prompt
    assert "Technical Skills" in prompt
    assert client.request_history[0]["temperature"] == 0.7


def test_unconfigured_client_raises_missing_credentials():
    client = MockLLMClient(is_configured=False)
    service = AnalysisService(client)

    with pytest.raises(MissingCredentialsError):
        asyncio.run(service.request_opening_question(SAMPLE_CONFIG))
    with pytest.raises(MissingCredentialsError):
        asyncio.run(service.request_turn_analysis(SAMPLE_CONFIG, "Q?", "Answer.", 1))
    with pytest.raises(MissingCredentialsError):
        asyncio.run(service.request_closing_summary([]))
    assert client.request_history == []


def test_transport_errors_are_wrapped():
    client = MockLLMClient(text_responses=[RuntimeError("Gemini API error 500")])
    service = AnalysisService(client)

    with pytest.raises(AnalysisServiceError, match="500"):
        asyncio.run(service.request_opening_question(SAMPLE_CONFIG))


# ----------------------------------------------------------------------
# Turn analysis
# ----------------------------------------------------------------------

def test_turn_analysis_sends_image_before_prompt():
    client = MockLLMClient(json_responses=[full_payload()])
    service = AnalysisService(client, max_turns=3)

    result = asyncio.run(service.request_turn_analysis(
        SAMPLE_CONFIG, "Why React?", "Because of the component model.", 2,
        snapshot="data:image/jpeg;base64,QUJD"
    ))

    request = client.request_history[0]
    image, text = request["prompt"]
    assert image == {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}}
    assert "Question #2 of 3" in text["text"]
    assert "body language" in text["text"]
    assert request["response_schema"] is TURN_ANALYSIS_SCHEMA

    assert [p.score for p in result.analysis] == [82, 74, 69, 90]
    assert result.next_question == "How do you debug a slow render?"
    assert result.complete is False


def test_turn_analysis_without_snapshot_is_text_only():
    client = MockLLMClient(json_responses=[full_payload()])
    service = AnalysisService(client)

    asyncio.run(service.request_turn_analysis(SAMPLE_CONFIG, "Q?", "Answer.", 1))

    parts = client.request_history[0]["prompt"]
    assert len(parts) == 1
    assert "No image is attached" in parts[0]["text"]


def test_malformed_payload_becomes_service_error():
    client = MockLLMClient(json_responses=[{"analysis": "not a list"}])
    service = AnalysisService(client)

    with pytest.raises(AnalysisServiceError):
        asyncio.run(service.request_turn_analysis(SAMPLE_CONFIG, "Q?", "Answer.", 1))


def test_closing_summary_includes_history():
    client = MockLLMClient(text_responses=["  Good communicator.  "])
    service = AnalysisService(client)

    turns = [Turn("Why React?", "Components.", tuple(make_analysis().analysis), "Mention hooks.")]
    summary = asyncio.run(service.request_closing_summary(turns, SAMPLE_CONFIG))

    assert summary == "Good communicator."
    prompt = client.request_history[0]["prompt"]
    assert "\"userAnswer\": \"Components.\"" in prompt
    assert "Mid-Level Frontend Engineer candidate" in prompt


# ----------------------------------------------------------------------
# Payload parsing
# ----------------------------------------------------------------------

def test_parse_drops_unknown_duplicate_and_unscored_points():
    result = parse_turn_analysis(full_payload(analysis=[
        {"category": "Clarity", "score": 70},
        {"category": "Clarity", "score": 10},
        {"category": "Charisma", "score": 99},
        {"category": "Technical", "score": None},
        {"category": "Relevance", "score": "n/a"},
        {"category": "Confidence", "score": True},
        "garbage",
        {"score": 50},
    ]))

    assert [(p.category, p.score) for p in result.analysis] == [(Category.CLARITY, 70)]
    assert result.analysis[0].feedback == ""


def test_parse_accepts_string_scores_and_keeps_out_of_range():
    result = parse_turn_analysis(full_payload(analysis=[
        {"category": "Clarity", "score": "85"},
        {"category": "Technical", "score": 130},
    ]))
    assert [p.score for p in result.analysis] == [85, 130]


def test_parse_tolerates_missing_optional_fields():
    result = parse_turn_analysis({"analysis": [], "nextQuestion": None, "interviewComplete": True})
    assert result.analysis == []
    assert result.suggestion == ""
    assert result.next_question == ""
    assert result.complete is True


def test_parse_rejects_wrong_shape():
    with pytest.raises(ValueError):
        parse_turn_analysis({"analysis": {"category": "Clarity"}})


@pytest.mark.parametrize("snapshot, expected", [
    ("data:image/jpeg;base64,QUJD", "QUJD"),
    ("QUJD", "QUJD"),
])
def test_strip_data_uri(snapshot, expected):
    assert strip_data_uri(snapshot) == expected
