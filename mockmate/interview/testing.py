"""
Testing infrastructure with fake services for the interview coach.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .models import AnalysisPoint, Category, InterviewConfig, Turn
from .schemas import TurnAnalysis
from .services import AnalysisServiceError, MissingCredentialsError
from ..infrastructure.media import (
    CapabilityUnavailableError, DeltaKind, MediaHandle, MediaProvider, TranscriptDelta
)


class FakeTrack:
    """Stoppable track that remembers whether it was stopped."""

    def __init__(self, name: str):
        self.name = name
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeMediaProvider(MediaProvider):
    """Deterministic media provider driven by the test."""

    def __init__(self,
                 snapshot: Optional[str] = "ZmFrZS1qcGVn",
                 deny_capture: bool = False,
                 transcription_supported: bool = True,
                 snapshot_error: Optional[Exception] = None):
        self.snapshot = snapshot
        self.deny_capture = deny_capture
        self.transcription_supported = transcription_supported
        self.snapshot_error = snapshot_error
        self.tracks = [FakeTrack("video"), FakeTrack("audio")]
        self.handle: Optional[MediaHandle] = None
        self.listening = False
        self.spoken: List[str] = []
        self.snapshots_taken = 0
        self._on_delta = None
        self._on_error = None

    @property
    def supports_transcription(self) -> bool:
        return self.transcription_supported

    async def acquire(self) -> MediaHandle:
        if self.deny_capture:
            raise CapabilityUnavailableError("camera", "Permission denied")
        self.handle = MediaHandle(self.tracks)
        return self.handle

    def start_transcription(self, on_delta, on_error=None) -> None:
        self._on_delta = on_delta
        self._on_error = on_error
        self.listening = True

    def stop_transcription(self) -> None:
        self.listening = False

    def say(self, text: str, final: bool = True) -> None:
        """Simulate the recognizer producing text."""
        if self.listening and self._on_delta is not None:
            kind = DeltaKind.FINAL if final else DeltaKind.INTERIM
            self._on_delta(TranscriptDelta(kind, text))

    def fail_recognition(self, error: str = "network") -> None:
        self.listening = False
        if self._on_error is not None:
            self._on_error(error)

    async def capture_still_frame(self) -> Optional[str]:
        self.snapshots_taken += 1
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return self.snapshot

    def speak(self, text: str) -> None:
        self.spoken.append(text)

    @property
    def released(self) -> bool:
        return all(track.stopped for track in self.tracks)


class MockLLMClient:
    """Mock LLM client returning scripted responses."""

    def __init__(self,
                 text_responses: Optional[List[Union[str, Exception]]] = None,
                 json_responses: Optional[List[Union[Dict[str, Any], Exception]]] = None,
                 is_configured: bool = True):
        self.text_responses = list(text_responses or [])
        self.json_responses = list(json_responses or [])
        self.is_configured = is_configured
        self.request_history: List[Dict[str, Any]] = []

    def generate_content(self, prompt, temperature: float = 0.0, **kwargs) -> str:
        self.request_history.append({"prompt": prompt, "temperature": temperature, "kwargs": kwargs})
        if not self.text_responses:
            return ""
        response = self.text_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def generate_json(self, prompt, response_schema=None, temperature: float = 0.0) -> Dict[str, Any]:
        self.request_history.append({"prompt": prompt, "response_schema": response_schema})
        if not self.json_responses:
            raise ValueError("LLM did not return valid JSON: ")
        response = self.json_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return json.loads(json.dumps(response))


@dataclass
class AnalysisCall:
    """Arguments of one request_turn_analysis call."""
    config: InterviewConfig
    question: str
    answer: str
    turn_number: int
    snapshot: Optional[str]


@dataclass
class MockAnalysisService:
    """Scripted stand-in for AnalysisService."""
    opening_question: Union[str, Exception] = "Walk me through a project you are proud of."
    analyses: List[Union[TurnAnalysis, Exception]] = field(default_factory=list)
    summary: Union[str, Exception] = "Solid answers overall."
    opening_calls: int = 0
    summary_calls: int = 0
    analysis_calls: List[AnalysisCall] = field(default_factory=list)
    gate: Optional[Any] = None
    summary_gate: Optional[Any] = None

    async def request_opening_question(self, config: InterviewConfig) -> str:
        self.opening_calls += 1
        if isinstance(self.opening_question, Exception):
            raise self.opening_question
        return self.opening_question

    async def request_turn_analysis(self, config, question, answer, turn_number, snapshot=None) -> TurnAnalysis:
        self.analysis_calls.append(AnalysisCall(config, question, answer, turn_number, snapshot))
        if self.gate is not None:
            await self.gate.wait()
        if not self.analyses:
            return make_analysis(next_question=f"Follow-up question {turn_number + 1}?")
        result = self.analyses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def request_closing_summary(self, turns: List[Turn], config=None) -> str:
        self.summary_calls += 1
        if self.summary_gate is not None:
            await self.summary_gate.wait()
        if isinstance(self.summary, Exception):
            raise self.summary
        return self.summary


def make_analysis(scores: Optional[Dict[Category, int]] = None,
                  next_question: str = "What would you do differently next time?",
                  complete: bool = False,
                  suggestion: str = "Use a concrete example.") -> TurnAnalysis:
    """Build a TurnAnalysis; scores default to 70 in every category."""
    if scores is None:
        scores = {category: 70 for category in Category}
    return TurnAnalysis(
        analysis=[AnalysisPoint(category, score, f"{category.value} feedback") for category, score in scores.items()],
        suggestion=suggestion,
        next_question=next_question,
        complete=complete,
    )


def unconfigured_error() -> MissingCredentialsError:
    return MissingCredentialsError("API key missing")


def service_error(message: str = "upstream 500") -> AnalysisServiceError:
    return AnalysisServiceError(message)


SAMPLE_CONFIG = InterviewConfig(
    job_role="Frontend Engineer",
    experience_level="Mid-Level",
    focus_area="Technical Skills",
)
