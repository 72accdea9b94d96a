"""
Analysis service: the contract between the interview flow and the
generative model.
"""
import asyncio
import logging
from typing import List, Optional

from .models import InterviewConfig, Turn
from .prompts import InterviewPrompts
from .schemas import TurnAnalysis, TURN_ANALYSIS_SCHEMA, parse_turn_analysis
from ..config import MAX_TURNS

logger = logging.getLogger("analysis_service")


class AnalysisServiceError(RuntimeError):
    """The model could not be reached or returned an unusable payload."""


class MissingCredentialsError(AnalysisServiceError):
    """No API key or project is configured for the model."""


def strip_data_uri(snapshot: str) -> str:
    """Drop a 'data:image/jpeg;base64,' prefix if the caller left one on."""
    if snapshot.startswith("data:") and "," in snapshot:
        return snapshot.split(",", 1)[1]
    return snapshot


class AnalysisService:
    """
    Asks the model for opening questions, per-turn analysis and closing
    summaries.

    Every method may raise AnalysisServiceError; callers decide whether that
    becomes a fallback value or a notice. Blocking HTTP calls run in a worker
    thread so the event loop keeps serving the session.
    """

    def __init__(self, llm_client, max_turns: int = MAX_TURNS):
        self.llm_client = llm_client
        self.max_turns = max_turns

    @property
    def is_configured(self) -> bool:
        return bool(getattr(self.llm_client, "is_configured", True))

    def _ensure_configured(self):
        if not self.is_configured:
            raise MissingCredentialsError("API key missing")

    async def request_opening_question(self, config: InterviewConfig) -> str:
        """
        Generate the first question from the interview setup alone.

        Returns:
            Question text, possibly empty if the model sent nothing
        """
        self._ensure_configured()
        prompt = InterviewPrompts.opening_question(config)

        try:
            text = await asyncio.to_thread(self.llm_client.generate_content, prompt, temperature=0.7)
        except Exception as e:
            logger.error("Opening question request failed: %s", e)
            raise AnalysisServiceError(str(e)) from e

        question = (text or "").strip().strip('"').strip()
        logger.info("Generated opening question: %s", question or "(empty)")
        return question

    async def request_turn_analysis(self,
                                    config: InterviewConfig,
                                    question: str,
                                    answer: str,
                                    turn_number: int,
                                    snapshot: Optional[str] = None) -> TurnAnalysis:
        """
        Score an answer and get the next question.

        Args:
            config: Interview setup
            question: Question that was answered
            answer: Frozen transcript of the answer
            turn_number: 1-based ordinal of this turn
            snapshot: Optional base64 JPEG of the candidate

        Returns:
            TurnAnalysis with up to four analysis points
        """
        self._ensure_configured()

        parts = []
        if snapshot:
            parts.append({
                "inlineData": {
                    "mimeType": "image/jpeg",
                    "data": strip_data_uri(snapshot),
                }
            })
        parts.append({"text": InterviewPrompts.turn_analysis(
            config, question, answer, turn_number, self.max_turns, has_image=bool(snapshot)
        )})

        logger.info("Requesting analysis for turn %d (image: %s)", turn_number, bool(snapshot))
        try:
            data = await asyncio.to_thread(self.llm_client.generate_json, parts, TURN_ANALYSIS_SCHEMA)
            result = parse_turn_analysis(data)
        except Exception as e:
            logger.error("Turn %d analysis failed: %s", turn_number, e)
            raise AnalysisServiceError(str(e)) from e

        logger.info("Turn %d analysis: %d point(s), complete=%s",
                    turn_number, len(result.analysis), result.complete)
        return result

    async def request_closing_summary(self,
                                      turns: List[Turn],
                                      config: Optional[InterviewConfig] = None) -> str:
        """Narrative summary of a finished interview. Safe to retry."""
        self._ensure_configured()
        prompt = InterviewPrompts.closing_summary(turns, config)

        try:
            text = await asyncio.to_thread(self.llm_client.generate_content, prompt, temperature=0.4)
        except Exception as e:
            logger.error("Closing summary request failed: %s", e)
            raise AnalysisServiceError(str(e)) from e

        return (text or "").strip()
