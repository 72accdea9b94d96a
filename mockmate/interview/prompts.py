"""
Interview prompt templates.

This module contains all the prompt templates used by the analysis service,
keeping them separate from the business logic for easier maintenance and editing.
"""

from typing import Dict, Any, List, Optional
import json

from .models import InterviewConfig, Turn


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def opening_question(config: InterviewConfig) -> str:
        """Prompt for the first question of a session."""
        return f"""
You are an expert interviewer for a {config.experience_level} {config.job_role} position.
The focus of this interview is {config.focus_area}.
Generate a challenging but appropriate opening interview question.
Just return the question text.
        """.strip()

    @staticmethod
    def turn_analysis(config: InterviewConfig,
                      question: str,
                      answer: str,
                      turn_number: int,
                      max_turns: int,
                      has_image: bool) -> str:
        """Prompt asking for scores, a suggestion and the next question."""
        visual_note = (
            "An image of the candidate is attached: use their body language (eye contact, posture) for the 'Confidence' score."
            if has_image
            else "No image is attached: infer the 'Confidence' score from tone and hesitation markers in the text."
        )

        return f"""
Role: Interviewer for {config.experience_level} {config.job_role}.
Focus area: {config.focus_area}.
Context: Question #{turn_number} of {max_turns}.
Current Question: {json.dumps(question, ensure_ascii=False)}
Candidate Answer: {json.dumps(answer, ensure_ascii=False)}

Task:
1. Analyze the answer for technical accuracy and relevance.
2. {visual_note}
3. Provide scores (0-100) and feedback for: Confidence, Clarity, Technical, Relevance.
4. Provide a specific suggestion for improvement.
5. Generate the NEXT question. If we have reached {max_turns} questions, set interviewComplete to true and make the nextQuestion a closing remark.

Respond in JSON.
        """.strip()

    @staticmethod
    def closing_summary(turns: List[Turn], config: Optional[InterviewConfig] = None) -> str:
        """Prompt for the narrative summary shown on the report."""
        history: List[Dict[str, Any]] = [turn.to_dict() for turn in turns]
        candidate = f" for a {config.experience_level} {config.job_role} candidate" if config else ""
        return f"""
Review this interview history{candidate}:
{json.dumps(history, ensure_ascii=False)}

Write a concise, encouraging, but critical summary of the candidate's performance.
Highlight 2 major strengths and 2 areas for improvement.
Keep it under 200 words.
        """.strip()

    @staticmethod
    def fallback_messages() -> Dict[str, str]:
        """Fixed texts used when the model cannot be reached."""
        return {
            "summary_unavailable": "Analysis unavailable.",
            "summary_unconfigured": "API key missing",
            "analysis_failed": "Something went wrong with the analysis. Please submit your answer again.",
            "unconfigured": "The analysis service is not configured. Set GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT.",
        }
