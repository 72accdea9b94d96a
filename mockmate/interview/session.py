"""
Live interview session: the state machine that drives one interview from
the opening question to the finished turn history.

Phases move AWAITING_QUESTION -> LISTENING -> SUBMITTING and then back to
AWAITING_QUESTION or on to COMPLETE. All remote work is awaited; nothing
is cancelled mid-flight.
"""
import logging
import time
import uuid
from typing import Callable, List, Optional

from .events import (
    InterviewEventBus, SessionStartedEvent, QuestionAskedEvent,
    ListeningStartedEvent, ListeningStoppedEvent, SubmissionRejectedEvent,
    TurnRecordedEvent, AnalysisFailedEvent, NoticeRaisedEvent,
    SessionCompletedEvent, MediaReleasedEvent, ErrorOccurredEvent
)
from .models import InterviewConfig, Turn
from .prompts import InterviewPrompts
from .schemas import Notice, NoticeKind, SessionPhase
from .services import AnalysisService, AnalysisServiceError, MissingCredentialsError
from ..infrastructure.media import CapabilityUnavailableError, MediaHandle, MediaProvider, TranscriptDelta
from ..config import MAX_TURNS, MIN_ANSWER_CHARS, FALLBACK_OPENING_QUESTION

logger = logging.getLogger("live_session")

INITIALIZING_TEXT = "Initializing AI..."
FALLBACK_NEXT_QUESTION = "Let's move on. What are your strengths?"
EMPTY_ANSWER_MESSAGE = "Please say something first!"


class SessionStateError(RuntimeError):
    """An operation was called in a phase that does not allow it."""


class TranscriptBuffer:
    """Recognized speech for the turn currently being answered."""

    def __init__(self):
        self.text = ""
        self.interim = ""

    def append_final(self, text: str) -> None:
        text = text.strip()
        if text:
            self.text = f"{self.text} {text}" if self.text else text
        self.interim = ""

    def set_interim(self, text: str) -> None:
        self.interim = text

    def clear_interim(self) -> None:
        self.interim = ""

    def reset(self) -> None:
        self.text = ""
        self.interim = ""

    def frozen(self) -> str:
        return self.text.strip()


class LiveSession:
    """
    State machine for one live interview.

    The front end calls start(), toggles listening and calls submit_answer().
    Recognized speech arrives through the media provider's callbacks. When
    the session completes, on_complete receives the finished turns.
    """

    def __init__(self,
                 config: InterviewConfig,
                 analysis_service: AnalysisService,
                 media_provider: MediaProvider,
                 event_bus: Optional[InterviewEventBus] = None,
                 on_complete: Optional[Callable[[List[Turn]], None]] = None,
                 on_notice: Optional[Callable[[Notice], None]] = None,
                 max_turns: int = MAX_TURNS,
                 min_answer_chars: int = MIN_ANSWER_CHARS,
                 session_id: Optional[str] = None):
        self.config = config
        self.analysis_service = analysis_service
        self.media = media_provider
        self.event_bus = event_bus or InterviewEventBus()
        self.on_complete = on_complete
        self.on_notice = on_notice
        self.max_turns = max_turns
        self.min_answer_chars = min_answer_chars
        self.session_id = session_id or f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"

        self.phase = SessionPhase.INITIALIZING
        self.current_question = INITIALIZING_TEXT
        self.buffer = TranscriptBuffer()
        self.rounds: List[Turn] = []
        self.notices: List[Notice] = []
        self.media_handle: Optional[MediaHandle] = None
        self.completion_reason: Optional[str] = None
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def transcript(self) -> str:
        return self.buffer.text

    @property
    def interim_text(self) -> str:
        return self.buffer.interim

    @property
    def is_listening(self) -> bool:
        return self.phase == SessionPhase.LISTENING

    @property
    def is_submitting(self) -> bool:
        return self.phase == SessionPhase.SUBMITTING

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    @property
    def question_number(self) -> int:
        """1-based number of the question on screen."""
        return min(len(self.rounds) + 1, self.max_turns)

    @property
    def can_submit(self) -> bool:
        return (self.phase in (SessionPhase.AWAITING_QUESTION, SessionPhase.LISTENING)
                and len(self.buffer.frozen()) >= self.min_answer_chars)

    # ------------------------------------------------------------------
    # Start / teardown
    # ------------------------------------------------------------------

    async def start(self) -> str:
        """
        Acquire media and present the opening question.

        Runs once per session; later calls return the current question.
        """
        if self._started:
            logger.warning("start() called again for %s; ignoring", self.session_id)
            return self.current_question
        if self._closed:
            raise SessionStateError("Session is closed")
        self._started = True

        self.event_bus.emit(SessionStartedEvent(
            self.session_id, time.time(), self.config.job_role, self.max_turns
        ))
        logger.info("Starting session %s for %s (%s, %s)", self.session_id,
                    self.config.job_role, self.config.experience_level, self.config.focus_area)

        try:
            self.media_handle = await self.media.acquire()
        except CapabilityUnavailableError as e:
            logger.error("Media capture unavailable: %s", e)
            self._raise_notice(NoticeKind.CAPABILITY,
                               f"Camera/Mic permission denied. Please enable them. ({e})",
                               blocking=True)
        if self._closed:
            self._release_media()
            return self.current_question

        if not self.media.supports_transcription:
            self._raise_notice(NoticeKind.CAPABILITY,
                               "Speech recognition is not supported on this platform.",
                               blocking=True)

        question, is_fallback = await self._fetch_opening_question()
        if self._closed:
            return question
        self._present_question(question, is_fallback=is_fallback)
        return question

    async def _fetch_opening_question(self):
        try:
            question = await self.analysis_service.request_opening_question(self.config)
        except MissingCredentialsError:
            self._raise_notice(NoticeKind.CONFIGURATION,
                               InterviewPrompts.fallback_messages()["unconfigured"])
            question = ""
        except AnalysisServiceError as e:
            logger.warning("Opening question failed (%s), using fallback", e)
            question = ""

        if not question:
            return FALLBACK_OPENING_QUESTION, True
        return question, False

    def close(self) -> None:
        """Stop listening and release capture devices. Safe on every exit path."""
        if self._closed:
            return
        self._closed = True
        if self.phase == SessionPhase.LISTENING:
            self._stop_transcription("teardown")
        self._release_media()

    async def __aenter__(self) -> "LiveSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _release_media(self) -> None:
        handle = self.media_handle
        if handle is None or handle.released:
            return
        handle.release()
        self.event_bus.emit(MediaReleasedEvent(self.session_id, time.time(), len(handle.tracks)))

    # ------------------------------------------------------------------
    # Listening
    # ------------------------------------------------------------------

    def start_listening(self) -> bool:
        """Begin transcription for the current question. Keeps earlier speech."""
        if self.phase == SessionPhase.LISTENING:
            return True
        if self.phase != SessionPhase.AWAITING_QUESTION or self._closed:
            logger.warning("Cannot start listening while %s", self.phase.value)
            return False
        if not self.media.supports_transcription:
            self._raise_notice(NoticeKind.CAPABILITY,
                               "Speech recognition is not supported on this platform.")
            return False

        self.media.start_transcription(self.handle_transcript_delta, self._handle_recognition_error)
        self.phase = SessionPhase.LISTENING
        self.event_bus.emit(ListeningStartedEvent(self.session_id, time.time(), len(self.buffer.text)))
        return True

    def stop_listening(self) -> bool:
        """Stop transcription without discarding the buffer."""
        if self.phase != SessionPhase.LISTENING:
            return False
        self._stop_transcription("user")
        return True

    def toggle_listening(self) -> bool:
        """Flip listening on or off; returns whether the session is now listening."""
        if self.phase == SessionPhase.LISTENING:
            self.stop_listening()
        else:
            self.start_listening()
        return self.is_listening

    def _stop_transcription(self, reason: str) -> None:
        self.media.stop_transcription()
        self.buffer.clear_interim()
        self.phase = SessionPhase.AWAITING_QUESTION
        self.event_bus.emit(ListeningStoppedEvent(self.session_id, time.time(), len(self.buffer.text), reason))

    def handle_transcript_delta(self, delta: TranscriptDelta) -> None:
        """Consume one recognized-speech delta; ignored unless listening."""
        if self.phase != SessionPhase.LISTENING:
            logger.debug("Dropping %s delta while %s", delta.kind.value, self.phase.value)
            return
        if delta.is_final:
            self.buffer.append_final(delta.text)
        else:
            self.buffer.set_interim(delta.text)

    def _handle_recognition_error(self, error: str) -> None:
        logger.error("Speech recognition error: %s", error)
        if self.phase == SessionPhase.LISTENING:
            self._stop_transcription("error")
        self._raise_notice(NoticeKind.CAPABILITY, f"Speech recognition error: {error}")

    # ------------------------------------------------------------------
    # Submitting
    # ------------------------------------------------------------------

    async def submit_answer(self) -> Optional[Turn]:
        """
        Submit the buffered answer for analysis.

        Returns:
            The recorded Turn, or None when the submission was rejected
            locally, is already in flight, or the analysis failed
        """
        if self.phase == SessionPhase.SUBMITTING:
            logger.warning("Submission already in flight; ignoring")
            return None
        if self._closed or self.phase in (SessionPhase.INITIALIZING, SessionPhase.COMPLETE):
            raise SessionStateError(f"Cannot submit while {self.phase.value}")

        if self.phase == SessionPhase.LISTENING:
            self._stop_transcription("submit")

        answer = self.buffer.frozen()
        if len(answer) < self.min_answer_chars:
            self.event_bus.emit(SubmissionRejectedEvent(
                self.session_id, time.time(), "answer too short", len(answer)
            ))
            self._raise_notice(NoticeKind.VALIDATION, EMPTY_ANSWER_MESSAGE)
            return None

        self.phase = SessionPhase.SUBMITTING
        turn_number = len(self.rounds) + 1
        question = self.current_question
        snapshot = await self._capture_snapshot()

        try:
            result = await self.analysis_service.request_turn_analysis(
                self.config, question, answer, turn_number, snapshot
            )
        except AnalysisServiceError as e:
            if self._closed:
                logger.info("Session %s closed while turn %d was analyzed; dropping failure: %s",
                            self.session_id, turn_number, e)
                return None
            self.phase = SessionPhase.AWAITING_QUESTION
            self.event_bus.emit(AnalysisFailedEvent(self.session_id, time.time(), turn_number, str(e)))
            if isinstance(e, MissingCredentialsError):
                message = InterviewPrompts.fallback_messages()["unconfigured"]
            else:
                message = InterviewPrompts.fallback_messages()["analysis_failed"]
            self._raise_notice(NoticeKind.ANALYSIS, message)
            return None

        # Closed while the analysis was in flight
        if self._closed:
            logger.info("Session %s closed while turn %d was analyzed; discarding result",
                        self.session_id, turn_number)
            return None

        turn = Turn(
            question=question,
            user_answer=answer,
            analysis=tuple(result.analysis),
            suggestion=result.suggestion,
        )
        self.rounds.append(turn)

        if result.complete:
            reason = "service signalled completion"
        elif len(self.rounds) >= self.max_turns:
            reason = "turn limit reached"
        else:
            reason = None

        self.event_bus.emit(TurnRecordedEvent(
            self.session_id, time.time(), turn_number,
            {p.category.value: p.score for p in turn.analysis}, reason is not None
        ))
        logger.info("Recorded turn %d/%d", turn_number, self.max_turns)

        if reason:
            self._complete(reason)
        else:
            self.buffer.reset()
            self._present_question(result.next_question or FALLBACK_NEXT_QUESTION,
                                   is_fallback=not result.next_question)
        return turn

    async def _capture_snapshot(self) -> Optional[str]:
        if self.media_handle is None or self.media_handle.released:
            return None
        try:
            return await self.media.capture_still_frame()
        except Exception as e:
            logger.warning("Snapshot failed, submitting without it: %s", e)
            self._report_error(e, "snapshot")
            return None

    def _complete(self, reason: str) -> None:
        self.phase = SessionPhase.COMPLETE
        self.completion_reason = reason
        logger.info("Session %s complete after %d turn(s): %s", self.session_id, len(self.rounds), reason)
        self.event_bus.emit(SessionCompletedEvent(self.session_id, time.time(), len(self.rounds), reason))
        self._release_media()
        if self.on_complete is not None:
            self.on_complete(list(self.rounds))

    # ------------------------------------------------------------------
    # Questions and notices
    # ------------------------------------------------------------------

    def _present_question(self, question: str, is_fallback: bool = False) -> None:
        self.current_question = question
        self.phase = SessionPhase.AWAITING_QUESTION
        self.event_bus.emit(QuestionAskedEvent(
            self.session_id, time.time(), self.question_number, question, is_fallback
        ))
        self._speak(question)

    def replay_question(self) -> bool:
        """Send the current question to speech playback again."""
        if self.phase not in (SessionPhase.AWAITING_QUESTION, SessionPhase.LISTENING):
            return False
        self._speak(self.current_question)
        return True

    def _speak(self, text: str) -> None:
        try:
            self.media.speak(text)
        except Exception as e:
            logger.warning("Speech playback failed: %s", e)
            self._report_error(e, "speech")

    def _report_error(self, error: Exception, component: str) -> None:
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, time.time(), type(error).__name__, str(error), component
        ))

    def _raise_notice(self, kind: NoticeKind, message: str, blocking: bool = False) -> None:
        notice = Notice(kind=kind, message=message, blocking=blocking)
        self.notices.append(notice)
        self.event_bus.emit(NoticeRaisedEvent(self.session_id, time.time(), kind.value, message, blocking))
        if self.on_notice is not None:
            self.on_notice(notice)
