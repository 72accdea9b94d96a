"""
Event-driven notifications for the interview session.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    QUESTION_ASKED = "question_asked"
    LISTENING_STARTED = "listening_started"
    LISTENING_STOPPED = "listening_stopped"
    SUBMISSION_REJECTED = "submission_rejected"
    TURN_RECORDED = "turn_recorded"
    ANALYSIS_FAILED = "analysis_failed"
    NOTICE_RAISED = "notice_raised"
    SESSION_COMPLETED = "session_completed"
    SUMMARY_READY = "summary_ready"
    MEDIA_RELEASED = "media_released"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class SessionEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(SessionEvent):
    """Event fired when a live session begins."""
    def __init__(self, session_id: str, timestamp: float, job_role: str, max_turns: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"job_role": job_role, "max_turns": max_turns}
        )


@dataclass
class QuestionAskedEvent(SessionEvent):
    """Event fired when a question is presented and spoken."""
    def __init__(self, session_id: str, timestamp: float, question_number: int,
                 question: str, is_fallback: bool = False):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "question_number": question_number,
                "question": question,
                "is_fallback": is_fallback
            }
        )


@dataclass
class ListeningStartedEvent(SessionEvent):
    """Event fired when transcription starts."""
    def __init__(self, session_id: str, timestamp: float, buffered_chars: int):
        super().__init__(
            event_type=EventType.LISTENING_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"buffered_chars": buffered_chars}
        )


@dataclass
class ListeningStoppedEvent(SessionEvent):
    """Event fired when transcription stops."""
    def __init__(self, session_id: str, timestamp: float, buffered_chars: int, reason: str):
        super().__init__(
            event_type=EventType.LISTENING_STOPPED,
            session_id=session_id,
            timestamp=timestamp,
            data={"buffered_chars": buffered_chars, "reason": reason}
        )


@dataclass
class SubmissionRejectedEvent(SessionEvent):
    """Event fired when an answer fails the local submit guard."""
    def __init__(self, session_id: str, timestamp: float, reason: str, answer_chars: int):
        super().__init__(
            event_type=EventType.SUBMISSION_REJECTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"reason": reason, "answer_chars": answer_chars}
        )


@dataclass
class TurnRecordedEvent(SessionEvent):
    """Event fired when an analyzed turn is appended to the history."""
    def __init__(self, session_id: str, timestamp: float, turn_number: int,
                 scores: Dict[str, int], complete: bool):
        super().__init__(
            event_type=EventType.TURN_RECORDED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "turn_number": turn_number,
                "scores": scores,
                "complete": complete
            }
        )


@dataclass
class AnalysisFailedEvent(SessionEvent):
    """Event fired when a submitted answer could not be analyzed."""
    def __init__(self, session_id: str, timestamp: float, turn_number: int, error_message: str):
        super().__init__(
            event_type=EventType.ANALYSIS_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_number": turn_number, "error_message": error_message}
        )


@dataclass
class NoticeRaisedEvent(SessionEvent):
    """Event fired when the candidate must be told something."""
    def __init__(self, session_id: str, timestamp: float, kind: str, message: str, blocking: bool):
        super().__init__(
            event_type=EventType.NOTICE_RAISED,
            session_id=session_id,
            timestamp=timestamp,
            data={"kind": kind, "message": message, "blocking": blocking}
        )


@dataclass
class SessionCompletedEvent(SessionEvent):
    """Event fired when the live session reaches its terminal state."""
    def __init__(self, session_id: str, timestamp: float, turn_count: int, reason: str):
        super().__init__(
            event_type=EventType.SESSION_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_count": turn_count, "reason": reason}
        )


@dataclass
class SummaryReadyEvent(SessionEvent):
    """Event fired when the closing summary resolves."""
    def __init__(self, session_id: str, timestamp: float, overall_score: int, is_fallback: bool):
        super().__init__(
            event_type=EventType.SUMMARY_READY,
            session_id=session_id,
            timestamp=timestamp,
            data={"overall_score": overall_score, "is_fallback": is_fallback}
        )


@dataclass
class MediaReleasedEvent(SessionEvent):
    """Event fired when capture devices are released."""
    def __init__(self, session_id: str, timestamp: float, track_count: int):
        super().__init__(
            event_type=EventType.MEDIA_RELEASED,
            session_id=session_id,
            timestamp=timestamp,
            data={"track_count": track_count}
        )


@dataclass
class ErrorOccurredEvent(SessionEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[SessionEvent], None]


class InterviewEventBus:
    """Event bus for session notifications."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: SessionEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler failures are logged and never reach the emitter.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        """Log event details."""
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects metrics from session events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: SessionEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.SESSION_COMPLETED:
            self.sessions_completed += 1
        elif event.event_type == EventType.TURN_RECORDED:
            self.turns_recorded += 1
        elif event.event_type == EventType.SUBMISSION_REJECTED:
            self.submissions_rejected += 1
        elif event.event_type == EventType.ANALYSIS_FAILED:
            self.analysis_failures += 1
        elif event.event_type == EventType.NOTICE_RAISED:
            self.notices_raised += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "sessions_completed": self.sessions_completed,
            "turns_recorded": self.turns_recorded,
            "submissions_rejected": self.submissions_rejected,
            "analysis_failures": self.analysis_failures,
            "notices_raised": self.notices_raised,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.sessions_completed = 0
        self.turns_recorded = 0
        self.submissions_rejected = 0
        self.analysis_failures = 0
        self.notices_raised = 0
        self.errors_occurred = 0
