"""
Application flow: landing -> setup -> live interview -> report, with
restart going back to setup.
"""
import asyncio
import functools
import logging
from typing import Callable, Dict, List, Optional

from .events import InterviewEventBus, EventLogger, SessionMetrics
from .models import InterviewConfig, InterviewSession, Turn
from .report import InterviewReport, ReportAggregator
from .schemas import AppView, Notice
from .services import AnalysisService
from .session import LiveSession, SessionStateError
from ..infrastructure.media import MediaProvider
from ..config import MAX_TURNS

logger = logging.getLogger("orchestrator")


class InterviewOrchestrator:
    """
    Sequences the four application phases and hands data between them.

    Owns no interview logic itself: the live session decides turns and
    completion, the report aggregator derives scores and the summary.
    """

    def __init__(self,
                 analysis_service: AnalysisService,
                 media_factory: Callable[[], MediaProvider],
                 event_bus: Optional[InterviewEventBus] = None,
                 on_notice: Optional[Callable[[Notice], None]] = None,
                 max_turns: int = MAX_TURNS):
        self.analysis_service = analysis_service
        self.media_factory = media_factory
        self.on_notice = on_notice
        self.max_turns = max_turns

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self.report_aggregator = ReportAggregator(analysis_service, self.event_bus)

        self.view = AppView.LANDING
        self.config: Optional[InterviewConfig] = None
        self.live_session: Optional[LiveSession] = None
        self.session_data: Optional[InterviewSession] = None
        self.report: Optional[InterviewReport] = None
        self.summary_task: Optional[asyncio.Task] = None

    def _require_view(self, *views: AppView):
        if self.view not in views:
            raise SessionStateError(f"Not allowed from {self.view.value}")

    def start_setup(self) -> None:
        """Landing -> Setup."""
        self._require_view(AppView.LANDING)
        self.view = AppView.SETUP

    def start_interview(self, config: InterviewConfig) -> LiveSession:
        """Setup -> Interview. Returns the live session to start()."""
        self._require_view(AppView.SETUP)
        self.config = config
        self.live_session = LiveSession(
            config,
            self.analysis_service,
            self.media_factory(),
            event_bus=self.event_bus,
            on_notice=self.on_notice,
            max_turns=self.max_turns,
        )
        self.live_session.on_complete = functools.partial(self.complete_interview, session=self.live_session)
        self.report_aggregator.session_id = self.live_session.session_id
        self.view = AppView.INTERVIEW
        logger.info("Interview started for %s", config.job_role)
        return self.live_session

    def complete_interview(self, rounds: List[Turn],
                           session: Optional[LiveSession] = None) -> Optional[InterviewReport]:
        """
        Interview -> Report. Builds the report and asks for the summary.

        Completions from a session other than the current live one (e.g. a
        session discarded by restart) are ignored.
        """
        if session is not None and session is not self.live_session:
            logger.warning("Ignoring completion from stale session %s", session.session_id)
            return None
        if self.config is None or self.view != AppView.INTERVIEW:
            logger.warning("Ignoring completion while %s", self.view.value)
            return None

        self.session_data = InterviewSession(config=self.config, rounds=list(rounds))
        self.report = self.report_aggregator.build(self.session_data)
        self.view = AppView.REPORT

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self.summary_task = loop.create_task(self.report_aggregator.request_summary(self.report))
        return self.report

    async def fetch_summary(self) -> str:
        """Wait for the closing summary, requesting it if nothing has yet."""
        if self.report is None:
            raise SessionStateError("No report to summarize")
        if self.summary_task is not None:
            return await self.summary_task
        return await self.report_aggregator.request_summary(self.report)

    def restart(self) -> None:
        """Drop all session and config state and go back to setup."""
        if self.live_session is not None:
            self.live_session.close()
        if self.summary_task is not None and not self.summary_task.done():
            self.summary_task.cancel()
        self.live_session = None
        self.session_data = None
        self.report = None
        self.config = None
        self.summary_task = None
        self.view = AppView.SETUP
        logger.info("Restarted; back to setup")

    def get_metrics(self) -> Dict[str, int]:
        """Get current session metrics."""
        return self.metrics.get_metrics()
