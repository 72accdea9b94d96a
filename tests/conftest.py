import pytest

from mockmate.interview.events import InterviewEventBus
from mockmate.interview.session import LiveSession
from mockmate.interview.testing import FakeMediaProvider, MockAnalysisService, SAMPLE_CONFIG


@pytest.fixture
def media():
    return FakeMediaProvider()


@pytest.fixture
def service():
    return MockAnalysisService()


@pytest.fixture
def event_bus():
    return InterviewEventBus()


@pytest.fixture
def completed():
    """Collects the turn lists handed to on_complete."""
    return []


@pytest.fixture
def make_session(media, service, event_bus, completed):
    def factory(**kwargs):
        kwargs.setdefault("event_bus", event_bus)
        kwargs.setdefault("on_complete", completed.append)
        config = kwargs.pop("config", SAMPLE_CONFIG)
        analysis_service = kwargs.pop("analysis_service", service)
        media_provider = kwargs.pop("media_provider", media)
        return LiveSession(config, analysis_service, media_provider, **kwargs)
    return factory
