import logging

import pytest

from mockmate.config import MODEL_NAME, get_config
from mockmate.utils import setup_logging

ENV_VARS = [
    "GEMINI_API_KEY", "API_KEY", "GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS",
    "MOCKMATE_MODEL", "MOCKMATE_LOG_FILE", "MOCKMATE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_credentials_is_not_an_error():
    config = get_config()
    assert config.api_key is None
    assert not config.has_credentials
    assert config.model_name == MODEL_NAME
    assert config.max_turns == 3


def test_api_key_falls_back_to_generic_name(monkeypatch):
    monkeypatch.setenv("API_KEY", "generic")
    assert get_config().api_key == "generic"

    monkeypatch.setenv("GEMINI_API_KEY", "specific")
    assert get_config().api_key == "specific"


def test_vertex_project_counts_as_credentials(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "my-project")
    monkeypatch.setenv("MOCKMATE_MODEL", "gemini-2.5-pro")
    config = get_config()
    assert config.has_credentials
    assert config.model_name == "gemini-2.5-pro"


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "interview.log"
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        assert setup_logging(str(log_file), "INFO") == str(log_file)
        logging.getLogger("live_session").info("hello log")
        for handler in root.handlers:
            handler.flush()
        assert "hello log" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved
